"""Counter event log repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ...models.counter_event import CounterEvent


class CounterEventRepository(Protocol):
    """Append-only access to the counter event log."""

    def add(self, event: CounterEvent) -> CounterEvent:
        ...

    def offline_id_exists(self, user_id: str, offline_id: str) -> bool:
        ...

    def tap_volume_between(self, user_id: str, since: datetime, until: datetime) -> int:
        """Sum of ``abs(delta)`` over tap events with ``since <= at_ts <= until``."""
        ...

    def taps_between(self, user_id: str, start: datetime, end: datetime) -> list[CounterEvent]:
        ...
