"""Counting session repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.session import CountingSession


class SessionRepository(Protocol):
    """Repository for counting sessions."""

    def get(self, session_id: int) -> Optional[CountingSession]:
        ...

    def get_open(self, user_id: str) -> Optional[CountingSession]:
        ...

    def close_open(self, user_id: str, *, now: datetime) -> int:
        """Close every open session of a user; return how many were closed."""
        ...

    def close(self, session_id: int, *, now: datetime) -> bool:
        ...

    def create(self, session: CountingSession) -> CountingSession:
        ...

    def increment_running_value(self, session_id: int, delta: int) -> int:
        """Atomically add ``delta`` to the running value, floored at zero."""
        ...
