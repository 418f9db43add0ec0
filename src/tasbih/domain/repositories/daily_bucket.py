"""Daily bucket repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.daily_bucket import DailyBucket


class DailyBucketRepository(Protocol):
    """Repository for per-day segment counters."""

    def get(self, user_id: str, date_local: str) -> Optional[DailyBucket]:
        ...

    def get_or_create(self, user_id: str, date_local: str, *, now: datetime) -> tuple[DailyBucket, bool]:
        """Return the bucket and whether this call created it."""
        ...

    def apply_delta(
        self,
        user_id: str,
        date_local: str,
        segment: str,
        delta: int,
        *,
        segment_target: int,
        now: datetime,
    ) -> DailyBucket:
        """Atomically add ``delta`` to one segment and recompute total/is_complete."""
        ...
