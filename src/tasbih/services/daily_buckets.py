"""Timezone-local daily azkar buckets and the midnight reset sweep."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..domain.repositories import DailyBucketRepository
from ..logging_config import get_logger
from ..models.daily_bucket import DailyBucket
from ..models.profile import UserProfile
from ..timeutils import is_valid_timezone, local_date, minutes_since_local_midnight

logger = get_logger("daily_buckets")

RESET = "reset"
EXISTS = "exists"
SKIPPED = "skipped"
ERROR = "error"


@dataclass(frozen=True)
class ResetResult:
    user_id: str
    status: str
    date_local: Optional[str] = None
    timezone: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        payload = {"user_id": self.user_id, "status": self.status}
        if self.date_local is not None:
            payload["date_local"] = self.date_local
        if self.timezone is not None:
            payload["timezone"] = self.timezone
        if self.error is not None:
            payload["error"] = self.error
        return payload


class DailyBucketAggregator:
    """Accumulates per-segment counts into one bucket per (user, local date)."""

    def __init__(
        self,
        buckets: DailyBucketRepository,
        *,
        segment_target: int = 33,
        reset_window_minutes: int = 5,
        clock: Callable[[], datetime],
    ) -> None:
        self.buckets = buckets
        self.segment_target = segment_target
        self.reset_window_minutes = reset_window_minutes
        self._clock = clock

    def today_for(self, profile: UserProfile, *, now: datetime | None = None) -> str:
        return local_date(now or self._clock(), profile.timezone)

    def get(self, user_id: str, date_local: str) -> Optional[DailyBucket]:
        return self.buckets.get(user_id, date_local)

    def get_or_create(self, user_id: str, date_local: str) -> DailyBucket:
        bucket, created = self.buckets.get_or_create(user_id, date_local, now=self._clock())
        if created:
            logger.debug("Created daily bucket %s/%s", user_id, date_local)
        return bucket

    def apply(self, user_id: str, date_local: str, segment: str, delta: int) -> DailyBucket:
        """Add ``delta`` to ``segment`` of the day's bucket, creating the bucket if needed."""

        self.get_or_create(user_id, date_local)
        bucket = self.buckets.apply_delta(
            user_id,
            date_local,
            segment,
            delta,
            segment_target=self.segment_target,
            now=self._clock(),
        )
        if bucket.is_complete:
            logger.debug("Daily azkar complete for %s on %s", user_id, date_local)
        return bucket

    def reset_due(
        self, profiles: Iterable[UserProfile], *, now: datetime | None = None
    ) -> list[ResetResult]:
        """Create today's bucket for users whose local clock just passed midnight.

        Users outside the first ``reset_window_minutes`` of their local day are
        ``skipped``; one user's failure is recorded and the sweep continues.
        """

        now = now or self._clock()
        results: list[ResetResult] = []
        for profile in profiles:
            tz_name = profile.timezone
            if not is_valid_timezone(tz_name):
                results.append(
                    ResetResult(profile.user_id, ERROR, timezone=tz_name, error="unknown timezone")
                )
                logger.warning("Skipping reset for %s: unknown timezone %s", profile.user_id, tz_name)
                continue

            if minutes_since_local_midnight(now, tz_name) >= self.reset_window_minutes:
                results.append(ResetResult(profile.user_id, SKIPPED, timezone=tz_name))
                continue

            today = local_date(now, tz_name)
            try:
                _, created = self.buckets.get_or_create(profile.user_id, today, now=now)
            except Exception as exc:
                logger.exception("Daily reset failed for user %s", profile.user_id)
                results.append(ResetResult(profile.user_id, ERROR, today, tz_name, str(exc)))
                continue
            results.append(ResetResult(profile.user_id, RESET if created else EXISTS, today, tz_name))

        reset_count = sum(1 for result in results if result.status == RESET)
        logger.info("Daily reset sweep: %d of %d users reset", reset_count, len(results))
        return results


__all__ = ["DailyBucketAggregator", "ResetResult"]
