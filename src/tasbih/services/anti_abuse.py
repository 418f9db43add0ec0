"""Burst detection for live counter input."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from ..domain.repositories import CounterEventRepository
from ..logging_config import get_logger

logger = get_logger("anti_abuse")


@dataclass(frozen=True)
class AbuseVerdict:
    """Advisory result; a suspected tap is still recorded."""

    suspected: bool
    window_total: int
    threshold: int


class AntiAbuseMonitor:
    """Flags live taps whose trailing-window volume exceeds a threshold."""

    def __init__(
        self,
        events: CounterEventRepository,
        *,
        window_seconds: int = 1,
        threshold: int = 100,
        clock: Callable[[], datetime],
    ) -> None:
        self.events = events
        self.window = timedelta(seconds=window_seconds)
        self.threshold = threshold
        self._clock = clock

    def check(self, user_id: str, delta: int, *, now: datetime | None = None) -> AbuseVerdict:
        """Sum ``abs(delta)`` of the user's taps in the trailing window plus this one."""

        now = now or self._clock()
        recent = self.events.tap_volume_between(user_id, now - self.window, now)
        window_total = recent + abs(delta)
        suspected = window_total > self.threshold
        if suspected:
            logger.warning(
                "Suspected counter burst for user %s: %d in %ss (threshold %d)",
                user_id,
                window_total,
                self.window.total_seconds(),
                self.threshold,
                extra={"user_id": user_id, "window_total": window_total},
            )
        return AbuseVerdict(suspected=suspected, window_total=window_total, threshold=self.threshold)


__all__ = ["AbuseVerdict", "AntiAbuseMonitor"]
