"""Daily report and hourly activity heatmap."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from ..domain.repositories import (
    CounterEventRepository,
    DailyBucketRepository,
    GoalRepository,
    ProfileRepository,
)
from ..models.daily_bucket import empty_bucket_counters
from ..timeutils import DATE_FORMAT, local_date, local_day_bounds, local_hour, parse_local_date
from .profiles import resolve_profile

HOURS_PER_DAY = 24


@dataclass
class DailyReport:
    """One local day of activity.

    ``max_activity`` is never below 1 so callers can normalise heatmap intensity by it.
    """

    date: str
    timezone: str
    completed_goals: list[dict[str, Any]]
    daily_azkar: dict[str, Any]
    total_dhikr_count: int
    hourly_activity: list[int] = field(default_factory=lambda: [0] * HOURS_PER_DAY)
    max_activity: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "tz": self.timezone,
            "completed_goals": self.completed_goals,
            "daily_azkar": self.daily_azkar,
            "total_dhikr_count": self.total_dhikr_count,
            "hourly_activity": list(self.hourly_activity),
            "max_activity": self.max_activity,
        }


class HeatmapReportBuilder:
    """Rebuilds a user's local day from buckets, completed goals and the tap log."""

    def __init__(
        self,
        *,
        profiles: ProfileRepository,
        goals: GoalRepository,
        events: CounterEventRepository,
        buckets: DailyBucketRepository,
        clock: Callable[[], datetime],
        default_timezone: str = "UTC",
    ) -> None:
        self.profiles = profiles
        self.goals = goals
        self.events = events
        self.buckets = buckets
        self._clock = clock
        self.default_timezone = default_timezone

    def daily_report(self, user_id: str, date: Optional[str] = None) -> DailyReport:
        profile = resolve_profile(self.profiles, user_id, default_timezone=self.default_timezone)
        tz_name = profile.timezone
        if date:
            day = parse_local_date(date).strftime(DATE_FORMAT)
        else:
            day = local_date(self._clock(), tz_name)

        start, end = local_day_bounds(day, tz_name)

        bucket = self.buckets.get(user_id, day)
        if bucket is not None:
            daily_azkar = bucket.to_dict()
        else:
            daily_azkar = {"user_id": user_id, "date_local": day, **empty_bucket_counters()}

        completed = [goal.to_dict() for goal in self.goals.completed_between(user_id, start, end)]

        # Hours come from the user's wall clock, not UTC, so late-night taps stay on their day.
        hourly = [0] * HOURS_PER_DAY
        for event in self.events.taps_between(user_id, start, end):
            hourly[local_hour(event.at_ts, tz_name)] += abs(event.delta)

        return DailyReport(
            date=day,
            timezone=tz_name,
            completed_goals=completed,
            daily_azkar=daily_azkar,
            total_dhikr_count=sum(hourly),
            hourly_activity=hourly,
            max_activity=max(max(hourly), 1),
        )


__all__ = ["DailyReport", "HeatmapReportBuilder", "HOURS_PER_DAY"]
