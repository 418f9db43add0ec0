"""SQLModel table exports."""

from .calculation_job import CalculationJob
from .counter_event import CounterEvent
from .daily_bucket import DailyBucket, empty_bucket_counters
from .goal import Goal
from .profile import UserProfile
from .session import CountingSession

__all__ = [
    "CalculationJob",
    "CounterEvent",
    "CountingSession",
    "DailyBucket",
    "Goal",
    "UserProfile",
    "empty_bucket_counters",
]
