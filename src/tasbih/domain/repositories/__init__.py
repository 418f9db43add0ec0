"""Repository protocol definitions for domain layer."""

from .calculation_job import CalculationJobRepository
from .counter_event import CounterEventRepository
from .daily_bucket import DailyBucketRepository
from .goal import GoalRepository
from .profile import ProfileRepository
from .session import SessionRepository

__all__ = [
    "CalculationJobRepository",
    "CounterEventRepository",
    "DailyBucketRepository",
    "GoalRepository",
    "ProfileRepository",
    "SessionRepository",
]
