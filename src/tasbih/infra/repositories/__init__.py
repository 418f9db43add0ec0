"""Concrete repository implementations using SQLModel."""

from .calculation_job import SQLModelCalculationJobRepository
from .counter_event import SQLModelCounterEventRepository
from .daily_bucket import SQLModelDailyBucketRepository
from .goal import SQLModelGoalRepository
from .profile import SQLModelProfileRepository
from .session import SQLModelSessionRepository

__all__ = [
    "SQLModelCalculationJobRepository",
    "SQLModelCounterEventRepository",
    "SQLModelDailyBucketRepository",
    "SQLModelGoalRepository",
    "SQLModelProfileRepository",
    "SQLModelSessionRepository",
]
