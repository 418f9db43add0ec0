"""Goal repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.goal import Goal


class GoalRepository(Protocol):
    """Repository for goals and their progress counters."""

    def get(self, goal_id: int, *, user_id: str | None = None) -> Optional[Goal]:
        """Retrieve a goal, optionally scoped to its owner."""
        ...

    def latest_active(self, user_id: str) -> Optional[Goal]:
        """Return the most recently created active goal."""
        ...

    def find_active(self, user_id: str, category: str, prayer_segment: str) -> Optional[Goal]:
        """Return the active goal for a category and prayer segment."""
        ...

    def create(self, goal: Goal) -> Goal:
        """Insert a new goal."""
        ...

    def update_target(self, goal: Goal, target_count: int, *, now: datetime) -> Goal:
        """Change the target of an existing goal."""
        ...

    def increment_progress(self, goal_id: int, delta: int, *, now: datetime) -> int:
        """Atomically add ``delta`` to progress, floored at zero; return the new value."""
        ...

    def complete_if_reached(self, goal_id: int, *, now: datetime) -> bool:
        """Mark an active goal completed once progress reaches the target.

        Returns True only for the call that performed the transition.
        """
        ...

    def force_complete(self, goal_id: int, *, now: datetime) -> bool:
        """Mark an active goal completed regardless of progress."""
        ...

    def completed_between(self, user_id: str, start: datetime, end: datetime) -> list[Goal]:
        """Goals whose completion instant falls in ``[start, end)``."""
        ...

    def recent(self, user_id: str, limit: int = 10) -> list[Goal]:
        """Most recently updated goals, newest first."""
        ...
