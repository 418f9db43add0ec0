"""Goal progress tracking, goal upserts and learn-completion."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..constants import NO_SEGMENT, EventType, GoalStatus
from ..domain.repositories import CounterEventRepository, GoalRepository, ProfileRepository
from ..errors import DuplicateEventError, NotFoundError
from ..logging_config import get_logger
from ..models.counter_event import CounterEvent
from ..models.goal import Goal
from ..schemas import GoalRequest
from .profiles import resolve_profile

logger = get_logger("goals")


@dataclass(frozen=True)
class GoalProgress:
    """Goal state after a delta was applied."""

    goal_id: int
    progress: int
    target_count: int
    is_completed: bool
    status: str
    just_completed: bool = False

    def to_dict(self) -> dict:
        return {
            "goal_id": self.goal_id,
            "progress": self.progress,
            "target_count": self.target_count,
            "is_completed": self.is_completed,
            "status": self.status,
        }


class GoalProgressTracker:
    """Owns every mutation of a goal's progress and status."""

    def __init__(
        self,
        goals: GoalRepository,
        events: CounterEventRepository,
        profiles: ProfileRepository,
        *,
        clock: Callable[[], datetime],
        default_timezone: str = "UTC",
    ) -> None:
        self.goals = goals
        self.events = events
        self.profiles = profiles
        self._clock = clock
        self.default_timezone = default_timezone

    def get(self, user_id: str, goal_id: int) -> Goal:
        goal = self.goals.get(goal_id, user_id=user_id)
        if goal is None:
            raise NotFoundError("Goal not found", goal_id=goal_id)
        return goal

    def active_goal(self, user_id: str) -> Optional[Goal]:
        return self.goals.latest_active(user_id)

    def apply_delta(self, goal: Goal, delta: int, *, now: datetime | None = None) -> GoalProgress:
        """Add ``delta`` to the goal (floored at 0) and complete it once the target is hit.

        Progress is not clamped at the target. The active -> completed transition
        happens at most once; later taps keep counting but never reopen the goal or
        move ``completed_at``.
        """

        now = now or self._clock()
        if goal.id is None:
            raise NotFoundError("Goal is not persisted")
        progress = self.goals.increment_progress(goal.id, delta, now=now)
        just_completed = False
        if progress >= goal.target_count:
            just_completed = self.goals.complete_if_reached(goal.id, now=now)
            if just_completed:
                logger.info(
                    "Goal %s completed for user %s at %d/%d",
                    goal.id,
                    goal.user_id,
                    progress,
                    goal.target_count,
                    extra={"goal_id": goal.id, "user_id": goal.user_id},
                )

        refreshed = self.goals.get(goal.id)
        status = refreshed.status if refreshed else goal.status
        return GoalProgress(
            goal_id=goal.id,
            progress=progress,
            target_count=goal.target_count,
            is_completed=progress >= goal.target_count or status == GoalStatus.COMPLETED.value,
            status=status,
            just_completed=just_completed,
        )

    def upsert(self, user_id: str, request: GoalRequest) -> Goal:
        """Create a goal; with a prayer segment, retarget the existing active one instead."""

        now = self._clock()
        segment = request.prayer_segment.value if request.prayer_segment else NO_SEGMENT
        if segment != NO_SEGMENT:
            existing = self.goals.find_active(user_id, request.category.value, segment)
            if existing is not None:
                logger.info("Retargeting goal %s to %d", existing.id, request.target_count)
                return self.goals.update_target(existing, request.target_count, now=now)

        goal = Goal(
            user_id=user_id,
            category=request.category.value,
            item_id=request.item_id,
            goal_type=request.goal_type.value,
            target_count=request.target_count,
            progress=0,
            status=GoalStatus.ACTIVE.value,
            prayer_segment=segment,
            created_at=now,
            updated_at=now,
        )
        return self.goals.create(goal)

    def mark_learned(
        self,
        user_id: str,
        goal_id: int,
        *,
        offline_id: str | None = None,
        occurred_at: datetime | None = None,
    ) -> Goal:
        """Complete a learn goal and append a ``learn_mark`` log entry.

        Marking an already completed goal logs the event again but leaves
        ``completed_at`` untouched.
        """

        goal = self.get(user_id, goal_id)
        if offline_id and self.events.offline_id_exists(user_id, offline_id):
            raise DuplicateEventError(offline_id)
        now = occurred_at or self._clock()
        if self.goals.force_complete(goal_id, now=now):
            logger.info("Goal %s marked learned by user %s", goal_id, user_id)

        profile = resolve_profile(self.profiles, user_id, default_timezone=self.default_timezone)
        goal = self.get(user_id, goal_id)
        self.events.add(
            CounterEvent(
                user_id=user_id,
                goal_id=goal.id,
                category=goal.category,
                item_id=goal.item_id,
                event_type=EventType.LEARN_MARK.value,
                delta=0,
                value_after=goal.progress,
                prayer_segment=goal.prayer_segment,
                at_ts=now,
                timezone=profile.timezone,
                offline_id=offline_id,
            )
        )
        return goal


__all__ = ["GoalProgress", "GoalProgressTracker"]
