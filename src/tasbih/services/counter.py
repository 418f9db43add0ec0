"""Counter Event Recorder: the single-increment write path."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from ..constants import NO_SEGMENT, EventType, normalize_segment
from ..domain.repositories import CounterEventRepository, ProfileRepository, SessionRepository
from ..errors import DuplicateEventError, NotFoundError
from ..logging_config import get_logger
from ..models.counter_event import CounterEvent
from ..models.daily_bucket import DailyBucket
from ..timeutils import as_utc, local_date
from .anti_abuse import AntiAbuseMonitor
from .daily_buckets import DailyBucketAggregator
from .goals import GoalProgress, GoalProgressTracker
from .profiles import resolve_profile

logger = get_logger("counter")


@dataclass
class TapResult:
    """Outcome of one tap; ``suspected`` is advisory and never blocks the write."""

    value_after: int
    goal: Optional[GoalProgress]
    daily_bucket: Optional[DailyBucket]
    suspected: bool
    event_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "value_after": self.value_after,
            "goal_progress": self.goal.to_dict() if self.goal else None,
            "daily_azkar": self.daily_bucket.to_dict() if self.daily_bucket else None,
            "suspected": self.suspected,
            "event_id": self.event_id,
        }


class CounterEventRecorder:
    """Applies one signed delta to the goal, the daily bucket and the event log.

    All writes go through the repositories of a single unit of work; the caller's
    transaction makes the three updates succeed or fail together.
    """

    def __init__(
        self,
        *,
        sessions: SessionRepository,
        events: CounterEventRepository,
        profiles: ProfileRepository,
        goals: GoalProgressTracker,
        buckets: DailyBucketAggregator,
        abuse: AntiAbuseMonitor,
        clock: Callable[[], datetime],
        default_timezone: str = "UTC",
    ) -> None:
        self.sessions = sessions
        self.events = events
        self.profiles = profiles
        self.goals = goals
        self.buckets = buckets
        self.abuse = abuse
        self._clock = clock
        self.default_timezone = default_timezone

    def tap(
        self,
        user_id: str,
        session_id: int,
        delta: int,
        event_type: str = EventType.TAP.value,
        *,
        offline_id: str | None = None,
        prayer_segment: str | None = None,
        occurred_at: datetime | None = None,
        replayed: bool = False,
    ) -> TapResult:
        """Record one tap.

        ``replayed`` marks events drained from an offline queue; they describe past
        activity and skip the burst check. A repeated ``offline_id`` raises
        :class:`DuplicateEventError` before anything is written.
        """

        session = self.sessions.get(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError("Session not found", session_id=session_id)
        if offline_id and self.events.offline_id_exists(user_id, offline_id):
            raise DuplicateEventError(offline_id)

        now = as_utc(occurred_at) if occurred_at else self._clock()
        event_type = EventType(event_type).value

        suspected = False
        if not replayed:
            suspected = self.abuse.check(user_id, delta, now=now).suspected

        goal_progress: Optional[GoalProgress] = None
        goal = None
        if session.goal_id is not None:
            goal = self.goals.get(user_id, session.goal_id)
            goal_progress = self.goals.apply_delta(goal, delta, now=now)
            value_after = goal_progress.progress
        else:
            value_after = self.sessions.increment_running_value(session_id, delta)

        profile = resolve_profile(self.profiles, user_id, default_timezone=self.default_timezone)
        segment = normalize_segment(prayer_segment)
        bucket: Optional[DailyBucket] = None
        if segment is not None:
            bucket = self.buckets.apply(user_id, local_date(now, profile.timezone), segment, delta)

        event = self.events.add(
            CounterEvent(
                user_id=user_id,
                session_id=session_id,
                goal_id=session.goal_id,
                category=goal.category if goal else None,
                item_id=goal.item_id if goal else None,
                event_type=event_type,
                delta=delta,
                value_after=value_after,
                prayer_segment=segment or NO_SEGMENT,
                at_ts=now,
                timezone=profile.timezone,
                offline_id=offline_id,
                suspected=suspected,
            )
        )
        logger.debug(
            "Tap %+d on session %s -> %d",
            delta,
            session_id,
            value_after,
            extra={"user_id": user_id, "session_id": session_id, "offline_id": offline_id},
        )
        return TapResult(
            value_after=value_after,
            goal=goal_progress,
            daily_bucket=bucket,
            suspected=suspected,
            event_id=event.id,
        )


__all__ = ["CounterEventRecorder", "TapResult"]
