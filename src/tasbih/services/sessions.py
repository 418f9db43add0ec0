"""Counting session lifecycle."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from ..constants import NO_SEGMENT, normalize_segment
from ..domain.repositories import GoalRepository, SessionRepository
from ..errors import NotFoundError
from ..logging_config import get_logger
from ..models.session import CountingSession

logger = get_logger("sessions")


class SessionManager:
    """Opens and closes counting sessions, one open session per user."""

    def __init__(
        self,
        sessions: SessionRepository,
        goals: GoalRepository,
        *,
        clock: Callable[[], datetime],
    ) -> None:
        self.sessions = sessions
        self.goals = goals
        self._clock = clock

    def start(
        self,
        user_id: str,
        goal_id: int | None = None,
        prayer_segment: str | None = None,
    ) -> CountingSession:
        """Force-close any open session for the user, then open a new one."""

        if goal_id is not None and self.goals.get(goal_id, user_id=user_id) is None:
            raise NotFoundError("Goal not found", goal_id=goal_id)

        now = self._clock()
        closed = self.sessions.close_open(user_id, now=now)
        if closed:
            logger.info("Closed %d open session(s) for user %s", closed, user_id)

        session = self.sessions.create(
            CountingSession(
                user_id=user_id,
                goal_id=goal_id,
                prayer_segment=normalize_segment(prayer_segment) or NO_SEGMENT,
                started_at=now,
            )
        )
        logger.info(
            "Started session %s for user %s",
            session.id,
            user_id,
            extra={"session_id": session.id, "user_id": user_id},
        )
        return session

    def get(self, user_id: str, session_id: int) -> CountingSession:
        session = self.sessions.get(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError("Session not found", session_id=session_id)
        return session

    def end(self, user_id: str, session_id: int) -> CountingSession:
        """Close the session; ending an already closed session is a no-op."""

        self.get(user_id, session_id)
        if self.sessions.close(session_id, now=self._clock()):
            logger.info("Ended session %s for user %s", session_id, user_id)
        return self.get(user_id, session_id)

    def active(self, user_id: str) -> Optional[CountingSession]:
        return self.sessions.get_open(user_id)


__all__ = ["SessionManager"]
