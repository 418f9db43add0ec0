"""SQLModel implementation of the counting session repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import case, update
from sqlmodel import Session, select

from ...models.session import CountingSession


class SQLModelSessionRepository:
    """SQLModel-based counting session repository."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, session_id: int) -> Optional[CountingSession]:
        statement = (
            select(CountingSession)
            .where(CountingSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        return self.session.exec(statement).first()

    def get_open(self, user_id: str) -> Optional[CountingSession]:
        statement = select(CountingSession).where(
            CountingSession.user_id == user_id,
            CountingSession.ended_at.is_(None),  # type: ignore[union-attr]
        )
        return self.session.exec(statement).first()

    def close_open(self, user_id: str, *, now: datetime) -> int:
        statement = (
            update(CountingSession)
            .where(
                CountingSession.user_id == user_id,
                CountingSession.ended_at.is_(None),  # type: ignore[union-attr]
            )
            .values(ended_at=now)
            .execution_options(synchronize_session=False)
        )
        return self.session.exec(statement).rowcount

    def close(self, session_id: int, *, now: datetime) -> bool:
        statement = (
            update(CountingSession)
            .where(
                CountingSession.id == session_id,
                CountingSession.ended_at.is_(None),  # type: ignore[union-attr]
            )
            .values(ended_at=now)
            .execution_options(synchronize_session=False)
        )
        return self.session.exec(statement).rowcount == 1

    def create(self, session: CountingSession) -> CountingSession:
        self.session.add(session)
        self.session.flush()
        self.session.refresh(session)
        return session

    def increment_running_value(self, session_id: int, delta: int) -> int:
        raw = CountingSession.running_value + delta
        statement = (
            update(CountingSession)
            .where(CountingSession.id == session_id)
            .values(running_value=case((raw < 0, 0), else_=raw))
            .execution_options(synchronize_session=False)
        )
        self.session.exec(statement)
        return self.session.exec(
            select(CountingSession.running_value).where(CountingSession.id == session_id)
        ).one()


__all__ = ["SQLModelSessionRepository"]
