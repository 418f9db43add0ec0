"""SQLModel implementation of the goal repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import case, update
from sqlmodel import Session, select

from ...constants import GoalStatus
from ...models.goal import Goal


class SQLModelGoalRepository:
    """SQLModel-based goal repository.

    Progress changes are issued as single UPDATE statements so concurrent taps on the
    same goal never lose an increment.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, goal_id: int, *, user_id: str | None = None) -> Optional[Goal]:
        statement = select(Goal).where(Goal.id == goal_id)
        if user_id is not None:
            statement = statement.where(Goal.user_id == user_id)
        return self.session.exec(statement.execution_options(populate_existing=True)).first()

    def latest_active(self, user_id: str) -> Optional[Goal]:
        statement = (
            select(Goal)
            .where(Goal.user_id == user_id, Goal.status == GoalStatus.ACTIVE.value)
            .order_by(Goal.created_at.desc(), Goal.id.desc())  # type: ignore[union-attr]
        )
        return self.session.exec(statement).first()

    def find_active(self, user_id: str, category: str, prayer_segment: str) -> Optional[Goal]:
        statement = select(Goal).where(
            Goal.user_id == user_id,
            Goal.category == category,
            Goal.prayer_segment == prayer_segment,
            Goal.status == GoalStatus.ACTIVE.value,
        )
        return self.session.exec(statement).first()

    def create(self, goal: Goal) -> Goal:
        self.session.add(goal)
        self.session.flush()
        self.session.refresh(goal)
        return goal

    def update_target(self, goal: Goal, target_count: int, *, now: datetime) -> Goal:
        goal.target_count = target_count
        goal.updated_at = now
        self.session.add(goal)
        self.session.flush()
        self.session.refresh(goal)
        return goal

    def increment_progress(self, goal_id: int, delta: int, *, now: datetime) -> int:
        raw = Goal.progress + delta
        statement = (
            update(Goal)
            .where(Goal.id == goal_id)
            .values(progress=case((raw < 0, 0), else_=raw), updated_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.exec(statement)
        return self.session.exec(select(Goal.progress).where(Goal.id == goal_id)).one()

    def complete_if_reached(self, goal_id: int, *, now: datetime) -> bool:
        statement = (
            update(Goal)
            .where(
                Goal.id == goal_id,
                Goal.status == GoalStatus.ACTIVE.value,
                Goal.completed_at.is_(None),  # type: ignore[union-attr]
                Goal.progress >= Goal.target_count,
            )
            .values(status=GoalStatus.COMPLETED.value, completed_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return self.session.exec(statement).rowcount == 1

    def force_complete(self, goal_id: int, *, now: datetime) -> bool:
        statement = (
            update(Goal)
            .where(
                Goal.id == goal_id,
                Goal.status == GoalStatus.ACTIVE.value,
                Goal.completed_at.is_(None),  # type: ignore[union-attr]
            )
            .values(status=GoalStatus.COMPLETED.value, completed_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return self.session.exec(statement).rowcount == 1

    def completed_between(self, user_id: str, start: datetime, end: datetime) -> list[Goal]:
        statement = (
            select(Goal)
            .where(Goal.user_id == user_id)
            .where(Goal.status == GoalStatus.COMPLETED.value)
            .where(Goal.completed_at >= start)  # type: ignore[operator]
            .where(Goal.completed_at < end)  # type: ignore[operator]
            .order_by(Goal.completed_at)  # type: ignore[arg-type]
        )
        return list(self.session.exec(statement).all())

    def recent(self, user_id: str, limit: int = 10) -> list[Goal]:
        statement = (
            select(Goal)
            .where(Goal.user_id == user_id)
            .order_by(Goal.updated_at.desc(), Goal.id.desc())  # type: ignore[union-attr]
            .limit(limit)
        )
        return list(self.session.exec(statement).all())


__all__ = ["SQLModelGoalRepository"]
