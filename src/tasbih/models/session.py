"""Counting sessions opened by the Session Manager."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field, SQLModel

from ..timeutils import as_utc


class CountingSession(SQLModel, table=True):
    """A timed counting run; at most one per user has ``ended_at`` unset."""

    __tablename__: ClassVar[str] = "counting_session"
    __table_args__ = (
        # Backs the one-open-session-per-user rule at the store level.
        Index(
            "uq_counting_session_open_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("ended_at IS NULL"),
            postgresql_where=text("ended_at IS NULL"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(nullable=False, index=True, max_length=64)
    goal_id: Optional[int] = Field(default=None, foreign_key="goal.id")
    prayer_segment: str = Field(default="none", nullable=False, max_length=16)
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    ended_at: Optional[datetime] = Field(
        default=None, index=True, sa_type=DateTime(timezone=True)
    )
    # Cumulative value reported for taps when no goal is linked.
    running_value: int = Field(default=0, nullable=False, ge=0)

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "goal_id": self.goal_id,
            "prayer_segment": self.prayer_segment,
            "started_at": as_utc(self.started_at).isoformat(),
            "ended_at": as_utc(self.ended_at).isoformat() if self.ended_at else None,
            "running_value": self.running_value,
        }
