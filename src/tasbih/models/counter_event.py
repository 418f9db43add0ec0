"""Append-only log of counter events."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from ..timeutils import as_utc


class CounterEvent(SQLModel, table=True):
    """One increment, decrement or learn mark, as captured at the time."""

    __tablename__: ClassVar[str] = "counter_event"
    __table_args__ = (
        # offline_id is the replay de-duplication key; NULLs never collide.
        UniqueConstraint("user_id", "offline_id", name="uq_counter_event_user_offline_id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(nullable=False, index=True, max_length=64)
    session_id: Optional[int] = Field(default=None, foreign_key="counting_session.id", index=True)
    goal_id: Optional[int] = Field(default=None, foreign_key="goal.id")
    category: Optional[str] = Field(default=None, max_length=32)
    item_id: Optional[str] = Field(default=None, max_length=64)
    event_type: str = Field(default="tap", nullable=False, max_length=32, index=True)
    delta: int = Field(nullable=False)
    value_after: int = Field(nullable=False)
    prayer_segment: str = Field(default="none", nullable=False, max_length=16)
    at_ts: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
        sa_type=DateTime(timezone=True),
    )
    timezone: str = Field(default="UTC", nullable=False, max_length=64)
    offline_id: Optional[str] = Field(default=None, max_length=128, index=True)
    suspected: bool = Field(default=False, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "goal_id": self.goal_id,
            "event_type": self.event_type,
            "delta": self.delta,
            "value_after": self.value_after,
            "prayer_segment": self.prayer_segment,
            "at_ts": as_utc(self.at_ts).isoformat(),
            "tz": self.timezone,
            "offline_id": self.offline_id,
            "suspected": self.suspected,
        }
