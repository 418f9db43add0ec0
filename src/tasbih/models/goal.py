"""Counting goals tracked by the Goal Progress Tracker."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..timeutils import as_utc


class Goal(SQLModel, table=True):
    """A target number of recitations (or a learn-once item) for one user."""

    __tablename__: ClassVar[str] = "goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(nullable=False, index=True, max_length=64)
    category: str = Field(nullable=False, max_length=32, index=True)
    item_id: Optional[str] = Field(default=None, max_length=64)
    goal_type: str = Field(default="recite", nullable=False, max_length=16)
    target_count: int = Field(nullable=False, gt=0)
    progress: int = Field(default=0, nullable=False, ge=0)
    status: str = Field(default="active", nullable=False, max_length=16, index=True)
    prayer_segment: str = Field(default="none", nullable=False, max_length=16)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    # Set once on the active -> completed transition and never cleared.
    completed_at: Optional[datetime] = Field(
        default=None, index=True, sa_type=DateTime(timezone=True)
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "category": self.category,
            "item_id": self.item_id,
            "goal_type": self.goal_type,
            "target_count": self.target_count,
            "progress": self.progress,
            "status": self.status,
            "prayer_segment": self.prayer_segment,
            "created_at": as_utc(self.created_at).isoformat(),
            "updated_at": as_utc(self.updated_at).isoformat(),
            "completed_at": as_utc(self.completed_at).isoformat() if self.completed_at else None,
        }
