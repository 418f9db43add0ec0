"""Per-day azkar counters keyed by the user's local calendar date."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..constants import SEGMENT_FIELDS


class DailyBucket(SQLModel, table=True):
    """Segment counters for one (user, local date); ``total`` is their sum."""

    __tablename__: ClassVar[str] = "daily_bucket"

    user_id: str = Field(primary_key=True, max_length=64)
    date_local: str = Field(primary_key=True, max_length=10)
    fajr: int = Field(default=0, nullable=False, ge=0)
    dhuhr: int = Field(default=0, nullable=False, ge=0)
    asr: int = Field(default=0, nullable=False, ge=0)
    maghrib: int = Field(default=0, nullable=False, ge=0)
    isha: int = Field(default=0, nullable=False, ge=0)
    total: int = Field(default=0, nullable=False, ge=0)
    is_complete: bool = Field(default=False, nullable=False)
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )

    def segment_sum(self) -> int:
        return sum(getattr(self, name) for name in SEGMENT_FIELDS)

    def to_dict(self) -> dict:
        payload = {"user_id": self.user_id, "date_local": self.date_local}
        for name in SEGMENT_FIELDS:
            payload[name] = getattr(self, name)
        payload["total"] = self.total
        payload["is_complete"] = self.is_complete
        return payload


def empty_bucket_counters() -> dict:
    """Zeroed counter shape returned when a day has no bucket yet."""

    counters: dict = {name: 0 for name in SEGMENT_FIELDS}
    counters["total"] = 0
    counters["is_complete"] = False
    return counters
