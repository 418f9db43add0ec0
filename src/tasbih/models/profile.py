"""User profile snapshot owned by the external profile service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class UserProfile(SQLModel, table=True):
    """Locale, madhab and timezone for a user; read-only to the counting core."""

    __tablename__: ClassVar[str] = "user_profile"

    user_id: str = Field(primary_key=True, max_length=64)
    locale: str = Field(default="en", nullable=False, max_length=16)
    madhab: str = Field(default="hanafi", nullable=False, max_length=32)
    timezone: str = Field(default="UTC", nullable=False, max_length=64)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "locale": self.locale,
            "madhab": self.madhab,
            "tz": self.timezone,
        }
