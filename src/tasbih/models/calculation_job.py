"""Externally computed calculation jobs tracked for webhook callbacks."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from ..timeutils import as_utc


class CalculationJob(SQLModel, table=True):
    """Status record for an asynchronous calculation run by an external worker."""

    __tablename__: ClassVar[str] = "calculation_job"

    job_id: str = Field(primary_key=True, max_length=64)
    user_id: Optional[str] = Field(default=None, index=True, max_length=64)
    status: str = Field(default="pending", nullable=False, max_length=16)
    progress: int = Field(default=0, nullable=False)
    result: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    error: Optional[str] = Field(default=None, max_length=255)
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
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    def to_dict(self) -> dict:
        return {
            "job_id": self.job_id,
            "user_id": self.user_id,
            "status": self.status,
            "progress": self.progress,
            "result": self.result,
            "error": self.error,
            "completed_at": as_utc(self.completed_at).isoformat() if self.completed_at else None,
        }
