"""Request contracts for the JSON API.

Every endpoint validates its payload against one of these models before touching the
database, so a malformed request never causes a partial write.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Optional, Type, TypeVar

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from .constants import EventType, GoalCategory, GoalType, PrayerSegment
from .errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class _Contract(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


def _segment_or_none(value: Any) -> Any:
    if value is None or isinstance(value, PrayerSegment):
        return value
    cleaned = str(value).strip().lower()
    return cleaned or None


Segment = Annotated[Optional[PrayerSegment], BeforeValidator(_segment_or_none)]


class GoalRequest(_Contract):
    """``POST /goals``: create a goal, or retarget the active one for a segment."""

    category: GoalCategory
    item_id: Optional[str] = Field(default=None, max_length=64)
    goal_type: GoalType = GoalType.RECITE
    target_count: int = Field(gt=0, le=1_000_000)
    prayer_segment: Segment = None


class StartSessionRequest(_Contract):
    """``POST /sessions/start``."""

    goal_id: Optional[int] = Field(default=None, gt=0)
    category: Optional[GoalCategory] = None
    item_id: Optional[str] = Field(default=None, max_length=64)
    prayer_segment: Segment = None


class EndSessionRequest(_Contract):
    session_id: int = Field(gt=0)


class TapRequest(_Contract):
    """``POST /counter/tap``."""

    session_id: int = Field(gt=0)
    delta: int = Field(ge=-10_000, le=10_000)
    event_type: EventType = EventType.TAP
    offline_id: Optional[str] = Field(default=None, min_length=1, max_length=128)
    prayer_segment: Segment = None


class LearnMarkRequest(_Contract):
    """``POST /learn/mark``."""

    goal_id: int = Field(gt=0)


class OfflineEvent(_Contract):
    """One queued client event replayed through ``POST /sync/offline``."""

    offline_id: Optional[str] = Field(default=None, min_length=1, max_length=128)
    type: str = Field(min_length=1, max_length=32)
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_id(cls, values: Any) -> Any:
        # Older clients send the idempotency key as ``id``.
        if isinstance(values, dict) and not values.get("offline_id") and values.get("id"):
            values = {**values, "offline_id": values["id"]}
        return values

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class SyncRequest(_Contract):
    """``POST /sync/offline``."""

    events: list[OfflineEvent] = Field(default_factory=list, max_length=1000)


class DailyReportQuery(_Contract):
    date: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")


class MetricsQuery(_Contract):
    """``GET /metrics`` query string."""

    endpoint: Optional[str] = None
    method: Optional[str] = None
    window: int = Field(default=60, ge=1, le=7 * 24 * 60)


def validation_errors(exc: PydanticValidationError) -> dict[str, list[str]]:
    """Flatten pydantic errors into ``{field: [messages]}``."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = ".".join(str(part) for part in loc) if loc else "__root__"
        structured.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return structured


def parse_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate ``payload`` against ``model`` or raise the API ``ValidationError``."""

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object", {"__root__": ["expected object"]})
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid request payload", validation_errors(exc)) from exc


__all__ = [
    "DailyReportQuery",
    "EndSessionRequest",
    "GoalRequest",
    "LearnMarkRequest",
    "MetricsQuery",
    "OfflineEvent",
    "StartSessionRequest",
    "SyncRequest",
    "TapRequest",
    "parse_payload",
    "validation_errors",
]
