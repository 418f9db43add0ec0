"""Error taxonomy for the counting core."""

from __future__ import annotations

from typing import Any


class TasbihError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        payload.update(self.details)
        return payload


class NotFoundError(TasbihError):
    """A session, goal or job referenced by the request does not exist."""

    status_code = 404
    code = "not_found"


class ValidationError(TasbihError):
    """Request payload failed validation; raised before any mutation."""

    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None) -> None:
        super().__init__(message, fields=errors or {})
        self.errors = errors or {}


class IdentityError(TasbihError):
    """No caller identity was supplied with the request."""

    status_code = 401
    code = "unauthorized"


class DuplicateEventError(TasbihError):
    """An event with this ``offline_id`` is already in the user's log."""

    status_code = 409
    code = "duplicate_event"

    def __init__(self, offline_id: str) -> None:
        super().__init__("Event already recorded", offline_id=offline_id)
        self.offline_id = offline_id


class UnknownEventType(TasbihError):
    """An inbound event type has no handler; callers acknowledge and ignore it."""

    status_code = 200
    code = "unknown_event"

    def __init__(self, event_type: str | None) -> None:
        super().__init__(f"Unknown event type: {event_type!r}", event_type=event_type)
        self.event_type = event_type


__all__ = [
    "DuplicateEventError",
    "IdentityError",
    "NotFoundError",
    "TasbihError",
    "UnknownEventType",
    "ValidationError",
]
