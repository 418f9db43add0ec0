"""Caller profile resolution."""

from __future__ import annotations

from ..domain.repositories import ProfileRepository
from ..models.profile import UserProfile
from ..timeutils import is_valid_timezone


def resolve_profile(
    profiles: ProfileRepository, user_id: str, *, default_timezone: str = "UTC"
) -> UserProfile:
    """Return the stored profile, or a transient default when none exists yet.

    Profiles belong to an external service; a user can start counting before it has
    written one, so absence is not an error here.
    """

    profile = profiles.get(user_id)
    if profile is None:
        return UserProfile(user_id=user_id, timezone=default_timezone)
    if not is_valid_timezone(profile.timezone):
        # Keep the stored row untouched; bucket with the default instead.
        return UserProfile(
            user_id=profile.user_id,
            locale=profile.locale,
            madhab=profile.madhab,
            timezone=default_timezone,
        )
    return profile


__all__ = ["resolve_profile"]
