"""User profile repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.profile import UserProfile


class ProfileRepository(Protocol):
    """Read access to externally managed user profiles."""

    def get(self, user_id: str) -> Optional[UserProfile]:
        """Retrieve a profile by user id."""
        ...

    def list_all(self) -> list[UserProfile]:
        """List every known profile."""
        ...

    def upsert(self, profile: UserProfile) -> UserProfile:
        """Insert or replace a profile (used by seeding and tests)."""
        ...
