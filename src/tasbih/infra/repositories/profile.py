"""SQLModel implementation of the profile repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import Session, select

from ...models.profile import UserProfile


class SQLModelProfileRepository:
    """SQLModel-based profile repository bound to one unit-of-work session."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> Optional[UserProfile]:
        return self.session.get(UserProfile, user_id)

    def list_all(self) -> list[UserProfile]:
        return list(self.session.exec(select(UserProfile).order_by(UserProfile.user_id)).all())

    def upsert(self, profile: UserProfile) -> UserProfile:
        merged = self.session.merge(profile)
        self.session.flush()
        return merged


__all__ = ["SQLModelProfileRepository"]
