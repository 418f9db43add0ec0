"""Start-up snapshot returned by ``GET /bootstrap``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .profiles import resolve_profile

if TYPE_CHECKING:
    from ..context import CoreServices

RECENT_ITEMS_LIMIT = 10


def recent_items(services: "CoreServices", user_id: str, limit: int = RECENT_ITEMS_LIMIT) -> list[dict]:
    """Distinct (category, item) pairs from the user's most recently touched goals."""

    seen: set[tuple[str, str | None]] = set()
    items: list[dict] = []
    for goal in services.goal_repo.recent(user_id, limit=limit * 3):
        key = (goal.category, goal.item_id)
        if key in seen:
            continue
        seen.add(key)
        items.append(
            {
                "id": goal.item_id or f"goal-{goal.id}",
                "category": goal.category,
                "goal_id": goal.id,
                "goal_type": goal.goal_type,
            }
        )
        if len(items) >= limit:
            break
    return items


def build_bootstrap(services: "CoreServices", user_id: str) -> dict[str, Any]:
    """Profile, active goal, today's bucket (created if absent) and recent items."""

    profile = resolve_profile(
        services.profile_repo, user_id, default_timezone=services.counter.default_timezone
    )
    active_goal = services.goals.active_goal(user_id)
    today = services.buckets.today_for(profile)
    bucket = services.buckets.get_or_create(user_id, today)
    return {
        "user": profile.to_dict(),
        "active_goal": active_goal.to_dict() if active_goal else None,
        "active_session": _session_dict(services, user_id),
        "daily_azkar": bucket.to_dict(),
        "recent_items": recent_items(services, user_id),
    }


def _session_dict(services: "CoreServices", user_id: str) -> dict | None:
    session = services.sessions.active(user_id)
    return session.to_dict() if session else None


__all__ = ["build_bootstrap", "recent_items"]
