"""Tests for goal upserts and learn completion."""

from __future__ import annotations

import pytest
from sqlmodel import select

from tasbih.errors import DuplicateEventError, NotFoundError
from tasbih.models import CounterEvent, Goal
from tasbih.schemas import GoalRequest

from conftest import USER_ID


def _upsert(app_context, **fields):
    with app_context.unit_of_work() as services:
        return services.goals.upsert(USER_ID, GoalRequest(**fields))


class TestUpsert:
    def test_creates_goal(self, app_context):
        goal = _upsert(app_context, category="azkar", target_count=33)

        assert goal.id is not None
        assert goal.progress == 0
        assert goal.status == "active"
        assert goal.prayer_segment == "none"
        assert goal.goal_type == "recite"

    def test_same_segment_updates_target(self, app_context):
        first = _upsert(app_context, category="azkar", target_count=33, prayer_segment="fajr")
        second = _upsert(app_context, category="azkar", target_count=99, prayer_segment="fajr")

        assert second.id == first.id
        assert second.target_count == 99

    def test_without_segment_always_inserts(self, app_context):
        first = _upsert(app_context, category="dua", target_count=3)
        second = _upsert(app_context, category="dua", target_count=3)

        assert first.id != second.id

    def test_none_segment_always_inserts(self, app_context):
        first = _upsert(app_context, category="dua", target_count=3, prayer_segment="none")
        second = _upsert(app_context, category="dua", target_count=3, prayer_segment="none")

        assert first.id != second.id

    def test_active_goal_is_latest(self, app_context, clock):
        _upsert(app_context, category="dua", target_count=3)
        clock.advance(minutes=1)
        latest = _upsert(app_context, category="surah", target_count=7)

        with app_context.unit_of_work() as services:
            assert services.goals.active_goal(USER_ID).id == latest.id


class TestMarkLearned:
    def test_marks_completed_and_logs(self, app_context, goal_factory, session_factory):
        goal = goal_factory(goal_type="learn", target_count=1, item_id="al-fatiha")

        with app_context.unit_of_work() as services:
            marked = services.goals.mark_learned(USER_ID, goal.id)

        assert marked.status == "completed"
        assert marked.completed_at is not None
        with session_factory() as db:
            event = db.exec(select(CounterEvent)).one()
        assert event.event_type == "learn_mark"
        assert event.delta == 0
        assert event.item_id == "al-fatiha"

    def test_second_mark_keeps_completed_at(self, app_context, goal_factory, clock):
        goal = goal_factory(goal_type="learn", target_count=1)

        with app_context.unit_of_work() as services:
            first = services.goals.mark_learned(USER_ID, goal.id)
        clock.advance(hours=1)
        with app_context.unit_of_work() as services:
            second = services.goals.mark_learned(USER_ID, goal.id)

        assert second.completed_at == first.completed_at

    def test_foreign_goal_not_found(self, app_context, goal_factory):
        goal = goal_factory(user_id="user-2")

        with pytest.raises(NotFoundError):
            with app_context.unit_of_work() as services:
                services.goals.mark_learned(USER_ID, goal.id)

    def test_repeated_offline_id_is_rejected(self, app_context, goal_factory, session_factory):
        goal = goal_factory(goal_type="learn", target_count=1)

        with app_context.unit_of_work() as services:
            services.goals.mark_learned(USER_ID, goal.id, offline_id="learn-1")
        with pytest.raises(DuplicateEventError):
            with app_context.unit_of_work() as services:
                services.goals.mark_learned(USER_ID, goal.id, offline_id="learn-1")

        with session_factory() as db:
            assert len(db.exec(select(CounterEvent)).all()) == 1


class TestApplyDelta:
    def test_unsaved_goal_is_not_found(self, app_context):
        with pytest.raises(NotFoundError):
            with app_context.unit_of_work() as services:
                services.goals.apply_delta(Goal(user_id=USER_ID, category="azkar", target_count=5), 1)
