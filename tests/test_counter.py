"""Tests for the Counter Event Recorder and goal progress transitions."""

from __future__ import annotations

import pytest
from sqlmodel import select

from tasbih.errors import DuplicateEventError, NotFoundError, ValidationError
from tasbih.models import CounterEvent, Goal
from tasbih.timeutils import as_utc

from conftest import USER_ID


def _goal(session_factory, goal_id: int) -> Goal:
    with session_factory() as session:
        return session.get(Goal, goal_id)


def _events(session_factory) -> list[CounterEvent]:
    with session_factory() as session:
        return list(session.exec(select(CounterEvent).order_by(CounterEvent.id)).all())


class TestGoalProgress:
    """Progress floors at zero and completion fires exactly once."""

    def test_tap_past_target_completes_goal(self, goal_factory, counting_session_factory, tap):
        """Target 10 at progress 8, +3 gives 11 with no clamp at the target."""
        goal = goal_factory(target_count=10, progress=8)
        session = counting_session_factory(goal_id=goal.id)

        result = tap(session.id, 3)

        assert result.value_after == 11
        assert result.goal.progress == 11
        assert result.goal.is_completed is True
        assert result.goal.status == "completed"
        assert result.goal.just_completed is True

    def test_completion_is_not_refired(
        self, goal_factory, counting_session_factory, tap, session_factory, clock
    ):
        goal = goal_factory(target_count=2)
        session = counting_session_factory(goal_id=goal.id)

        tap(session.id, 2)
        completed_at = _goal(session_factory, goal.id).completed_at
        assert completed_at is not None

        clock.advance(minutes=5)
        again = tap(session.id, 1)
        assert again.goal.just_completed is False
        assert again.goal.status == "completed"
        assert _goal(session_factory, goal.id).completed_at == completed_at

    def test_decrement_below_target_keeps_completed_status(
        self, goal_factory, counting_session_factory, tap, session_factory
    ):
        goal = goal_factory(target_count=3)
        session = counting_session_factory(goal_id=goal.id)

        tap(session.id, 3)
        result = tap(session.id, -2)

        stored = _goal(session_factory, goal.id)
        assert result.value_after == 1
        assert stored.status == "completed"
        assert stored.completed_at is not None

    @pytest.mark.parametrize(
        "deltas",
        [
            [-1],
            [1, -5, 2],
            [3, -1, -1, -1, -1, 4],
            [-10_000, 5, -3],
        ],
    )
    def test_progress_never_negative(self, goal_factory, counting_session_factory, tap, deltas):
        goal = goal_factory(target_count=100)
        session = counting_session_factory(goal_id=goal.id)

        expected = 0
        for delta in deltas:
            expected = max(0, expected + delta)
            result = tap(session.id, delta)
            assert result.goal.progress >= 0
            assert result.goal.progress == expected


class TestTapLogging:
    """Every tap appends one log entry with the resulting value."""

    def test_event_records_goal_value(self, goal_factory, counting_session_factory, tap, session_factory, clock):
        goal = goal_factory(target_count=33, category="azkar", item_id="subhanallah")
        session = counting_session_factory(goal_id=goal.id)

        result = tap(session.id, 5, prayer_segment="fajr")

        events = _events(session_factory)
        assert len(events) == 1
        event = events[0]
        assert event.id == result.event_id
        assert event.event_type == "tap"
        assert event.delta == 5
        assert event.value_after == 5
        assert event.goal_id == goal.id
        assert event.item_id == "subhanallah"
        assert event.prayer_segment == "fajr"
        assert event.timezone == "UTC"
        assert event.suspected is False
        assert as_utc(event.at_ts) == clock()

    def test_session_without_goal_uses_running_value(self, counting_session_factory, tap):
        session = counting_session_factory()

        first = tap(session.id, 4)
        second = tap(session.id, -10)
        third = tap(session.id, 2)

        assert first.goal is None
        assert (first.value_after, second.value_after, third.value_after) == (4, 0, 2)

    def test_none_segment_skips_bucket(self, counting_session_factory, tap):
        session = counting_session_factory()

        result = tap(session.id, 1, prayer_segment="none")

        assert result.daily_bucket is None

    def test_segment_updates_local_bucket(self, profile_factory, counting_session_factory, tap, clock):
        profile_factory(timezone_name="Asia/Dubai")
        clock.set(clock().replace(hour=22, minute=30))  # 02:30 next day in Dubai
        session = counting_session_factory()

        result = tap(session.id, 7, prayer_segment="isha")

        assert result.daily_bucket.date_local == "2025-03-11"
        assert result.daily_bucket.isha == 7
        assert result.daily_bucket.total == 7

    def test_result_shape(self, counting_session_factory, tap):
        session = counting_session_factory()

        payload = tap(session.id, 1, prayer_segment="asr").to_dict()

        assert set(payload) == {"value_after", "goal_progress", "daily_azkar", "suspected", "event_id"}
        assert payload["daily_azkar"]["asr"] == 1


class TestTapErrors:
    def test_unknown_session_is_not_found(self, tap):
        with pytest.raises(NotFoundError):
            tap(9999, 1)

    def test_other_users_session_is_not_found(self, counting_session_factory, tap):
        session = counting_session_factory(user_id="someone-else")

        with pytest.raises(NotFoundError):
            tap(session.id, 1, user_id=USER_ID)

    def test_failed_tap_rolls_back_every_write(
        self, goal_factory, counting_session_factory, tap, session_factory
    ):
        """An invalid segment fails after the goal update; nothing is committed."""
        goal = goal_factory(target_count=10)
        session = counting_session_factory(goal_id=goal.id)

        with pytest.raises(ValidationError):
            tap(session.id, 4, prayer_segment="witr")

        assert _goal(session_factory, goal.id).progress == 0
        assert _events(session_factory) == []

    def test_repeated_offline_id_is_rejected_before_writes(
        self, goal_factory, counting_session_factory, tap, session_factory
    ):
        goal = goal_factory(target_count=10)
        session = counting_session_factory(goal_id=goal.id)
        tap(session.id, 2, offline_id="retry-1")

        with pytest.raises(DuplicateEventError) as excinfo:
            tap(session.id, 2, offline_id="retry-1")

        assert excinfo.value.status_code == 409
        assert _goal(session_factory, goal.id).progress == 2
        assert [e.offline_id for e in _events(session_factory)] == ["retry-1"]
