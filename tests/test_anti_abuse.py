"""Tests for burst detection on live taps."""

from __future__ import annotations

from datetime import timedelta

from sqlmodel import select

from tasbih.models import CounterEvent


class TestBurstDetection:
    def test_101_taps_within_one_second(self, counting_session_factory, tap, clock):
        session = counting_session_factory()

        results = []
        for _ in range(101):
            results.append(tap(session.id, 1))
            clock.advance(milliseconds=5)

        assert not any(r.suspected for r in results[:100])
        assert results[100].suspected is True

    def test_101_taps_spread_over_two_seconds(self, counting_session_factory, tap, clock):
        session = counting_session_factory()
        step = timedelta(seconds=2) / 101

        results = []
        for _ in range(101):
            results.append(tap(session.id, 1))
            clock.set(clock() + step)

        assert not any(r.suspected for r in results)

    def test_large_single_delta_is_suspected(self, counting_session_factory, tap):
        session = counting_session_factory()

        assert tap(session.id, 101).suspected is True

    def test_negative_deltas_count_by_magnitude(self, counting_session_factory, tap):
        session = counting_session_factory()
        tap(session.id, 60)

        assert tap(session.id, -41).suspected is True

    def test_suspected_tap_is_still_recorded(self, counting_session_factory, tap, session_factory):
        session = counting_session_factory()

        result = tap(session.id, 150)

        with session_factory() as db:
            event = db.exec(select(CounterEvent)).one()
        assert result.value_after == 150
        assert event.suspected is True

    def test_other_users_do_not_count(self, counting_session_factory, tap):
        noisy = counting_session_factory(user_id="noisy")
        quiet = counting_session_factory(user_id="quiet")
        tap(noisy.id, 100, user_id="noisy")

        assert tap(quiet.id, 1, user_id="quiet").suspected is False

    def test_live_tap_with_offline_id_is_checked(self, counting_session_factory, tap):
        session = counting_session_factory()

        assert tap(session.id, 150, offline_id="client-1").suspected is True

    def test_replayed_tap_is_exempt(self, counting_session_factory, tap):
        session = counting_session_factory()

        assert tap(session.id, 150, replayed=True).suspected is False


class TestTrailingWindow:
    def test_taps_after_the_checked_instant_are_ignored(self, app_context, counting_session_factory, tap, clock):
        session = counting_session_factory()
        earlier = clock()
        clock.advance(hours=1)
        tap(session.id, 90)

        with app_context.unit_of_work() as services:
            verdict = services.abuse.check("user-1", 20, now=earlier)

        assert verdict.window_total == 20
        assert verdict.suspected is False

    def test_taps_inside_the_window_are_counted(self, app_context, counting_session_factory, tap, clock):
        session = counting_session_factory()
        tap(session.id, 90)
        clock.advance(milliseconds=500)

        with app_context.unit_of_work() as services:
            verdict = services.abuse.check("user-1", 20)

        assert verdict.window_total == 110
        assert verdict.suspected is True
