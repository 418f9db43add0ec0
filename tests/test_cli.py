"""Tests for Flask CLI commands."""

from __future__ import annotations

from datetime import datetime, timezone

from tasbih.models import DailyBucket


def test_init_db_command(app):
    result = app.test_cli_runner().invoke(args=["tasbih-init-db"])

    assert result.exit_code == 0
    assert "up to date" in result.output


def test_daily_reset_command(app, clock, profile_factory, session_factory):
    profile_factory(user_id="dubai", timezone_name="Asia/Dubai")
    profile_factory(user_id="london", timezone_name="Europe/London")
    clock.set(datetime(2025, 3, 10, 20, 3, tzinfo=timezone.utc))  # 00:03 in Dubai

    result = app.test_cli_runner().invoke(args=["tasbih-daily-reset", "--verbose"])

    assert result.exit_code == 0, result.output
    assert "dubai: reset 2025-03-11" in result.output
    assert "london: skipped" in result.output
    assert "reset=1" in result.output
    with session_factory() as db:
        assert db.get(DailyBucket, ("dubai", "2025-03-11")) is not None


def test_daily_reset_user_filter(app, clock, profile_factory):
    profile_factory(user_id="a", timezone_name="UTC")
    profile_factory(user_id="b", timezone_name="UTC")
    clock.set(datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc))

    result = app.test_cli_runner().invoke(args=["tasbih-daily-reset", "--user", "a"])

    assert result.exit_code == 0
    assert "reset=1" in result.output
