"""Flask CLI commands for Smart Tasbih."""

from __future__ import annotations

import click
from sqlalchemy.exc import SQLAlchemyError


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("tasbih-init-db")
    def tasbih_init_db() -> None:
        """Create any missing database tables."""

        from .extensions import get_context
        from .infra.database import init_database

        init_database(get_context().engine)
        click.echo("Database schema is up to date.")

    @app.cli.command("tasbih-daily-reset")
    @click.option("--user", "user_ids", multiple=True, help="Limit the sweep to these user ids")
    @click.option("--verbose", is_flag=True, default=False, help="Print one line per user")
    def tasbih_daily_reset(user_ids: tuple[str, ...], verbose: bool) -> None:
        """Create today's daily bucket for users whose local midnight just passed."""

        from .extensions import get_context
        from .services.daily_buckets import ERROR, ResetResult

        context = get_context()
        with context.unit_of_work() as services:
            profiles = services.profile_repo.list_all()
        if user_ids:
            wanted = set(user_ids)
            profiles = [profile for profile in profiles if profile.user_id in wanted]

        # One transaction per user so a failed insert does not poison the rest.
        now = context.clock()
        results = []
        for profile in profiles:
            try:
                with context.unit_of_work() as services:
                    batch = services.buckets.reset_due([profile], now=now)
            except SQLAlchemyError as exc:
                batch = [ResetResult(profile.user_id, ERROR, error=str(exc))]
            results.extend(batch)

        counts: dict[str, int] = {}
        for result in results:
            counts[result.status] = counts.get(result.status, 0) + 1
            if verbose:
                click.echo(f"{result.user_id}: {result.status} {result.date_local or ''}".rstrip())
        summary = ", ".join(f"{status}={count}" for status, count in sorted(counts.items()))
        click.echo(f"Daily reset complete: {summary or 'no users'}")
