"""Application context for dependency injection."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelCalculationJobRepository,
    SQLModelCounterEventRepository,
    SQLModelDailyBucketRepository,
    SQLModelGoalRepository,
    SQLModelProfileRepository,
    SQLModelSessionRepository,
)
from .services.anti_abuse import AntiAbuseMonitor
from .services.counter import CounterEventRecorder
from .services.daily_buckets import DailyBucketAggregator
from .services.goals import GoalProgressTracker
from .services.metrics import MetricsAggregator
from .services.reports import HeatmapReportBuilder
from .services.sessions import SessionManager
from .services.webhooks import CalculationWebhookProcessor
from .timeutils import utcnow


@dataclass
class CoreServices:
    """Repositories and services bound to one database transaction."""

    session: Session

    # Repositories
    profile_repo: SQLModelProfileRepository
    goal_repo: SQLModelGoalRepository
    session_repo: SQLModelSessionRepository
    event_repo: SQLModelCounterEventRepository
    bucket_repo: SQLModelDailyBucketRepository
    job_repo: SQLModelCalculationJobRepository

    # Services
    sessions: SessionManager
    goals: GoalProgressTracker
    buckets: DailyBucketAggregator
    abuse: AntiAbuseMonitor
    counter: CounterEventRecorder
    reports: HeatmapReportBuilder
    webhooks: CalculationWebhookProcessor


def build_core_services(
    session: Session, config: BaseConfig, clock: Callable[[], datetime]
) -> CoreServices:
    """Wire every repository and service onto ``session``."""

    tz = config.DEFAULT_TIMEZONE
    profile_repo = SQLModelProfileRepository(session)
    goal_repo = SQLModelGoalRepository(session)
    session_repo = SQLModelSessionRepository(session)
    event_repo = SQLModelCounterEventRepository(session)
    bucket_repo = SQLModelDailyBucketRepository(session)
    job_repo = SQLModelCalculationJobRepository(session)

    goals = GoalProgressTracker(goal_repo, event_repo, profile_repo, clock=clock, default_timezone=tz)
    buckets = DailyBucketAggregator(
        bucket_repo,
        segment_target=config.DAILY_SEGMENT_TARGET,
        reset_window_minutes=config.RESET_WINDOW_MINUTES,
        clock=clock,
    )
    abuse = AntiAbuseMonitor(
        event_repo,
        window_seconds=config.ABUSE_WINDOW_SECONDS,
        threshold=config.ABUSE_THRESHOLD,
        clock=clock,
    )
    return CoreServices(
        session=session,
        profile_repo=profile_repo,
        goal_repo=goal_repo,
        session_repo=session_repo,
        event_repo=event_repo,
        bucket_repo=bucket_repo,
        job_repo=job_repo,
        sessions=SessionManager(session_repo, goal_repo, clock=clock),
        goals=goals,
        buckets=buckets,
        abuse=abuse,
        counter=CounterEventRecorder(
            sessions=session_repo,
            events=event_repo,
            profiles=profile_repo,
            goals=goals,
            buckets=buckets,
            abuse=abuse,
            clock=clock,
            default_timezone=tz,
        ),
        reports=HeatmapReportBuilder(
            profiles=profile_repo,
            goals=goal_repo,
            events=event_repo,
            buckets=bucket_repo,
            clock=clock,
            default_timezone=tz,
        ),
        webhooks=CalculationWebhookProcessor(job_repo, clock=clock),
    )


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    # Configuration
    config: BaseConfig

    # Database
    engine: object
    session_factory: SessionFactory

    # Process-local request metrics
    metrics: MetricsAggregator

    clock: Callable[[], datetime] = field(default=utcnow)

    @contextmanager
    def unit_of_work(self) -> Iterator[CoreServices]:
        """Yield services sharing one transaction; commit on success, roll back on error."""

        with self.session_factory() as session:
            yield build_core_services(session, self.config, self.clock)


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    clock: Callable[[], datetime] | None = None,
    metrics: MetricsAggregator | None = None,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)
    clock = clock or utcnow
    if metrics is None:
        metrics = MetricsAggregator(
            capacity=config.METRICS_CAPACITY,
            retention_minutes=config.METRICS_RETENTION_MINUTES,
            slow_threshold_ms=config.METRICS_SLOW_THRESHOLD_MS,
            clock=clock,
        )
    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        metrics=metrics,
        clock=clock,
    )


__all__ = ["AppContext", "CoreServices", "build_core_services", "create_app_context"]
