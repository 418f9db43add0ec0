"""In-process request metrics with percentile aggregation."""

from __future__ import annotations

import math
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Any, Callable, Deque, Dict, Iterator, Optional

from ..logging_config import get_logger

logger = get_logger("metrics")

__all__ = [
    "AggregatedMetrics",
    "MetricsAggregator",
    "PerformanceMetric",
    "percentile",
]


@dataclass
class PerformanceMetric:
    """One handled request."""

    endpoint: str
    method: str
    duration_ms: float
    status_code: int
    timestamp: datetime
    user_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400 or self.error is not None


@dataclass
class AggregatedMetrics:
    """Statistics for one (method, endpoint) group within a window."""

    endpoint: str
    method: str
    total_requests: int
    success_count: int
    error_count: int
    avg_duration_ms: float
    p50_duration_ms: float
    p95_duration_ms: float
    p99_duration_ms: float
    min_duration_ms: float
    max_duration_ms: float
    period_start: datetime
    period_end: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "method": self.method,
            "total_requests": self.total_requests,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "avg_duration_ms": round(self.avg_duration_ms, 3),
            "p50_duration_ms": self.p50_duration_ms,
            "p95_duration_ms": self.p95_duration_ms,
            "p99_duration_ms": self.p99_duration_ms,
            "min_duration_ms": self.min_duration_ms,
            "max_duration_ms": self.max_duration_ms,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
        }


def percentile(sorted_values: list[float], fraction: float) -> float:
    """Nearest-rank percentile: ``sorted[floor(n * fraction)]`` clamped to the list."""

    if not sorted_values:
        return 0.0
    index = math.floor(len(sorted_values) * fraction)
    index = min(max(index, 0), len(sorted_values) - 1)
    return sorted_values[index]


class MetricsAggregator:
    """Bounded, thread-safe store of request metrics.

    Entries are evicted oldest-first once ``capacity`` is exceeded, and by
    ``cleanup()`` once they are older than ``retention_minutes``. The store is
    process-local; each app instance sees only its own requests.
    """

    def __init__(
        self,
        *,
        capacity: int = 10_000,
        retention_minutes: int = 1440,
        slow_threshold_ms: float = 150,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.retention_minutes = retention_minutes
        self.slow_threshold_ms = slow_threshold_ms
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._store: Deque[PerformanceMetric] = deque(maxlen=capacity)
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def record(
        self,
        endpoint: str,
        method: str,
        duration_ms: float,
        status_code: int,
        *,
        user_id: str | None = None,
        error: str | None = None,
    ) -> PerformanceMetric:
        """Store one measurement and log slow or failed requests."""

        metric = PerformanceMetric(
            endpoint=endpoint,
            method=method.upper(),
            duration_ms=float(duration_ms),
            status_code=status_code,
            timestamp=self._clock(),
            user_id=user_id,
            error=error,
        )
        with self._lock:
            self._store.append(metric)
            self._evict_expired(metric.timestamp)

        if metric.duration_ms > self.slow_threshold_ms:
            logger.warning(
                "Slow request detected: %s %s took %.1fms (user: %s)",
                metric.method,
                endpoint,
                metric.duration_ms,
                user_id or "unknown",
                extra={"endpoint": endpoint, "duration_ms": metric.duration_ms},
            )
        if metric.is_error:
            logger.error(
                "Error in %s %s: %s (user: %s)",
                metric.method,
                endpoint,
                error or f"HTTP {status_code}",
                user_id or "unknown",
                extra={"endpoint": endpoint, "status_code": status_code},
            )
        return metric

    @contextmanager
    def measure(
        self, endpoint: str, method: str, *, user_id: str | None = None
    ) -> Iterator[None]:
        """Time the wrapped block; exceptions are recorded as status 500 and re-raised."""

        started = time.perf_counter()
        status_code = 200
        error: str | None = None
        try:
            yield
        except Exception as exc:
            status_code = 500
            error = str(exc) or exc.__class__.__name__
            raise
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            self.record(endpoint, method, duration_ms, status_code, user_id=user_id, error=error)

    def aggregate(
        self,
        endpoint: str | None = None,
        method: str | None = None,
        window_minutes: int = 60,
    ) -> list[AggregatedMetrics]:
        """Group entries in the window by (method, endpoint) and compute statistics."""

        period_end = self._clock()
        period_start = period_end - timedelta(minutes=window_minutes)
        wanted_method = method.upper() if method else None

        with self._lock:
            snapshot = list(self._store)

        grouped: Dict[tuple[str, str], list[PerformanceMetric]] = {}
        for metric in snapshot:
            if metric.timestamp < period_start:
                continue
            if endpoint and metric.endpoint != endpoint:
                continue
            if wanted_method and metric.method != wanted_method:
                continue
            grouped.setdefault((metric.method, metric.endpoint), []).append(metric)

        results: list[AggregatedMetrics] = []
        for (group_method, group_endpoint), metrics in sorted(grouped.items()):
            durations = sorted(m.duration_ms for m in metrics)
            errors = sum(1 for m in metrics if m.is_error)
            results.append(
                AggregatedMetrics(
                    endpoint=group_endpoint,
                    method=group_method,
                    total_requests=len(metrics),
                    success_count=len(metrics) - errors,
                    error_count=errors,
                    avg_duration_ms=sum(durations) / len(durations),
                    p50_duration_ms=percentile(durations, 0.50),
                    p95_duration_ms=percentile(durations, 0.95),
                    p99_duration_ms=percentile(durations, 0.99),
                    min_duration_ms=durations[0],
                    max_duration_ms=durations[-1],
                    period_start=period_start,
                    period_end=period_end,
                )
            )
        return results

    def endpoint_metrics(
        self, endpoint: str, method: str, window_minutes: int = 60
    ) -> Optional[AggregatedMetrics]:
        """Statistics for a single endpoint, or ``None`` when it saw no traffic."""

        results = self.aggregate(endpoint, method, window_minutes)
        return results[0] if results else None

    def cleanup(self, retention_minutes: int | None = None) -> int:
        """Drop entries older than the retention period; return how many were removed."""

        minutes = self.retention_minutes if retention_minutes is None else retention_minutes
        with self._lock:
            removed = self._evict_expired(self._clock(), minutes)
        if removed:
            logger.info("Cleaned up %d old metrics (older than %d minutes)", removed, minutes)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def _evict_expired(self, now: datetime, retention_minutes: int | None = None) -> int:
        # Caller holds the lock. Entries are appended in time order.
        minutes = self.retention_minutes if retention_minutes is None else retention_minutes
        cutoff = now - timedelta(minutes=minutes)
        removed = 0
        while self._store and self._store[0].timestamp < cutoff:
            self._store.popleft()
            removed += 1
        return removed
