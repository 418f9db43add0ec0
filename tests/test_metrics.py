"""Tests for the in-process metrics aggregator."""

from __future__ import annotations

import logging
import random
import threading

import pytest

from tasbih.services.metrics import MetricsAggregator, percentile


class TestPercentile:
    def test_nearest_rank_index(self):
        values = [float(v) for v in range(1, 11)]

        assert percentile(values, 0.50) == 6.0  # index floor(10 * 0.5) = 5
        assert percentile(values, 0.95) == 10.0  # index 9
        assert percentile(values, 0.99) == 10.0  # index clamped to 9

    def test_empty_and_single(self):
        assert percentile([], 0.5) == 0.0
        assert percentile([42.0], 0.99) == 42.0


class TestAggregate:
    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_percentiles_are_ordered(self, metrics, seed):
        rng = random.Random(seed)
        for _ in range(rng.randint(1, 400)):
            metrics.record("/counter/tap", "POST", rng.uniform(0.1, 140.0), 200)

        (stats,) = metrics.aggregate()

        assert stats.p50_duration_ms <= stats.p95_duration_ms <= stats.p99_duration_ms <= stats.max_duration_ms
        assert stats.min_duration_ms <= stats.avg_duration_ms <= stats.max_duration_ms

    def test_groups_by_method_and_endpoint(self, metrics):
        metrics.record("/counter/tap", "POST", 10, 200)
        metrics.record("/counter/tap", "POST", 20, 500, error="boom")
        metrics.record("/bootstrap", "GET", 5, 200)
        metrics.record("/bootstrap", "get", 7, 404)

        results = {(r.method, r.endpoint): r for r in metrics.aggregate()}

        tap_stats = results[("POST", "/counter/tap")]
        assert tap_stats.total_requests == 2
        assert tap_stats.success_count == 1
        assert tap_stats.error_count == 1
        assert tap_stats.avg_duration_ms == 15
        assert results[("GET", "/bootstrap")].total_requests == 2

    def test_filters(self, metrics):
        metrics.record("/counter/tap", "POST", 10, 200)
        metrics.record("/bootstrap", "GET", 5, 200)

        assert [r.endpoint for r in metrics.aggregate(endpoint="/bootstrap")] == ["/bootstrap"]
        assert [r.method for r in metrics.aggregate(method="post")] == ["POST"]
        assert metrics.endpoint_metrics("/missing", "GET") is None

    def test_window_excludes_old_entries(self, metrics, clock):
        metrics.record("/bootstrap", "GET", 100, 200)
        clock.advance(minutes=90)
        metrics.record("/bootstrap", "GET", 1, 200)

        stats = metrics.endpoint_metrics("/bootstrap", "GET", window_minutes=60)

        assert stats.total_requests == 1
        assert stats.max_duration_ms == 1


class TestEviction:
    def test_capacity_drops_oldest(self, clock):
        aggregator = MetricsAggregator(capacity=3, clock=clock)
        for duration in (1, 2, 3, 4):
            aggregator.record("/x", "GET", duration, 200)

        (stats,) = aggregator.aggregate()

        assert len(aggregator) == 3
        assert stats.min_duration_ms == 2

    def test_cleanup_by_age(self, metrics, clock):
        metrics.record("/x", "GET", 1, 200)
        clock.advance(minutes=30)
        metrics.record("/x", "GET", 2, 200)

        assert metrics.cleanup(retention_minutes=10) == 1
        assert len(metrics) == 1

    def test_record_evicts_past_retention(self, clock):
        aggregator = MetricsAggregator(retention_minutes=5, clock=clock)
        aggregator.record("/x", "GET", 1, 200)
        clock.advance(minutes=6)
        aggregator.record("/x", "GET", 2, 200)

        assert len(aggregator) == 1

    def test_clear(self, metrics):
        metrics.record("/x", "GET", 1, 200)
        metrics.clear()

        assert len(metrics) == 0

    def test_concurrent_writers(self, clock):
        aggregator = MetricsAggregator(capacity=10_000, clock=clock)

        def worker():
            for _ in range(500):
                aggregator.record("/x", "GET", 1, 200)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(aggregator) == 4000


class TestLogging:
    def test_slow_and_failed_requests_are_logged(self, metrics, caplog):
        caplog.set_level(logging.INFO, logger="tasbih")

        metrics.record("/counter/tap", "POST", 500, 200, user_id="user-1")
        metrics.record("/counter/tap", "POST", 5, 500, error="db down")

        levels = [(r.levelno, r.getMessage()) for r in caplog.records if r.name == "tasbih.metrics"]
        assert any(level == logging.WARNING and "Slow request" in msg for level, msg in levels)
        assert any(level == logging.ERROR and "db down" in msg for level, msg in levels)

    def test_measure_records_exceptions(self, metrics):
        with pytest.raises(RuntimeError):
            with metrics.measure("/boom", "POST"):
                raise RuntimeError("kaput")

        (stats,) = metrics.aggregate()
        assert stats.error_count == 1
