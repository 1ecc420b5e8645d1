"""Tests for RequestMetrics."""

import threading

from api_client.http.errors import ErrorKind
from api_client.http.metrics import RequestMetrics


class TestRequestMetricsSingleton:
    """Tests for singleton pattern."""

    def test_get_instance_returns_same_instance(self) -> None:
        """get_instance returns the same instance each time."""
        assert RequestMetrics.get_instance() is RequestMetrics.get_instance()

    def test_reset_clears_singleton(self) -> None:
        """reset clears the singleton, allowing new instance creation."""
        instance1 = RequestMetrics.get_instance()
        instance1.record_attempt()
        RequestMetrics.reset()
        instance2 = RequestMetrics.get_instance()
        assert instance1 is not instance2
        assert instance2.to_dict()["http_attempts_total"] == 0


class TestRequestMetricsCounters:
    """Tests for counters."""

    def test_counters_start_at_zero(self) -> None:
        """A fresh collector exports empty counters."""
        assert RequestMetrics.get_instance().to_dict() == {
            "http_requests_total": {},
            "http_attempts_total": 0,
            "http_retry_total": 0,
            "http_failures_total": {},
            "http_calls_total": 0,
            "http_duration_ms_total": 0.0,
        }

    def test_status_and_failure_counters(self) -> None:
        """Responses are counted by status, failures by kind."""
        metrics = RequestMetrics.get_instance()
        metrics.record_response(200)
        metrics.record_response(200)
        metrics.record_response(502)
        metrics.record_failure(ErrorKind.TIMEOUT)

        exported = metrics.to_dict()
        assert exported["http_requests_total"] == {200: 2, 502: 1}
        assert exported["http_failures_total"] == {"TIMEOUT": 1}

    def test_avg_duration(self) -> None:
        """Average duration is computed over finished calls."""
        metrics = RequestMetrics.get_instance()
        assert metrics.avg_duration_ms == 0.0

        metrics.record_call(10.0)
        metrics.record_call(30.0)

        assert metrics.avg_duration_ms == 20.0

    def test_concurrent_recording(self) -> None:
        """Counters stay exact under concurrent writers."""
        metrics = RequestMetrics.get_instance()

        def record() -> None:
            for _ in range(1000):
                metrics.record_attempt()

        threads = [threading.Thread(target=record) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert metrics.to_dict()["http_attempts_total"] == 8000
