"""Metrics collection for the HTTP request layer."""

from collections import Counter
from threading import Lock

from api_client.http.errors import ErrorKind


class RequestMetrics:
    """Collects metrics for calls made through the executor.

    Provides thread-safe counters for:
    - http_requests_total{status}
    - http_attempts_total / http_retry_total
    - http_failures_total{kind}
    - http_duration_ms_total

    Metrics are designed to be exportable to Prometheus or similar systems.
    """

    _instance: "RequestMetrics | None" = None
    _instance_lock = Lock()

    def __init__(self) -> None:
        """Initialize the metrics collector."""
        self._requests_by_status: Counter[int] = Counter()
        self._failures_by_kind: Counter[str] = Counter()
        self._attempts = 0
        self._retries = 0
        self._calls = 0
        self._duration_ms_total = 0.0
        self._lock = Lock()

    @classmethod
    def get_instance(cls) -> "RequestMetrics":
        """Get the singleton metrics instance.

        Returns:
            The shared RequestMetrics instance.
        """
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        with cls._instance_lock:
            cls._instance = None

    def record_attempt(self) -> None:
        """Record one transport invocation."""
        with self._lock:
            self._attempts += 1

    def record_retry(self) -> None:
        """Record a retry following a failed attempt."""
        with self._lock:
            self._retries += 1

    def record_response(self, status: int) -> None:
        """Record an HTTP response received from the transport.

        Args:
            status: HTTP status code.
        """
        with self._lock:
            self._requests_by_status[status] += 1

    def record_failure(self, kind: ErrorKind) -> None:
        """Record a terminal call failure.

        Args:
            kind: Classification of the failure.
        """
        with self._lock:
            self._failures_by_kind[kind.value] += 1

    def record_call(self, duration_ms: float) -> None:
        """Record a finished call and its duration.

        Args:
            duration_ms: Wall time of the call in milliseconds.
        """
        with self._lock:
            self._calls += 1
            self._duration_ms_total += duration_ms

    @property
    def avg_duration_ms(self) -> float:
        """Average call duration in milliseconds."""
        with self._lock:
            if self._calls == 0:
                return 0.0
            return self._duration_ms_total / self._calls

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "http_requests_total": dict(self._requests_by_status),
                "http_attempts_total": self._attempts,
                "http_retry_total": self._retries,
                "http_failures_total": dict(self._failures_by_kind),
                "http_calls_total": self._calls,
                "http_duration_ms_total": self._duration_ms_total,
            }
