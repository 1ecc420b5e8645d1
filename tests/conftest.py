"""Shared fixtures for the test suite."""

from collections.abc import Generator

import pytest

from api_client.http.metrics import RequestMetrics


@pytest.fixture(autouse=True)
def reset_request_metrics() -> Generator[None, None, None]:
    """Give every test a fresh metrics singleton."""
    RequestMetrics.reset()
    yield
    RequestMetrics.reset()
