"""Observability module for logging."""

from api_client.observability.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)


__all__ = [
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "get_logger",
]
