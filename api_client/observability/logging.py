"""Structured logging for the API client.

Every client module logs through get_logger(component), which returns a
lazy structlog proxy, so configure_logging() may run before or after the
client modules are imported.
"""

import logging
import sys
from collections.abc import Mapping, MutableMapping
from typing import Any, TextIO

import structlog


def redact_event_fields(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Redact credentials in the ``headers`` and ``url`` fields of an event."""
    from api_client.http.redact import (  # noqa: PLC0415
        redact_headers,
        redact_url_credentials,
    )

    headers = event_dict.get("headers")
    if isinstance(headers, Mapping):
        event_dict["headers"] = redact_headers(headers)
    url = event_dict.get("url")
    if isinstance(url, str):
        event_dict["url"] = redact_url_credentials(url)
    return event_dict


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
    default_context: Mapping[str, str] | None = None,
) -> None:
    """Configure structlog for applications using the client.

    Events carry the log level, an ISO timestamp and any context bound with
    bind_request_context(). Header and URL fields are redacted before
    rendering.

    Args:
        level: Minimum level emitted (default: INFO).
        output: Output stream (default: stderr).
        json_format: Render JSON lines instead of console output.
        default_context: Context bound to every event, e.g. a service name.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_event_fields,
        structlog.processors.format_exc_info,
    ]
    processors.append(
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )
    if default_context:
        bind_request_context(**default_context)


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a lazy logger tagged with the emitting client component.

    Args:
        component: Component name, e.g. "http".

    Returns:
        Logger proxy that resolves the current configuration on each call.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(component=component)
    return logger


def bind_request_context(**context: str) -> None:
    """Bind context (e.g. a correlation id) to all subsequent log messages.

    Uses contextvars, so the binding follows the current asyncio task.
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context(*keys: str) -> None:
    """Remove bound context keys; all keys when none are given."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()
