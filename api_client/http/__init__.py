"""HTTP request layer with timeout, retries, cancellation and interceptors.

This module provides:
- RequestExecutor: the per-call lifecycle (attempt loop raced against a
  timeout timer and external cancellation)
- CancellationRegistry: cancel in-flight calls by caller-chosen key
- Interceptors: request/response/error hooks
- ApiClient: method shortcuts, default headers and base URL selection
"""

from api_client.http.cancellation import (
    AbortReason,
    CancellationHandle,
    CancellationRegistry,
    KeyCollisionPolicy,
)
from api_client.http.client import ApiClient
from api_client.http.config import ClientConfig
from api_client.http.errors import (
    ApiError,
    CancelKeyInUseError,
    DecodeError,
    ErrorKind,
    HttpStatusError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    RetriesExhaustedError,
)
from api_client.http.executor import RequestExecutor
from api_client.http.interceptors import Interceptors, bearer_auth
from api_client.http.metrics import RequestMetrics
from api_client.http.models import (
    ApiResponse,
    FormPayload,
    HttpMethod,
    RequestDescription,
    ResponseType,
    RetryPolicy,
    TransportResponse,
    WireRequest,
)
from api_client.http.redact import redact_headers, redact_url_credentials
from api_client.http.transport import HttpxTransport, Transport


__all__ = [
    # Client
    "ApiClient",
    "ClientConfig",
    # Executor
    "RequestExecutor",
    "Interceptors",
    "bearer_auth",
    # Cancellation
    "AbortReason",
    "CancellationHandle",
    "CancellationRegistry",
    "KeyCollisionPolicy",
    # Transport
    "Transport",
    "HttpxTransport",
    # Models
    "ApiResponse",
    "FormPayload",
    "HttpMethod",
    "RequestDescription",
    "ResponseType",
    "RetryPolicy",
    "TransportResponse",
    "WireRequest",
    # Errors
    "ApiError",
    "ErrorKind",
    "NetworkError",
    "RequestTimeoutError",
    "RequestCancelledError",
    "HttpStatusError",
    "DecodeError",
    "RetriesExhaustedError",
    "CancelKeyInUseError",
    # Metrics
    "RequestMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
