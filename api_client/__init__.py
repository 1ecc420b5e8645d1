"""Async HTTP client for a single backend."""

from api_client.http import (
    ApiClient,
    ApiError,
    ApiResponse,
    ClientConfig,
    HttpMethod,
    Interceptors,
    RequestDescription,
    RequestExecutor,
)


__all__ = [
    "ApiClient",
    "ApiError",
    "ApiResponse",
    "ClientConfig",
    "HttpMethod",
    "Interceptors",
    "RequestDescription",
    "RequestExecutor",
]
