"""Request, response and error hooks applied around each call."""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TypeVar

from api_client.http.errors import ApiError
from api_client.http.models import ApiResponse, RequestDescription


T = TypeVar("T")

RequestInterceptor = Callable[
    [RequestDescription], RequestDescription | Awaitable[RequestDescription]
]
ResponseInterceptor = Callable[[ApiResponse], ApiResponse | Awaitable[ApiResponse]]
ErrorHandler = Callable[[ApiError], None | Awaitable[None]]
TokenProvider = Callable[[], str | None]


async def resolve(value: T | Awaitable[T]) -> T:
    """Await a hook result if the hook was a coroutine function."""
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class Interceptors:
    """Single-slot hooks passed to the executor at construction.

    Each call snapshots the value when it starts, so swapping hooks never
    affects calls already in flight.

    Attributes:
        on_request: Transforms the description once per call, before the
            first attempt.
        on_response: Transforms the successful response once.
        on_error: Observes the terminal failure once; cannot suppress it.
    """

    on_request: RequestInterceptor | None = None
    on_response: ResponseInterceptor | None = None
    on_error: ErrorHandler | None = None

    def with_request(self, fn: RequestInterceptor | None) -> "Interceptors":
        return replace(self, on_request=fn)

    def with_response(self, fn: ResponseInterceptor | None) -> "Interceptors":
        return replace(self, on_response=fn)

    def with_error(self, fn: ErrorHandler | None) -> "Interceptors":
        return replace(self, on_error=fn)

    async def apply_request(
        self, description: RequestDescription
    ) -> RequestDescription:
        if self.on_request is None:
            return description
        return await resolve(self.on_request(description))

    async def apply_response(self, response: ApiResponse) -> ApiResponse:
        if self.on_response is None:
            return response
        return await resolve(self.on_response(response))

    async def notify_error(self, error: ApiError) -> None:
        if self.on_error is None:
            return
        await resolve(self.on_error(error))


def bearer_auth(token_provider: TokenProvider) -> RequestInterceptor:
    """Build a request hook that attaches a bearer token.

    Headers are left untouched when the provider yields no token.

    Args:
        token_provider: Returns the current access token, or None.

    Returns:
        Request interceptor.
    """

    def attach(description: RequestDescription) -> RequestDescription:
        token = token_provider()
        if not token:
            return description
        return description.with_headers({"Authorization": f"Bearer {token}"})

    return attach

