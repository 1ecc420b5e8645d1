"""ApiClient façade: method shortcuts over the request executor."""

from types import TracebackType
from typing import Any

from api_client.http.cancellation import CancellationRegistry
from api_client.http.codec import merge_headers
from api_client.http.config import ClientConfig
from api_client.http.constants import BLOB_ACCEPT
from api_client.http.executor import RequestExecutor
from api_client.http.interceptors import (
    ErrorHandler,
    Interceptors,
    RequestInterceptor,
    ResponseInterceptor,
    bearer_auth,
)
from api_client.http.models import (
    ApiResponse,
    HttpMethod,
    RequestDescription,
    ResponseType,
)
from api_client.http.transport import HttpxTransport, Transport
from api_client.observability import get_logger
from api_client.settings.app import AppSettings, get_settings


logger = get_logger("http")


class ApiClient:
    """Client for a single backend.

    Builds request descriptions from method shortcuts, applies the
    configured defaults and hands them to a RequestExecutor.

    Example:
        async with ApiClient(ClientConfig(base_url="https://api.example.com")) as api:
            response = await api.get("/users", params={"page": 2})
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        base_url_name: str | None = None,
        default_headers: dict[str, str] | None = None,
        transport: Transport | None = None,
        interceptors: Interceptors | None = None,
        registry: CancellationRegistry | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration.
            base_url_name: Name of an alternative address in config.base_urls.
            default_headers: Extra headers layered over config.default_headers.
            transport: HTTP transport; an HttpxTransport is created if omitted.
            interceptors: Initial request/response/error hooks.
            registry: Cancel-key registry, e.g. to share keys across clients.
        """
        self._config = config or ClientConfig()
        self._transport = transport or HttpxTransport()
        self._executor = RequestExecutor(
            transport=self._transport,
            base_url=self._config.select_base_url(base_url_name),
            default_headers=merge_headers(
                self._config.default_headers, default_headers or {}
            ),
            interceptors=interceptors,
            registry=(
                registry
                if registry is not None
                else CancellationRegistry(
                    collision_policy=self._config.key_collision_policy
                )
            ),
            retry_policy=self._config.retry_policy,
        )

    @classmethod
    def from_settings(
        cls, settings: AppSettings | None = None, **kwargs: Any
    ) -> "ApiClient":
        """Create a client from environment-backed settings.

        A bearer token from API_ACCESS_TOKEN is attached to every request
        when set.

        Args:
            settings: Loaded settings; read from the environment if omitted.
            kwargs: Passed through to the constructor.

        Returns:
            Configured ApiClient.
        """
        settings = settings or get_settings()
        kwargs.setdefault(
            "interceptors",
            Interceptors(on_request=bearer_auth(lambda: settings.api_access_token)),
        )
        return cls(ClientConfig.from_settings(settings), **kwargs)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    def set_headers(self, headers: dict[str, str]) -> None:
        """Merge headers into the defaults sent with every request."""
        self._executor.default_headers = merge_headers(
            self._executor.default_headers, headers
        )

    def set_request_interceptor(self, interceptor: RequestInterceptor | None) -> None:
        self._executor.interceptors = self._executor.interceptors.with_request(
            interceptor
        )

    def set_response_interceptor(
        self, interceptor: ResponseInterceptor | None
    ) -> None:
        self._executor.interceptors = self._executor.interceptors.with_response(
            interceptor
        )

    def set_error_handler(self, handler: ErrorHandler | None) -> None:
        self._executor.interceptors = self._executor.interceptors.with_error(handler)

    def cancel_request(self, key: str) -> bool:
        """Cancel the in-flight call registered under a key.

        Args:
            key: Cancel key given to the call.

        Returns:
            True if a call was cancelled; unknown keys are a no-op.
        """
        return self._executor.cancel(key)

    async def request(  # noqa: PLR0913
        self,
        path: str,
        *,
        method: HttpMethod | str = HttpMethod.GET,
        headers: dict[str, str] | None = None,
        body: Any = None,
        timeout_ms: int | None = None,
        retries: int | None = None,
        params: dict[str, Any] | None = None,
        cancel_key: str | None = None,
        response_type: ResponseType = ResponseType.JSON,
    ) -> ApiResponse:
        """Perform one call.

        Args:
            path: Path appended to the base URL.
            method: HTTP method.
            headers: Call-specific headers.
            body: Request body.
            timeout_ms: Call timeout; config default if omitted, 0 disables.
            retries: Maximum attempts; config default if omitted.
            params: Query parameters.
            cancel_key: Key for cancel_request().
            response_type: How to decode a successful body.

        Returns:
            ApiResponse with decoded data.

        Raises:
            ApiError: If the call fails.
        """
        description = RequestDescription(
            method=method,
            path=path,
            headers=headers or {},
            body=body,
            params=params or {},
            timeout_ms=(
                self._config.default_timeout_ms if timeout_ms is None else timeout_ms
            ),
            retries=self._config.default_retries if retries is None else retries,
            cancel_key=cancel_key,
            response_type=response_type,
        )
        return await self._executor.run(description)

    async def get(self, path: str, **options: Any) -> ApiResponse:
        return await self.request(path, **options, method=HttpMethod.GET)

    async def post(self, path: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self.request(path, **options, method=HttpMethod.POST, body=body)

    async def put(self, path: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self.request(path, **options, method=HttpMethod.PUT, body=body)

    async def patch(self, path: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self.request(path, **options, method=HttpMethod.PATCH, body=body)

    async def delete(self, path: str, **options: Any) -> ApiResponse:
        return await self.request(path, **options, method=HttpMethod.DELETE)

    async def head(self, path: str, **options: Any) -> ApiResponse:
        return await self.request(path, **options, method=HttpMethod.HEAD)

    async def options(self, path: str, **options: Any) -> ApiResponse:
        return await self.request(path, **options, method=HttpMethod.OPTIONS)

    async def get_blob(self, path: str, **options: Any) -> ApiResponse:
        """Download a binary body (PDF or octet-stream).

        Args:
            path: Path appended to the base URL.
            options: Same options as request(), except method and body.

        Returns:
            ApiResponse whose data is the raw body bytes.
        """
        headers = merge_headers(
            options.pop("headers", None) or {}, {"Accept": BLOB_ACCEPT}
        )
        return await self.request(
            path,
            **options,
            method=HttpMethod.GET,
            headers=headers,
            response_type=ResponseType.BYTES,
        )

    async def aclose(self) -> None:
        """Close the underlying transport."""
        logger.debug("client_closed")
        await self._transport.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
