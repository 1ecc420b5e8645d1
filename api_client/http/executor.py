"""Request executor: timeout, retry and cancellation around one call."""

import asyncio
import time

import structlog

from api_client.http.cancellation import (
    AbortReason,
    CancellationHandle,
    CancellationRegistry,
)
from api_client.http.codec import (
    build_url,
    decode_body,
    decode_error_body,
    encode_body,
    merge_headers,
)
from api_client.http.errors import (
    ApiError,
    HttpStatusError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    RetriesExhaustedError,
)
from api_client.http.interceptors import Interceptors
from api_client.http.metrics import RequestMetrics
from api_client.http.models import (
    ApiResponse,
    HttpMethod,
    RequestDescription,
    RetryPolicy,
    TransportResponse,
    WireRequest,
)
from api_client.http.redact import redact_headers, redact_url_credentials
from api_client.http.transport import Transport
from api_client.observability import get_logger


logger = get_logger("http")


class RequestExecutor:
    """Runs request descriptions against a transport.

    Each call goes through:
    - the request interceptor, once
    - a sequential attempt loop, each attempt raced against the call's
      timeout timer and its external cancel signal
    - the response interceptor on success, or the error handler on
      terminal failure (the failure is always re-raised)

    The call timer and any cancel-key registration are released on
    every exit path.
    """

    def __init__(
        self,
        transport: Transport,
        base_url: str = "",
        default_headers: dict[str, str] | None = None,
        interceptors: Interceptors | None = None,
        registry: CancellationRegistry | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            transport: Performs single HTTP exchanges.
            base_url: Prefix for every request path.
            default_headers: Headers sent with every request; call headers
                override them case-insensitively.
            interceptors: Request/response/error hooks.
            registry: Cancel-key registry shared with the caller.
            retry_policy: Retry classification and backoff between attempts.
        """
        self._transport = transport
        self._base_url = base_url
        self.default_headers: dict[str, str] = dict(default_headers or {})
        self.interceptors = interceptors or Interceptors()
        self._registry = registry if registry is not None else CancellationRegistry()
        self._retry_policy = retry_policy or RetryPolicy()
        self._log = logger

    @property
    def registry(self) -> CancellationRegistry:
        """Cancel-key registry used by this executor."""
        return self._registry

    @property
    def _metrics(self) -> RequestMetrics:
        return RequestMetrics.get_instance()

    def cancel(self, key: str) -> bool:
        """Cancel the in-flight call registered under a key.

        Args:
            key: Cancel key passed in the call's description.

        Returns:
            True if a call was cancelled, False for unknown keys.
        """
        cancelled = self._registry.cancel(key)
        if cancelled:
            self._log.info("request_cancel_requested", cancel_key=key)
        return cancelled

    def build_request(self, description: RequestDescription) -> WireRequest:
        """Build the wire request for a description.

        Args:
            description: Interceptor-transformed description.

        Returns:
            WireRequest with URL, merged headers and encoded body.
        """
        headers = merge_headers(self.default_headers, description.headers)
        body, headers = encode_body(description.body, headers)
        return WireRequest(
            method=description.method,
            url=build_url(self._base_url, description.path, description.params),
            headers=headers,
            body=body,
        )

    async def run(self, description: RequestDescription) -> ApiResponse:
        """Execute one call.

        Args:
            description: Logical request description.

        Returns:
            Successful response, after the response interceptor.

        Raises:
            ApiError: Terminal failure, after the error handler observed it.
        """
        interceptors = self.interceptors
        description = await interceptors.apply_request(description)
        wire = self.build_request(description)
        cancel_key = description.cancel_key

        log = self._log.bind(
            method=wire.method.value,
            url=redact_url_credentials(wire.url),
            cancel_key=cancel_key,
        )

        loop = asyncio.get_running_loop()
        handle = CancellationHandle(loop)
        timer: asyncio.TimerHandle | None = None
        if description.timeout_ms > 0:
            timer = loop.call_later(
                description.timeout_ms / 1000.0, handle.abort, AbortReason.TIMEOUT
            )

        start_time_ns = time.perf_counter_ns()
        log.debug(
            "request_start",
            headers=redact_headers(wire.headers),
            timeout_ms=description.timeout_ms,
            max_attempts=description.retries,
        )

        try:
            if cancel_key is not None:
                self._registry.register(cancel_key, handle)
            response = await self._attempt_loop(wire, description, handle, log)
        except ApiError as error:
            self._metrics.record_failure(error.kind)
            log.warning("request_failed", **error.to_dict())
            await self._notify_error(interceptors, error, log)
            raise
        finally:
            if timer is not None:
                timer.cancel()
            if cancel_key is not None:
                self._registry.release(cancel_key, handle)
            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            self._metrics.record_call(duration_ms)

        log.info(
            "request_complete",
            status=response.status,
            duration_ms=round(duration_ms, 2),
        )
        return await interceptors.apply_response(response)

    async def _attempt_loop(
        self,
        wire: WireRequest,
        description: RequestDescription,
        handle: CancellationHandle,
        log: structlog.stdlib.BoundLogger,
    ) -> ApiResponse:
        """Run attempts until one succeeds or a failure is terminal.

        Args:
            wire: Built request.
            description: Call description.
            handle: Abort signal of the call.
            log: Bound logger.

        Returns:
            Response of the successful attempt.

        Raises:
            ApiError: The terminal failure.
        """
        max_attempts = description.retries

        for attempt in range(max_attempts):
            if attempt > 0:
                delay_ms = self._retry_policy.get_delay_ms(attempt - 1)
                self._metrics.record_retry()
                log.debug(
                    "retry_attempt",
                    attempt=attempt,
                    delay_ms=delay_ms,
                    max_attempts=max_attempts,
                )
                if delay_ms > 0:
                    await self._backoff(delay_ms, handle, description)

            try:
                return await self._attempt(wire, description, handle)
            except ApiError as error:
                if not self._retry_policy.should_retry(error, attempt, max_attempts):
                    raise
                log.info("attempt_failed", attempt=attempt, **error.to_dict())

        raise RetriesExhaustedError(max(max_attempts, 0))

    async def _attempt(
        self,
        wire: WireRequest,
        description: RequestDescription,
        handle: CancellationHandle,
    ) -> ApiResponse:
        """Send once and decode the outcome.

        Args:
            wire: Built request.
            description: Call description.
            handle: Abort signal of the call.

        Returns:
            Decoded successful response.

        Raises:
            ApiError: Failure of this attempt.
        """
        if handle.aborted:
            raise self._abort_error(handle, description)

        self._metrics.record_attempt()
        result = await self._race(wire, description, handle)
        self._metrics.record_response(result.status)

        if not result.is_success:
            raise HttpStatusError.from_payload(
                result.status, decode_error_body(result.body)
            )

        if wire.method == HttpMethod.HEAD:
            data = {}
        else:
            data = decode_body(result.body, description.response_type)

        return ApiResponse(data=data, status=result.status, headers=result.headers)

    async def _race(
        self,
        wire: WireRequest,
        description: RequestDescription,
        handle: CancellationHandle,
    ) -> TransportResponse:
        """Race the transport against the call's abort signal.

        Args:
            wire: Built request.
            description: Call description.
            handle: Abort signal of the call.

        Returns:
            Transport response, if it arrived first.

        Raises:
            RequestTimeoutError: If the call timer fired first.
            RequestCancelledError: If the call was cancelled first.
            NetworkError: If the transport failed.
        """
        send_task = asyncio.ensure_future(
            self._transport.send(
                url=wire.url,
                method=wire.method,
                headers=dict(wire.headers),
                body=wire.body,
                signal=handle,
            )
        )
        abort_task = asyncio.ensure_future(handle.wait())

        try:
            done, _ = await asyncio.wait(
                {send_task, abort_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            abort_task.cancel()
            if not send_task.done():
                send_task.cancel()
                await asyncio.gather(send_task, return_exceptions=True)

        if send_task not in done:
            raise self._abort_error(handle, description)

        try:
            return send_task.result()
        except ApiError:
            raise
        except Exception as e:
            msg = f"Transport failed: {type(e).__name__}: {e}"
            raise NetworkError(msg) from e

    async def _backoff(
        self,
        delay_ms: int,
        handle: CancellationHandle,
        description: RequestDescription,
    ) -> None:
        """Wait between attempts, ending early if the call is aborted."""
        try:
            await asyncio.wait_for(handle.wait(), timeout=delay_ms / 1000.0)
        except TimeoutError:
            return
        raise self._abort_error(handle, description)

    def _abort_error(
        self, handle: CancellationHandle, description: RequestDescription
    ) -> ApiError:
        if handle.reason == AbortReason.TIMEOUT:
            return RequestTimeoutError(description.timeout_ms)
        return RequestCancelledError(description.cancel_key)

    async def _notify_error(
        self,
        interceptors: Interceptors,
        error: ApiError,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        """Pass a terminal failure to the error handler.

        A failing handler is logged; the original failure still propagates.
        """
        try:
            await interceptors.notify_error(error)
        except Exception:  # noqa: BLE001
            log.exception("error_handler_failed", kind=error.kind.value)
