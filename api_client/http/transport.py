"""Transport boundary: one HTTP exchange per send()."""

from typing import Any, Protocol, runtime_checkable

import httpx

from api_client.http.cancellation import CancellationHandle
from api_client.http.errors import NetworkError
from api_client.http.models import FormPayload, HttpMethod, TransportResponse


@runtime_checkable
class Transport(Protocol):
    """Protocol for HTTP transports.

    Any transport that performs a single exchange with the matching
    signature can back the executor. The executor races send() against
    the call's abort signal and cancels the send task when the signal
    wins, so a transport only needs to be cancellation-safe.
    """

    async def send(
        self,
        *,
        url: str,
        method: HttpMethod,
        headers: dict[str, str],
        body: bytes | str | FormPayload | None,
        signal: CancellationHandle,
    ) -> TransportResponse:
        """Perform one HTTP exchange.

        Args:
            url: Full request URL.
            method: HTTP method.
            headers: Request headers.
            body: Encoded request body.
            signal: Abort signal of the call.

        Returns:
            Status, headers and fully read body.

        Raises:
            NetworkError: If the exchange fails below the HTTP layer.
        """
        ...

    async def aclose(self) -> None:
        """Release transport resources."""
        ...


class HttpxTransport:
    """Transport backed by httpx.AsyncClient.

    Timeouts are enforced by the executor's call timer, so the client
    is created without its own timeout unless one is supplied.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | float | None = None,
        follow_redirects: bool = True,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Pre-configured client. The transport does not close
                clients it did not create.
            timeout: httpx timeout for a client created here.
            follow_redirects: Redirect policy for a client created here.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=follow_redirects,
        )

    async def send(
        self,
        *,
        url: str,
        method: HttpMethod,
        headers: dict[str, str],
        body: bytes | str | FormPayload | None,
        signal: CancellationHandle,  # noqa: ARG002
    ) -> TransportResponse:
        kwargs: dict[str, Any] = {}
        if isinstance(body, FormPayload):
            # Text fields go as filename-less parts so the body is always multipart
            kwargs["files"] = [
                *((name, (None, value)) for name, value in body.fields.items()),
                *body.files.items(),
            ]
        elif body is not None:
            kwargs["content"] = body

        try:
            response = await self._client.request(
                method.value, url, headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            msg = f"{type(e).__name__}: {e}"
            raise NetworkError(msg) from e
        except httpx.InvalidURL as e:
            msg = f"Invalid URL: {e}"
            raise NetworkError(msg) from e

        return TransportResponse(
            status=response.status_code,
            headers={key.lower(): value for key, value in response.headers.items()},
            body=response.content,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
