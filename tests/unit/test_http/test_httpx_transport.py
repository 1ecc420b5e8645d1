"""Unit tests for the httpx-backed transport."""

import json

import httpx
import pytest

from api_client.http.cancellation import CancellationHandle
from api_client.http.errors import NetworkError
from api_client.http.models import FormPayload, HttpMethod
from api_client.http.transport import HttpxTransport, Transport


class TestHttpxTransport:
    """Tests for HttpxTransport.send."""

    def test_satisfies_protocol(self) -> None:
        """Test that the transport matches the Transport protocol."""
        assert isinstance(HttpxTransport(), Transport)

    @pytest.mark.asyncio
    async def test_send_json(self) -> None:
        """Test a request and response round trip through httpx."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                201, json={"id": 9}, headers={"X-Request-Id": "abc"}
            )

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(client=client)

        result = await transport.send(
            url="https://api.test/items",
            method=HttpMethod.POST,
            headers={"Content-Type": "application/json"},
            body='{"name": "box"}',
            signal=CancellationHandle(),
        )

        assert result.status == 201
        assert json.loads(result.body) == {"id": 9}
        assert result.headers["x-request-id"] == "abc"
        assert seen[0].method == "POST"
        assert seen[0].content == b'{"name": "box"}'
        await client.aclose()

    @pytest.mark.asyncio
    async def test_form_payload_sent_as_multipart(self) -> None:
        """Test that form payloads are encoded by httpx."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(client=client)
        form = FormPayload(
            fields={"title": "Q3"},
            files={"file": ("q3.pdf", b"%PDF-1.7", "application/pdf")},
        )

        await transport.send(
            url="https://api.test/upload",
            method=HttpMethod.POST,
            headers={},
            body=form,
            signal=CancellationHandle(),
        )

        content_type = seen[0].headers["content-type"]
        assert content_type.startswith("multipart/form-data; boundary=")
        assert b"q3.pdf" in seen[0].content
        assert b'name="title"' in seen[0].content
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fields_only_form_still_multipart(self) -> None:
        """Test that a form without files is not sent url-encoded."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(client=client)

        await transport.send(
            url="https://api.test/notes",
            method=HttpMethod.POST,
            headers={},
            body=FormPayload(fields={"title": "Q3"}),
            signal=CancellationHandle(),
        )

        content_type = seen[0].headers["content-type"]
        assert content_type.startswith("multipart/form-data; boundary=")
        assert b'name="title"' in seen[0].content
        assert b"Q3" in seen[0].content
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connect_error_becomes_network_error(self) -> None:
        """Test mapping of httpx transport failures."""

        def handler(request: httpx.Request) -> httpx.Response:
            msg = "connection refused"
            raise httpx.ConnectError(msg, request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(client=client)

        with pytest.raises(NetworkError) as exc_info:
            await transport.send(
                url="https://api.test/x",
                method=HttpMethod.GET,
                headers={},
                body=None,
                signal=CancellationHandle(),
            )

        assert "connection refused" in exc_info.value.message
        assert exc_info.value.status is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_leaves_external_client_open(self) -> None:
        """Test that only owned clients are closed."""
        client = httpx.AsyncClient()
        transport = HttpxTransport(client=client)

        await transport.aclose()

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_aclose_closes_owned_client(self) -> None:
        """Test that a client created by the transport is closed."""
        transport = HttpxTransport()

        await transport.aclose()

        assert transport._client.is_closed is True  # noqa: SLF001
