"""Unit tests for wire request building and response decoding."""

import json

import pytest

from api_client.http.executor import RequestExecutor
from api_client.http.models import (
    FormPayload,
    HttpMethod,
    RequestDescription,
    ResponseType,
)
from tests.helpers.transports import (
    EchoTransport,
    ScriptedTransport,
    json_response,
    raw_response,
)


@pytest.fixture
def executor() -> RequestExecutor:
    """Create an executor with default headers and a base URL."""
    return RequestExecutor(
        ScriptedTransport(outcomes=[json_response({})]),
        base_url="https://api.test/v1",
        default_headers={"Accept": "application/json", "X-Client": "tests"},
    )


class TestBuildRequest:
    """Tests for RequestExecutor.build_request."""

    def test_url_without_params(self, executor: RequestExecutor) -> None:
        """Test that no query separator is added for empty params."""
        wire = executor.build_request(RequestDescription(path="/users"))

        assert wire.url == "https://api.test/v1/users"
        assert wire.method == HttpMethod.GET
        assert wire.body is None

    def test_url_with_params(self, executor: RequestExecutor) -> None:
        """Test query parameter encoding."""
        wire = executor.build_request(
            RequestDescription(path="/users", params={"page": 2, "q": "ann lee"})
        )

        assert wire.url == "https://api.test/v1/users?page=2&q=ann+lee"

    def test_headers_merged_call_wins(self, executor: RequestExecutor) -> None:
        """Test default and call header precedence."""
        wire = executor.build_request(
            RequestDescription(path="/x", headers={"accept": "text/csv"})
        )

        assert wire.headers == {"accept": "text/csv", "X-Client": "tests"}

    def test_structured_body(self, executor: RequestExecutor) -> None:
        """Test JSON body encoding with a default content type."""
        wire = executor.build_request(
            RequestDescription(method="POST", path="/x", body={"a": 1})
        )

        assert json.loads(wire.body) == {"a": 1}
        assert wire.headers["Content-Type"] == "application/json"

    def test_form_body_drops_content_type(self) -> None:
        """Test that a default content type is dropped for form payloads."""
        executor = RequestExecutor(
            ScriptedTransport(outcomes=[json_response({})]),
            default_headers={"Content-Type": "application/json"},
        )
        form = FormPayload(files={"doc": ("a.pdf", b"%PDF", "application/pdf")})

        wire = executor.build_request(
            RequestDescription(method="POST", path="/upload", body=form)
        )

        assert wire.body is form
        assert wire.headers == {}


class TestResponseDecoding:
    """Tests for successful response decoding."""

    @pytest.mark.asyncio
    async def test_json_round_trip(self) -> None:
        """Test that a structured POST body echoes back as the same value."""
        transport = EchoTransport()
        executor = RequestExecutor(transport, base_url="https://api.test")

        response = await executor.run(
            RequestDescription(method=HttpMethod.POST, path="/echo", body={"a": 1})
        )

        assert response.status == 200
        assert response.data == {"a": 1}

    @pytest.mark.asyncio
    async def test_head_never_decodes(self) -> None:
        """Test that HEAD returns an empty payload whatever the body holds."""
        transport = ScriptedTransport(
            outcomes=[raw_response(b"definitely <not> json")]
        )
        executor = RequestExecutor(transport)

        response = await executor.run(RequestDescription(method="HEAD", path="/x"))

        assert response.data == {}
        assert response.status == 200

    @pytest.mark.asyncio
    async def test_empty_body_decodes_to_none(self) -> None:
        """Test a 204 No Content response."""
        transport = ScriptedTransport(outcomes=[raw_response(b"", status=204)])
        executor = RequestExecutor(transport)

        response = await executor.run(RequestDescription(method="DELETE", path="/x/1"))

        assert response.status == 204
        assert response.data is None

    @pytest.mark.asyncio
    async def test_bytes_response_type(self) -> None:
        """Test returning the raw body."""
        transport = ScriptedTransport(outcomes=[raw_response(b"%PDF-1.7\x00")])
        executor = RequestExecutor(transport)

        response = await executor.run(
            RequestDescription(path="/report.pdf", response_type=ResponseType.BYTES)
        )

        assert response.data == b"%PDF-1.7\x00"

    @pytest.mark.asyncio
    async def test_response_headers_exposed(self) -> None:
        """Test that response headers are returned with the payload."""
        transport = ScriptedTransport(
            outcomes=[json_response({"id": 1}, headers={"x-total-count": "42"})]
        )
        executor = RequestExecutor(transport)

        response = await executor.run(RequestDescription(path="/x"))

        assert response.header("X-Total-Count") == "42"

    @pytest.mark.asyncio
    async def test_mixed_case_transport_headers(self) -> None:
        """Test lookups when the transport keeps the server's header casing."""
        transport = ScriptedTransport(
            outcomes=[
                json_response(
                    {"id": 1}, headers={"X-Request-Id": "abc", "ETag": '"v1"'}
                )
            ]
        )
        executor = RequestExecutor(transport)

        response = await executor.run(RequestDescription(path="/x"))

        assert response.header("X-Request-Id") == "abc"
        assert response.header("x-request-id") == "abc"
        assert response.header("etag") == '"v1"'
        assert "X-Request-Id" not in response.headers

    @pytest.mark.asyncio
    async def test_transport_receives_signal(self) -> None:
        """Test that every attempt carries the call's abort signal."""
        transport = ScriptedTransport(outcomes=[json_response({})])
        executor = RequestExecutor(transport)

        await executor.run(RequestDescription(path="/x"))

        assert transport.calls[0].signal.aborted is False
