"""Unit tests for the error hierarchy."""

from api_client.http.errors import (
    ApiError,
    ErrorKind,
    HttpStatusError,
    NetworkError,
    RequestTimeoutError,
    RetriesExhaustedError,
)


class TestHttpStatusError:
    """Tests for errors built from non-2xx responses."""

    def test_message_from_payload(self) -> None:
        """Test that the payload message becomes the error message."""
        error = HttpStatusError.from_payload(
            400, {"message": "Invalid phone number", "errors": [{"field": "phone"}]}
        )

        assert str(error) == "Invalid phone number"
        assert error.status == 400
        assert error.errors == [{"field": "phone"}]
        assert error.data["message"] == "Invalid phone number"

    def test_default_message(self) -> None:
        """Test the fallback message for payloads without one."""
        error = HttpStatusError.from_payload(500, {"code": 17})

        assert error.message == "Request failed"
        assert error.errors is None

    def test_raw_text_payload(self) -> None:
        """Test that raw text bodies become the message."""
        error = HttpStatusError.from_payload(502, "Bad Gateway\n")

        assert error.message == "Bad Gateway"
        assert error.data == "Bad Gateway\n"
        assert error.errors is None

    def test_client_error_classification(self) -> None:
        """Test the 4xx check."""
        assert HttpStatusError(status=404).is_client_error is True
        assert HttpStatusError(status=500).is_client_error is False
        assert NetworkError("down").is_client_error is False


class TestErrorKinds:
    """Tests for error kinds and serialization."""

    def test_kinds(self) -> None:
        """Test that each error type carries its kind."""
        assert NetworkError("x").kind == ErrorKind.NETWORK
        assert RequestTimeoutError(5).kind == ErrorKind.TIMEOUT
        assert HttpStatusError(status=500).kind == ErrorKind.HTTP_STATUS
        assert RetriesExhaustedError(0).kind == ErrorKind.RETRIES_EXHAUSTED

    def test_timeout_is_builtin_timeout(self) -> None:
        """Test that callers can catch timeouts as TimeoutError."""
        error = RequestTimeoutError(250)

        assert isinstance(error, TimeoutError)
        assert isinstance(error, ApiError)
        assert error.status is None
        assert "250" in str(error)

    def test_to_dict(self) -> None:
        """Test the logging representation."""
        error = HttpStatusError(status=409, data={"message": "conflict"}, errors=["a"])

        assert error.to_dict() == {
            "kind": "HTTP_STATUS",
            "message": "conflict",
            "status": 409,
            "errors": ["a"],
        }
