"""Error types for the HTTP request layer."""

from enum import Enum
from typing import Any

from api_client.http.constants import (
    DEFAULT_ERROR_MESSAGE,
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_SERVER_ERROR_MIN,
)


class ErrorKind(str, Enum):
    """Classification of request failures for retry decisions and metrics.

    - NETWORK: Connection or transport failure
    - TIMEOUT: Local timer fired before a response arrived
    - CANCELLED: External cancel fired for the call's key
    - HTTP_STATUS: Backend answered with a non-2xx status
    - DECODE: Body could not be parsed in the expected format
    - RETRIES_EXHAUSTED: No attempt succeeded and no failure was captured
    - KEY_IN_USE: Cancel key already held by an in-flight call
    """

    NETWORK = "NETWORK"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    HTTP_STATUS = "HTTP_STATUS"
    DECODE = "DECODE"
    RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"
    KEY_IN_USE = "KEY_IN_USE"


class ApiError(Exception):
    """Base exception for failed calls.

    Carries enough detail (status, decoded payload) for callers to
    render a meaningful message.
    """

    kind: ErrorKind = ErrorKind.NETWORK

    def __init__(
        self,
        message: str,
        status: int | None = None,
        data: Any = None,
        errors: Any = None,
    ) -> None:
        """Initialize the API error.

        Args:
            message: Human-readable error message.
            status: HTTP status code, absent for network/timeout failures.
            data: Decoded error payload or raw error text.
            errors: Sub-error list embedded in the error payload.
        """
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data
        self.errors = errors

    @property
    def is_client_error(self) -> bool:
        """Check if the failure carries a 4xx status."""
        return (
            self.status is not None
            and HTTP_STATUS_BAD_REQUEST <= self.status < HTTP_STATUS_SERVER_ERROR_MIN
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status": self.status,
            "errors": self.errors,
        }


class NetworkError(ApiError):
    """Connection or transport level failure."""

    kind = ErrorKind.NETWORK


class RequestTimeoutError(ApiError, TimeoutError):
    """The call's timer fired before the backend answered."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Request timed out after {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class RequestCancelledError(ApiError):
    """The call was cancelled through its cancel key."""

    kind = ErrorKind.CANCELLED

    def __init__(self, cancel_key: str | None) -> None:
        super().__init__(f"Request cancelled (key={cancel_key!r})")
        self.cancel_key = cancel_key


class HttpStatusError(ApiError):
    """Backend answered with a status outside 200-299."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(
        self,
        status: int,
        data: Any = None,
        errors: Any = None,
        message: str | None = None,
    ) -> None:
        """Initialize the status error.

        Args:
            status: HTTP status code.
            data: Decoded error payload, or raw text if it was not JSON.
            errors: Sub-error list from the payload, if any.
            message: Message override; taken from the payload otherwise.
        """
        if message is None:
            message = _message_from_payload(data)
        super().__init__(message, status=status, data=data, errors=errors)

    @classmethod
    def from_payload(cls, status: int, data: Any) -> "HttpStatusError":
        """Build the error from a decoded error body.

        Args:
            status: HTTP status code.
            data: Decoded body (mapping) or raw text.

        Returns:
            HttpStatusError carrying the payload and its sub-errors.
        """
        errors = data.get("errors") if isinstance(data, dict) else None
        return cls(status=status, data=data, errors=errors)


class DecodeError(ApiError):
    """Response body could not be parsed in the expected format."""

    kind = ErrorKind.DECODE


class RetriesExhaustedError(ApiError):
    """Attempt loop finished without success and without a captured failure."""

    kind = ErrorKind.RETRIES_EXHAUSTED

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Maximum retries exceeded ({attempts} attempts)")
        self.attempts = attempts


class CancelKeyInUseError(ApiError):
    """Cancel key is already registered by another in-flight call."""

    kind = ErrorKind.KEY_IN_USE

    def __init__(self, cancel_key: str) -> None:
        super().__init__(f"Cancel key {cancel_key!r} is already in use")
        self.cancel_key = cancel_key


def _message_from_payload(data: Any) -> str:
    if isinstance(data, dict):
        message = data.get("message") or data.get("error") or data.get("detail")
        if isinstance(message, str) and message:
            return message
    if isinstance(data, str) and data.strip():
        return data.strip()
    return DEFAULT_ERROR_MESSAGE
