"""Data models for the HTTP request layer."""

import random
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api_client.http.constants import (
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_MS,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
)
from api_client.http.errors import ApiError, ErrorKind


class HttpMethod(str, Enum):
    """HTTP methods a request description may carry."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ResponseType(str, Enum):
    """How a successful response body is decoded.

    - JSON: parse the body as JSON (empty body decodes to None)
    - BYTES: return the raw body bytes
    - TEXT: return the body decoded as text
    """

    JSON = "JSON"
    BYTES = "BYTES"
    TEXT = "TEXT"


class FormPayload(BaseModel):
    """Binary form payload sent as multipart/form-data.

    The transport computes the multipart boundary, so any caller supplied
    Content-Type header is dropped when this payload is the request body.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    fields: dict[str, str] = Field(default_factory=dict, description="Text fields")
    files: dict[str, tuple[str, bytes, str]] = Field(
        default_factory=dict,
        description="File fields as name -> (filename, content, content_type)",
    )


class RequestDescription(BaseModel):
    """Logical description of one call to the backend.

    The executor turns a description into exactly one completed HTTP
    exchange, possibly spanning several attempts.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    method: HttpMethod = HttpMethod.GET
    path: str = Field(default="", description="Path appended to the base URL")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Call-specific headers"
    )
    body: Any = Field(
        default=None,
        description="None, raw bytes/str, FormPayload, or a JSON-serializable value",
    )
    params: dict[str, str | int | float | bool] = Field(
        default_factory=dict, description="Query parameters"
    )
    timeout_ms: Annotated[int, Field(ge=0)] = DEFAULT_TIMEOUT_MS
    retries: int = Field(
        default=DEFAULT_RETRIES, description="Maximum number of attempts"
    )
    cancel_key: str | None = Field(
        default=None, description="Key under which the call can be cancelled"
    )
    response_type: ResponseType = ResponseType.JSON

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> Any:
        """Accept lower-case method names."""
        if isinstance(v, str):
            return v.upper()
        return v

    def with_headers(self, headers: Mapping[str, str]) -> "RequestDescription":
        """Return a copy with extra headers merged in.

        Existing headers are replaced case-insensitively.

        Args:
            headers: Headers to add or override.

        Returns:
            New RequestDescription.
        """
        overridden = {key.lower() for key in headers}
        merged = {
            key: value
            for key, value in self.headers.items()
            if key.lower() not in overridden
        }
        merged.update(headers)
        return self.model_copy(update={"headers": merged})

    def without_header(self, name: str) -> "RequestDescription":
        """Return a copy with a header removed (case-insensitive)."""
        kept = {
            key: value
            for key, value in self.headers.items()
            if key.lower() != name.lower()
        }
        return self.model_copy(update={"headers": kept})


class ApiResponse(BaseModel):
    """Successful outcome of a call."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    data: Any = Field(default=None, description="Decoded response payload")
    status: int = Field(ge=100, le=599, description="HTTP status code")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Response headers (lower-case keys)"
    )

    @field_validator("headers", mode="before")
    @classmethod
    def lowercase_header_names(cls, v: Any) -> Any:
        """Store header names lower-cased so header() lookups match."""
        if isinstance(v, Mapping):
            return {str(key).lower(): value for key, value in v.items()}
        return v

    @property
    def is_success(self) -> bool:
        """Check if the status is in the 2xx range."""
        return HTTP_STATUS_OK_MIN <= self.status < HTTP_STATUS_OK_MAX

    def header(self, name: str, default: str | None = None) -> str | None:
        """Look up a response header case-insensitively.

        Args:
            name: Header name.
            default: Value returned when the header is absent.

        Returns:
            Header value or default.
        """
        return self.headers.get(name.lower(), default)


class WireRequest(BaseModel):
    """Fully built request handed to the transport."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    method: HttpMethod
    url: Annotated[str, Field(min_length=1)]
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes | str | FormPayload | None = None


class TransportResponse(BaseModel):
    """Raw exchange result returned by a transport."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: int = Field(ge=100, le=599)
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        """Check if the status is in the 2xx range."""
        return HTTP_STATUS_OK_MIN <= self.status < HTTP_STATUS_OK_MAX


class RetryPolicy(BaseModel):
    """Configuration for retry behavior between attempts of one call.

    The attempt count itself comes from each RequestDescription. The
    defaults retry every non-abort failure immediately. A positive
    base_delay_ms enables exponential backoff:
    delay = base_delay_ms * (exponential_base ^ retry_index)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_delay_ms: Annotated[int, Field(ge=0, le=60000)] = 0
    max_delay_ms: Annotated[int, Field(ge=0, le=300000)] = 30000
    exponential_base: Annotated[float, Field(ge=1.0, le=5.0)] = 2.0
    jitter_factor: Annotated[float, Field(ge=0.0, le=1.0)] = 0.0
    retry_client_errors: bool = Field(
        default=True, description="Whether 4xx responses are retried"
    )

    def should_retry(self, error: ApiError, attempt: int, max_attempts: int) -> bool:
        """Determine if a failed attempt should be followed by another.

        Args:
            error: The failure of the attempt.
            attempt: Current attempt index (0-indexed).
            max_attempts: Maximum attempts allowed for the call.

        Returns:
            True if another attempt should run.
        """
        if attempt >= max_attempts - 1:
            return False

        # Timeout and explicit cancel are terminal signals
        if error.kind in {ErrorKind.TIMEOUT, ErrorKind.CANCELLED}:
            return False

        if error.kind == ErrorKind.HTTP_STATUS and error.is_client_error:
            return self.retry_client_errors

        return True

    def get_delay_ms(self, attempt: int) -> int:
        """Calculate delay before the next attempt.

        Args:
            attempt: Index of the attempt that just failed (0-indexed).

        Returns:
            Delay in milliseconds.
        """
        if self.base_delay_ms == 0:
            return 0

        delay = self.base_delay_ms * (self.exponential_base**attempt)
        delay = min(delay, self.max_delay_ms)

        jitter = delay * self.jitter_factor * random.random()  # noqa: S311
        return int(delay + jitter)
