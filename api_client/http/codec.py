"""Header merging, query encoding and body encode/decode helpers."""

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel

from api_client.http.constants import HEADER_CONTENT_TYPE, JSON_CONTENT_TYPE
from api_client.http.errors import DecodeError
from api_client.http.models import FormPayload, ResponseType


def merge_headers(*layers: Mapping[str, str]) -> dict[str, str]:
    """Merge header mappings case-insensitively; later layers win.

    The casing of the winning layer's key is kept.

    Args:
        layers: Header mappings, lowest precedence first.

    Returns:
        Merged headers with one entry per case-insensitive name.
    """
    merged: dict[str, tuple[str, str]] = {}
    for layer in layers:
        for key, value in layer.items():
            merged[key.lower()] = (key, value)
    return dict(merged.values())


def drop_header(headers: Mapping[str, str], name: str) -> dict[str, str]:
    """Return headers without the given name (case-insensitive)."""
    return {key: value for key, value in headers.items() if key.lower() != name.lower()}


def has_header(headers: Mapping[str, str], name: str) -> bool:
    """Check for a header name case-insensitively."""
    return any(key.lower() == name.lower() for key in headers)


def build_query(params: Mapping[str, Any]) -> str:
    """URL-encode query parameters.

    Booleans are rendered as ``true``/``false``.

    Args:
        params: Query parameters.

    Returns:
        Encoded query string without the leading separator, or "".
    """
    if not params:
        return ""
    normalized = {
        key: (str(value).lower() if isinstance(value, bool) else value)
        for key, value in params.items()
    }
    return urlencode(normalized)


def build_url(base_url: str, path: str, params: Mapping[str, Any]) -> str:
    """Join base URL, path and query string.

    Args:
        base_url: Backend base address.
        path: Call path.
        params: Query parameters; appended only if non-empty.

    Returns:
        Full request URL.
    """
    url = f"{base_url}{path}"
    query = build_query(params)
    if not query:
        return url
    separator = "&" if "?" in path else "?"
    return f"{url}{separator}{query}"


def encode_body(
    body: Any, headers: Mapping[str, str]
) -> tuple[bytes | str | FormPayload | None, dict[str, str]]:
    """Encode a request body and adjust headers to match.

    - FormPayload: sent as-is, Content-Type dropped for the transport to set
    - str / bytes: sent verbatim
    - anything else: serialized to JSON, Content-Type defaulted to JSON

    Args:
        body: Request body from the description.
        headers: Merged request headers.

    Returns:
        Tuple of (wire body, headers).
    """
    out_headers = dict(headers)

    if body is None:
        return None, out_headers

    if isinstance(body, FormPayload):
        return body, drop_header(out_headers, HEADER_CONTENT_TYPE)

    if isinstance(body, str | bytes):
        return body, out_headers

    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")

    if not has_header(out_headers, HEADER_CONTENT_TYPE):
        out_headers["Content-Type"] = JSON_CONTENT_TYPE
    return json.dumps(body), out_headers


def decode_body(body: bytes, response_type: ResponseType) -> Any:
    """Decode a successful response body.

    Args:
        body: Raw response body.
        response_type: Expected body format.

    Returns:
        Decoded payload. An empty JSON body decodes to None.

    Raises:
        DecodeError: If the body is not valid in the expected format.
    """
    if response_type == ResponseType.BYTES:
        return body

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"Response body is not valid UTF-8: {e}"
        raise DecodeError(msg) from e

    if response_type == ResponseType.TEXT:
        return text

    if not text.strip():
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Response body is not valid JSON: {e}"
        raise DecodeError(msg, data=text) from e


def decode_error_body(body: bytes) -> Any:
    """Decode an error response body.

    Falls back to raw text when the body is not JSON, so a garbled error
    body degrades to text content instead of failing the call.

    Args:
        body: Raw response body.

    Returns:
        Decoded JSON, raw text, or None for an empty body.
    """
    text = body.decode("utf-8", errors="replace")
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text
