"""HTTP constants for the request layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_SERVER_ERROR_MIN = 500

# Request defaults
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_RETRIES = 1

# Header names (lower-case; header maps compare case-insensitively)
HEADER_ACCEPT = "accept"
HEADER_AUTHORIZATION = "authorization"
HEADER_CONTENT_TYPE = "content-type"

JSON_CONTENT_TYPE = "application/json"
BLOB_ACCEPT = "application/pdf, application/octet-stream"

# Fallback message when an error body carries none
DEFAULT_ERROR_MESSAGE = "Request failed"
