"""Error taxonomy shared by the API layer and the coach chat client.

Every error that crosses a module boundary derives from ``NextPlayError`` so the
API layer can render it as ``{"error": message}`` with the right status code,
and the chat client can show ``message`` to the user as-is.
"""

from __future__ import annotations

import json


class NextPlayError(Exception):
    """Base class for caller-visible errors.

    Attributes:
        code: machine-readable error code, e.g. ``"RATE_LIMITED"``.
        message: human-readable message, safe to show to the end user.
        http_status: status code used when rendered by the API.
    """

    code = "ERROR"
    http_status = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class InvalidInput(NextPlayError):
    """Request violates a shape or size constraint. Never retried."""

    code = "INVALID_INPUT"
    http_status = 400
    default_message = "Invalid request"


class Unauthorized(NextPlayError):
    """Credential missing, malformed or not resolvable to an identity."""

    code = "UNAUTHORIZED"
    http_status = 401
    default_message = "Unauthorized"


class QuotaExhausted(NextPlayError):
    """Upstream answered 402; needs external remediation."""

    code = "QUOTA_EXHAUSTED"
    http_status = 402
    default_message = "AI credits exhausted. Please add credits to continue."


class NotFound(NextPlayError):
    code = "NOT_FOUND"
    http_status = 404
    default_message = "Not found"


class RateLimited(NextPlayError):
    """Upstream answered 429. The caller may retry later; nothing retries here."""

    code = "RATE_LIMITED"
    http_status = 429
    default_message = "Rate limit exceeded. Please try again later."


class UpstreamError(NextPlayError):
    """Opaque upstream failure.

    ``upstream_status`` and ``body`` are kept for logging only; ``message``
    stays generic so upstream details never reach the end user.
    """

    code = "UPSTREAM_ERROR"
    http_status = 500
    default_message = "AI service error"

    def __init__(
        self,
        message: str | None = None,
        *,
        upstream_status: int | None = None,
        body: str = "",
        **extra,
    ):
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(message, **extra)


class StreamInterrupted(NextPlayError):
    """The response stream broke or stalled before it completed."""

    code = "STREAM_INTERRUPTED"
    http_status = 502
    default_message = "The connection to the coach was interrupted. Please try again."


def error_for_status(status_code: int, body: str = "") -> NextPlayError:
    """Map a non-success HTTP status to the matching error class."""
    if status_code == 400:
        return InvalidInput(_error_message(body) or None)
    if status_code == 401:
        return Unauthorized()
    if status_code == 402:
        return QuotaExhausted()
    if status_code == 404:
        return NotFound()
    if status_code == 429:
        return RateLimited()
    return UpstreamError(upstream_status=status_code, body=body)


def _error_message(body: str) -> str:
    try:
        data = json.loads(body)
    except ValueError:
        return ""
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return ""
