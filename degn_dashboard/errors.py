"""Error taxonomy for backend calls."""
from __future__ import annotations

from typing import Any

TRANSIENT_CODES = frozenset({"ECONNABORTED", "ETIMEDOUT", "ECONNRESET"})


class ApiError(Exception):
    """Base class for failures talking to the dashboard backend."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.payload = payload


class TransientNetworkError(ApiError):
    """No response, a 5xx, or a transient transport code. Safe to retry."""


class PermanentRequestError(ApiError):
    """A 4xx rejection. Retrying cannot fix it."""


class AuthenticationError(PermanentRequestError):
    """HTTP 401: the session token is missing or expired."""


class MalformedEnvelopeError(ApiError):
    """No known response shape matched the envelope."""

    def __init__(self, message: str, envelope: Any = None) -> None:
        super().__init__(message, code="MALFORMED_ENVELOPE", payload=envelope)
        self.envelope = envelope


def server_message(payload: Any, status: int | None) -> str:
    """Pick the human message a backend error body carries, if any."""
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
        body = payload.get("body")
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
    return f"Request failed with status {status}"


def user_message(error: BaseException) -> str:
    """Map an exception to the text the dashboard shows the user."""
    status = getattr(error, "status", None)

    if isinstance(error, TransientNetworkError) and status is None:
        return "Network error. Please check your connection and try again."
    if status == 401:
        return "Authentication required. Please sign in again."
    if status == 403:
        return "You don't have permission to perform this action."
    if status is not None and status >= 500:
        return "Server error. Please try again later."
    if isinstance(error, ApiError) and error.message:
        return error.message
    return str(error) or "An unexpected error occurred"
