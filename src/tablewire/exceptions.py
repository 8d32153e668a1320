"""Exception hierarchy for tablewire.

All exceptions inherit from :class:`TablewireError` so callers can catch
every library failure with a single ``except`` clause, while still being
able to tell remote API failures apart from local problems.

Subclass hierarchy::

    TablewireError
    +-- ConfigError                (missing credentials, bad config file)
    +-- TransportUnavailableError  (no usable HTTP client)
    +-- ConnectionError_           (DNS, timeout, connection refused)
    +-- ResponseDecodeError        (2xx body claims JSON but is not)
    +-- ApiError                   (terminal non-2xx response)
        +-- AuthError              (401 / 403)
        +-- NotFoundError          (404)
        +-- RateLimitError         (429)
        +-- ServerError            (5xx)

Cache-store failures are *not* wrapped: whatever the pluggable store raised
is handed to the ``on_error`` observer and, in strict mode, re-raised as-is.
"""

from __future__ import annotations

from typing import Any, Optional


class TablewireError(Exception):
    """Base exception for all tablewire errors."""


class ConfigError(TablewireError):
    """Raised for configuration problems (missing api key or base id, invalid config file)."""


class TransportUnavailableError(TablewireError):
    """Raised at construction time when no request-performing HTTP client is available."""


class ConnectionError_(TablewireError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """


class ResponseDecodeError(TablewireError):
    """Raised when a successful response declares JSON but the body does not parse."""


class ApiError(TablewireError):
    """Terminal failure returned by the remote API.

    Wraps the HTTP status code, a short machine-readable error code (when
    the API provided one), and the raw decoded error payload.

    The payload's ``error`` field comes in two shapes:

    * a string, e.g. ``{"error": "NOT_FOUND"}`` -- used as both ``type``
      and message;
    * an object, e.g. ``{"error": {"type": "INVALID_REQUEST_UNKNOWN",
      "message": "..."}}`` -- its ``type`` and ``message`` are used.

    When neither yields a message, a generic one mentioning the status is
    used.

    Args:
        status: HTTP status code of the failed response.
        payload: Decoded JSON error body, if the response carried one.

    Attributes:
        status: HTTP status code.
        type: Short error code such as ``"AUTHENTICATION_REQUIRED"``, or
            ``None``.
        payload: The raw error payload, or ``None``.
        message: Human-readable message (also ``str(exc)``).
    """

    def __init__(self, status: int, payload: Optional[dict[str, Any]] = None) -> None:
        error_type, message = _extract_error(payload)
        self.status = status
        self.type = error_type
        self.payload = payload
        self.message = message or f"API request failed with status {status}"
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, type={self.type!r})"


class AuthError(ApiError):
    """Raised when the API rejects the credentials (HTTP 401 / 403)."""


class NotFoundError(ApiError):
    """Raised when the API returns HTTP 404."""


class RateLimitError(ApiError):
    """Raised when the API returns HTTP 429 and the request is not retried."""


class ServerError(ApiError):
    """Raised when the API returns an HTTP 5xx error after all retries."""


def _extract_error(payload: Optional[dict[str, Any]]) -> tuple[Optional[str], Optional[str]]:
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error")
    if isinstance(error, str):
        return error, error
    if isinstance(error, dict):
        error_type = error.get("type")
        message = error.get("message")
        return (
            error_type if isinstance(error_type, str) else None,
            message if isinstance(message, str) else None,
        )
    return None, None


def api_error_for(status: int, payload: Optional[dict[str, Any]] = None) -> ApiError:
    """Build the :class:`ApiError` subclass matching *status*.

    Args:
        status: HTTP status code of the failed response.
        payload: Decoded JSON error body, if any.

    Returns:
        An :class:`AuthError`, :class:`NotFoundError`,
        :class:`RateLimitError`, :class:`ServerError`, or plain
        :class:`ApiError` instance.
    """
    if status in (401, 403):
        return AuthError(status, payload)
    if status == 404:
        return NotFoundError(status, payload)
    if status == 429:
        return RateLimitError(status, payload)
    if status >= 500:
        return ServerError(status, payload)
    return ApiError(status, payload)


def is_api_error(err: object) -> bool:
    """Return True if *err* is an :class:`ApiError` (any status)."""
    return isinstance(err, ApiError)
