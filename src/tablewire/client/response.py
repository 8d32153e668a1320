"""Response interpretation -- maps an :class:`httpx.Response` to a value or an error.

After the retry loop settles on a final response,
:func:`interpret_response` decides the outcome exactly once:

* ``204`` -> ``None``.
* ``2xx`` with a JSON content type and a non-empty body -> the decoded JSON.
* any other ``2xx`` -> the raw text body.
* non-``2xx`` -> an :class:`~tablewire.exceptions.ApiError` subclass
  carrying the status and, when the body is JSON, the decoded payload.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from tablewire.exceptions import ResponseDecodeError, api_error_for


def is_json_response(response: httpx.Response) -> bool:
    """Return True if the response declares a JSON content type."""
    return "application/json" in response.headers.get("content-type", "").lower()


def extract_error_payload(response: httpx.Response) -> Optional[dict[str, Any]]:
    """Decode a failed response's JSON body, if it has one.

    Returns:
        The decoded payload when it is a JSON object, otherwise ``None``
        (non-JSON, empty, malformed, or non-object bodies).
    """
    if not is_json_response(response) or not response.content:
        return None
    try:
        payload = json.loads(response.text)
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def interpret_response(response: httpx.Response) -> Any:
    """Return the parsed body of a successful response or raise for a failed one.

    Args:
        response: The final :class:`httpx.Response` of a logical request.

    Returns:
        ``None`` for 204, decoded JSON for JSON bodies, otherwise the raw
        text.

    Raises:
        ApiError: For any non-2xx status (subclass chosen by status).
        ResponseDecodeError: When a 2xx response declares JSON but the
            body does not parse.
    """
    status = response.status_code

    if status == 204:
        return None

    if not response.is_success:
        raise api_error_for(status, extract_error_payload(response))

    text = response.text
    if is_json_response(response) and text:
        try:
            return json.loads(text)
        except ValueError as exc:
            raise ResponseDecodeError(
                f"HTTP {status}: response declared JSON but could not be decoded: {exc}"
            ) from exc

    return text
