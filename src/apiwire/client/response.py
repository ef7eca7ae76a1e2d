"""Response decoding -- turn an :class:`httpx.Response` into plain data.

The executor decides how to read a body from its ``Content-Type`` header:
anything declaring JSON (``application/json``, ``application/problem+json``
...) is decoded, everything else is returned as text. An empty body is
``None``.

See Also:
    :class:`~apiwire.client.sync_client.RequestExecutor` -- the only caller.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from apiwire.exceptions import ApiResponseInvalidError


def is_json_content(response: httpx.Response) -> bool:
    """Return True if the response declares a JSON media type."""
    content_type = response.headers.get("content-type", "").lower()
    return "application/json" in content_type or "+json" in content_type


def extract_response_data(response: httpx.Response) -> Any:
    """Decode the body of *response*.

    Returns:
        A JSON-decoded object when the response declares JSON, the raw text
        otherwise, or ``None`` for an empty body.

    Raises:
        ApiResponseInvalidError: If a JSON-declared body does not parse.
    """
    if not response.content:
        return None
    if not is_json_content(response):
        return response.text
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiResponseInvalidError(
            f"Invalid JSON in response body: {exc}",
            status_code=response.status_code,
            details={"body": response.text[:500], "statusCode": response.status_code},
        ) from exc


def extract_error_data(response: httpx.Response) -> Any:
    """Decode an error body leniently, falling back to text on bad JSON."""
    try:
        return extract_response_data(response)
    except ApiResponseInvalidError:
        return response.text


def response_headers(response: httpx.Response) -> dict[str, str]:
    """Return the response headers as a plain dict with lower-case names."""
    return {key.lower(): value for key, value in response.headers.items()}
