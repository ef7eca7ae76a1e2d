"""Masking of credentials in debug output.

Every debug trace that prints request headers or query parameters goes
through :func:`redact_headers` / :func:`redact_params` first. Long values
keep their first and last four characters so that a user can still tell
two tokens apart::

    >>> redact_value("Bearer abcdefgh1234")
    'Bear...1234'
    >>> redact_value("short")
    '***REDACTED***'
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "x-api-key",
        "api-key",
        "x-auth-token",
        "x-access-token",
        "cookie",
    }
)

REDACTED = "***REDACTED***"


def redact_value(value: str) -> str:
    """Mask *value*, keeping four characters at each end when it is long enough."""
    if len(value) > 12:
        return f"{value[:4]}...{value[-4:]}"
    return REDACTED


def redact_headers(
    headers: Mapping[str, str], extra: Optional[Iterable[str]] = None
) -> dict[str, str]:
    """Return a copy of *headers* with sensitive values masked.

    Args:
        headers: Request headers.
        extra: Additional header names to treat as sensitive, such as a
            service's custom API-key header. Matching is case-insensitive.
    """
    sensitive = set(SENSITIVE_HEADERS)
    sensitive.update(name.lower() for name in extra or ())
    return {
        key: redact_value(str(value)) if key.lower() in sensitive else value
        for key, value in headers.items()
    }


def redact_params(params: Mapping[str, Any], names: Iterable[str]) -> dict[str, Any]:
    """Return a copy of query *params* with the listed keys masked."""
    masked = set(names)
    return {
        key: redact_value(str(value)) if key in masked else value
        for key, value in params.items()
    }
