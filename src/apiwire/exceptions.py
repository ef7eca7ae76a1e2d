"""Exception hierarchy for apiwire.

All exceptions inherit from :class:`ApiwireError`, which carries a
machine-readable :class:`ErrorCode`, an optional ``details`` payload, an
optional ``help`` hint, and an ``exit_code`` mapped to a constant from
:mod:`apiwire.exit_codes`.

Components raise these for expected failure paths (missing parameter,
unset environment variable, upstream 4xx/5xx ...). The
:class:`~apiwire.engine.orchestrator.EndpointOrchestrator` catches them at
its boundary and turns them into a structured
:class:`~apiwire.models.CallResult`; nothing past the engine sees an
exception for an expected failure.

Subclass hierarchy::

    ApiwireError (exit 1)
    +-- ConfigError              (exit 1)
    |   +-- ConfigParseError     (exit 1)
    |   +-- ConfigNotFoundError  (exit 4)
    +-- EnvVarNotFoundError      (exit 1)
    +-- ParamRequiredError       (exit 2)
    +-- ParamInvalidError        (exit 2)
    +-- AuthMissingError         (exit 3)
    +-- AuthInvalidError         (exit 3)
    +-- ApiTimeoutError          (exit 6)
    +-- ApiRequestFailedError    (exit 5, or 6 for network failures)
    +-- ApiResponseInvalidError  (exit 5)
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from apiwire.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
)


class ErrorCode(str, enum.Enum):
    """Machine-readable error codes surfaced in every failed result."""

    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_PARSE_ERROR = "CONFIG_PARSE_ERROR"
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    ENDPOINT_NOT_FOUND = "ENDPOINT_NOT_FOUND"
    ENV_VAR_NOT_FOUND = "ENV_VAR_NOT_FOUND"
    PARAM_REQUIRED = "PARAM_REQUIRED"
    PARAM_INVALID = "PARAM_INVALID"
    AUTH_MISSING = "AUTH_MISSING"
    AUTH_INVALID = "AUTH_INVALID"
    API_TIMEOUT = "API_TIMEOUT"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_RESPONSE_INVALID = "API_RESPONSE_INVALID"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ApiwireError(Exception):
    """Base exception for all apiwire errors.

    Every subclass sets a class-level ``code`` and ``exit_code``. Instances
    may override either, e.g. :class:`ConfigNotFoundError` is raised with
    ``SERVICE_NOT_FOUND`` or ``ENDPOINT_NOT_FOUND``.

    Args:
        message: Human-readable error description.
        code: Optional override for the class-level error code.
        details: Structured context (upstream body, missing name, URL ...).
        help: Optional next-step hint shown to the user.
        status_code: HTTP status of the upstream response, if any.
        exit_code: Optional override for the class-level exit code.
    """

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Any = None,
        help: Optional[str] = None,
        status_code: Optional[int] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        self.help = help
        self.status_code = status_code
        if exit_code is not None:
            self.exit_code = exit_code

    def to_error_dict(self) -> dict[str, Any]:
        """Render the error as the ``error`` object of a failed result."""
        data: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details is not None:
            data["details"] = self.details
        if self.help is not None:
            data["help"] = self.help
        return data


class ConfigError(ApiwireError):
    """Raised when a service configuration fails schema validation."""

    code = ErrorCode.CONFIG_INVALID


class ConfigParseError(ConfigError):
    """Raised when a configuration file is not well-formed YAML."""

    code = ErrorCode.CONFIG_PARSE_ERROR


class ConfigNotFoundError(ConfigError):
    """Raised when a config file, service, endpoint, or alias does not exist."""

    code = ErrorCode.CONFIG_NOT_FOUND
    exit_code = EXIT_NOT_FOUND


class EnvVarNotFoundError(ApiwireError):
    """Raised when a ``${VAR}`` placeholder names an unset environment variable."""

    code = ErrorCode.ENV_VAR_NOT_FOUND


class ParamRequiredError(ApiwireError):
    """Raised when a path parameter is missing from the call arguments."""

    code = ErrorCode.PARAM_REQUIRED
    exit_code = EXIT_INVALID_USAGE


class ParamInvalidError(ApiwireError):
    """Raised for malformed call arguments (bad target, bad batch JSON ...)."""

    code = ErrorCode.PARAM_INVALID
    exit_code = EXIT_INVALID_USAGE


class AuthMissingError(ApiwireError):
    """Raised when the resolved credential is empty."""

    code = ErrorCode.AUTH_MISSING
    exit_code = EXIT_AUTH_FAILURE


class AuthInvalidError(ApiwireError):
    """Raised for malformed auth configuration (unknown type, bad header name)."""

    code = ErrorCode.AUTH_INVALID
    exit_code = EXIT_AUTH_FAILURE


class ApiTimeoutError(ApiwireError):
    """Raised when the upstream request exceeds its deadline."""

    code = ErrorCode.API_TIMEOUT
    exit_code = EXIT_CONNECTION_ERROR


class ApiRequestFailedError(ApiwireError):
    """Raised on network failures and non-2xx upstream responses.

    For HTTP errors ``status_code`` is set and ``details["data"]`` holds the
    parsed response body. For network failures ``details["type"]`` is
    ``"network"`` and the exit code is :data:`EXIT_CONNECTION_ERROR`.
    """

    code = ErrorCode.API_REQUEST_FAILED
    exit_code = EXIT_API_ERROR


class ApiResponseInvalidError(ApiwireError):
    """Raised when a body that should be JSON cannot be parsed."""

    code = ErrorCode.API_RESPONSE_INVALID
    exit_code = EXIT_API_ERROR


_EXIT_CODES: dict[str, int] = {
    ErrorCode.CONFIG_NOT_FOUND.value: EXIT_NOT_FOUND,
    ErrorCode.SERVICE_NOT_FOUND.value: EXIT_NOT_FOUND,
    ErrorCode.ENDPOINT_NOT_FOUND.value: EXIT_NOT_FOUND,
    ErrorCode.PARAM_REQUIRED.value: EXIT_INVALID_USAGE,
    ErrorCode.PARAM_INVALID.value: EXIT_INVALID_USAGE,
    ErrorCode.AUTH_MISSING.value: EXIT_AUTH_FAILURE,
    ErrorCode.AUTH_INVALID.value: EXIT_AUTH_FAILURE,
    ErrorCode.API_TIMEOUT.value: EXIT_CONNECTION_ERROR,
    ErrorCode.API_REQUEST_FAILED.value: EXIT_API_ERROR,
    ErrorCode.API_RESPONSE_INVALID.value: EXIT_API_ERROR,
}


def exit_code_for_error(code: str, details: Any = None) -> int:
    """Map an error code from a failed result back to a process exit code.

    Network-level request failures (``details["type"] == "network"``) map
    to :data:`EXIT_CONNECTION_ERROR` rather than :data:`EXIT_API_ERROR`.
    """
    if (
        code == ErrorCode.API_REQUEST_FAILED.value
        and isinstance(details, dict)
        and details.get("type") == "network"
    ):
        return EXIT_CONNECTION_ERROR
    return _EXIT_CODES.get(code, EXIT_GENERIC_FAILURE)
