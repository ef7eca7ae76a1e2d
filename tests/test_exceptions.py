"""Tests for error codes, exit codes and error serialisation."""

from __future__ import annotations

import pytest

from apiwire.exceptions import (
    ApiRequestFailedError,
    ApiTimeoutError,
    ApiwireError,
    AuthMissingError,
    ConfigNotFoundError,
    ErrorCode,
    ParamRequiredError,
    exit_code_for_error,
)
from apiwire.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
)


class TestApiwireError:
    def test_class_defaults(self) -> None:
        err = ParamRequiredError("missing")
        assert err.code == ErrorCode.PARAM_REQUIRED
        assert err.exit_code == EXIT_INVALID_USAGE
        assert str(err) == "missing"

    def test_instance_overrides(self) -> None:
        err = ConfigNotFoundError("nope", code=ErrorCode.SERVICE_NOT_FOUND)
        assert err.code == ErrorCode.SERVICE_NOT_FOUND
        assert err.exit_code == EXIT_NOT_FOUND
        assert ConfigNotFoundError.code == ErrorCode.CONFIG_NOT_FOUND

    def test_to_error_dict(self) -> None:
        err = AuthMissingError("empty", details={"service": "s"}, help="export TOKEN=...")
        assert err.to_error_dict() == {
            "code": "AUTH_MISSING",
            "message": "empty",
            "details": {"service": "s"},
            "help": "export TOKEN=...",
        }

    def test_to_error_dict_minimal(self) -> None:
        assert ApiwireError("x").to_error_dict() == {"code": "UNKNOWN_ERROR", "message": "x"}


class TestExitCodeForError:
    @pytest.mark.parametrize(
        "code, expected",
        [
            ("PARAM_REQUIRED", EXIT_INVALID_USAGE),
            ("PARAM_INVALID", EXIT_INVALID_USAGE),
            ("AUTH_MISSING", EXIT_AUTH_FAILURE),
            ("SERVICE_NOT_FOUND", EXIT_NOT_FOUND),
            ("ENDPOINT_NOT_FOUND", EXIT_NOT_FOUND),
            ("API_TIMEOUT", EXIT_CONNECTION_ERROR),
            ("API_REQUEST_FAILED", EXIT_API_ERROR),
            ("ENV_VAR_NOT_FOUND", EXIT_GENERIC_FAILURE),
            ("SOMETHING_ELSE", EXIT_GENERIC_FAILURE),
        ],
    )
    def test_mapping(self, code: str, expected: int) -> None:
        assert exit_code_for_error(code) == expected

    def test_network_failure(self) -> None:
        assert exit_code_for_error("API_REQUEST_FAILED", {"type": "network"}) == EXIT_CONNECTION_ERROR

    def test_matches_exception_exit_codes(self) -> None:
        for err in (ApiTimeoutError("t"), ApiRequestFailedError("f"), ParamRequiredError("p")):
            assert exit_code_for_error(err.code.value) == err.exit_code
