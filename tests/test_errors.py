"""Tests for lincli.utils.errors module."""

import pytest

from lincli.utils.errors import (
    ApiError,
    CacheError,
    ConfigError,
    ExitCode,
    LinError,
    NotFoundError,
    ParseError,
)


class TestExitCode:
    def test_exit_code_values(self):
        assert ExitCode.SUCCESS == 0
        assert ExitCode.GENERAL_ERROR == 1
        assert ExitCode.CONFIG_ERROR == 2
        assert ExitCode.API_ERROR == 3
        assert ExitCode.IO_ERROR == 4
        assert ExitCode.PARSE_ERROR == 5


class TestLinError:
    def test_default_exit_code(self):
        error = LinError("Test error")
        assert error.exit_code == ExitCode.GENERAL_ERROR
        assert error.kind == "general"

    def test_custom_exit_code(self):
        error = ConfigError("Test error", exit_code=ExitCode.GENERAL_ERROR)
        assert error.exit_code == ExitCode.GENERAL_ERROR

    def test_message(self):
        assert str(ApiError("HTTP 500")) == "HTTP 500"

    @pytest.mark.parametrize(
        "error_class,kind,exit_code",
        [
            (ConfigError, "config", ExitCode.CONFIG_ERROR),
            (ApiError, "api", ExitCode.API_ERROR),
            (CacheError, "io", ExitCode.IO_ERROR),
            (ParseError, "parse", ExitCode.PARSE_ERROR),
        ],
    )
    def test_subclasses(self, error_class, kind, exit_code):
        error = error_class("boom")

        assert isinstance(error, LinError)
        assert error.kind == kind
        assert error.exit_code == exit_code


class TestNotFoundError:
    def test_is_api_error(self):
        error = NotFoundError("Team", "OPS")

        assert isinstance(error, ApiError)
        assert error.exit_code == ExitCode.API_ERROR

    def test_message_with_sorted_suggestions(self):
        error = NotFoundError("Team", "OPS", ["PLAT", "ENG", "DES"])

        assert str(error) == "Team 'OPS' not found. Available teams: DES, ENG, PLAT"
        assert error.suggestions == ["DES", "ENG", "PLAT"]

    def test_message_with_context(self):
        error = NotFoundError("State", "Blocked", ["todo"], context="team 'ENG'")

        assert str(error) == "State 'Blocked' not found for team 'ENG'. Available states: todo"

    def test_hint_used_without_suggestions(self):
        error = NotFoundError("Team", "OPS", hint="Run 'lin auth sync'.")

        assert str(error) == "Team 'OPS' not found. Run 'lin auth sync'."

    def test_suggestions_win_over_hint(self):
        error = NotFoundError("Team", "OPS", ["ENG"], hint="ignored")

        assert "ignored" not in str(error)
