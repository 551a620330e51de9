"""Custom exceptions and exit codes for lincli.

Every error raised by the library derives from LinError, which carries a
``kind`` (used for JSON error output) and the process exit code the CLI
should use when the error reaches the top level.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIG_ERROR = 2
    API_ERROR = 3
    IO_ERROR = 4
    PARSE_ERROR = 5


class LinError(Exception):
    """Base exception for lincli.

    Attributes:
        exit_code: Exit code the CLI should return for this error
    """

    kind = "general"
    _default_exit_code = ExitCode.GENERAL_ERROR

    def __init__(self, message: str, exit_code: ExitCode | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code if exit_code is not None else self._default_exit_code


class ConfigError(LinError):
    """Configuration problem: no active organization, malformed config file."""

    kind = "config"
    _default_exit_code = ExitCode.CONFIG_ERROR


class ApiError(LinError):
    """Remote query failed (network, HTTP status, or GraphQL errors)."""

    kind = "api"
    _default_exit_code = ExitCode.API_ERROR


class NotFoundError(ApiError):
    """An identifier could not be resolved.

    The message includes a hint built from ``suggestions`` so the user
    sees what would have matched.

    Attributes:
        entity: What was being resolved ("Team", "State", ...)
        identifier: The user-supplied identifier
        suggestions: Known identifiers of the same kind
    """

    def __init__(
        self,
        entity: str,
        identifier: str,
        suggestions: Iterable[str] = (),
        context: str | None = None,
        hint: str | None = None,
    ) -> None:
        self.entity = entity
        self.identifier = identifier
        self.suggestions = sorted(suggestions)
        self.context = context

        message = f"{entity} '{identifier}' not found"
        if context:
            message += f" for {context}"
        message += "."
        if self.suggestions:
            message += f" Available {entity.lower()}s: {', '.join(self.suggestions)}"
        elif hint:
            message += f" {hint}"
        super().__init__(message)


class CacheError(LinError):
    """Filesystem failure while writing or scanning the response cache."""

    kind = "io"
    _default_exit_code = ExitCode.IO_ERROR


class ParseError(LinError):
    """Malformed input or data (invalid JSON, non-numeric estimate)."""

    kind = "parse"
    _default_exit_code = ExitCode.PARSE_ERROR


__all__ = [
    "ExitCode",
    "LinError",
    "ConfigError",
    "ApiError",
    "NotFoundError",
    "CacheError",
    "ParseError",
]
