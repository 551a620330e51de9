"""Utility modules for lincli.

This package contains:
- console: Rich-based terminal output utilities
- errors: Custom exceptions and exit codes
- logging: Logging configuration
"""

from lincli.utils.console import (
    console,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
)
from lincli.utils.errors import (
    ApiError,
    CacheError,
    ConfigError,
    ExitCode,
    LinError,
    NotFoundError,
    ParseError,
)
from lincli.utils.logging import log_message, log_once, log_query, setup_logging

__all__ = [
    # Console
    "console",
    "print_error",
    "print_success",
    "print_warning",
    "print_info",
    "print_header",
    # Errors
    "ExitCode",
    "LinError",
    "ConfigError",
    "ApiError",
    "NotFoundError",
    "CacheError",
    "ParseError",
    # Logging
    "setup_logging",
    "log_message",
    "log_query",
    "log_once",
]
