"""CLI interface for lincli.

This package provides the Typer-based command-line interface: the root
callback in app.py plus the auth/team, cache and resolve command groups.
"""

from lincli.cli.app import app, main, version_callback
from lincli.cli.context import CliContext, get_context, handle_errors

__all__ = [
    # app.py
    "app",
    "main",
    "version_callback",
    # context.py
    "CliContext",
    "get_context",
    "handle_errors",
]
