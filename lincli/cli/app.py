"""Typer application and root callback."""

from __future__ import annotations

from typing import Annotated, Optional

import typer

from lincli.cli.auth import auth_app, team_app
from lincli.cli.cache import cache_app
from lincli.cli.context import CliContext, handle_errors
from lincli.cli.resolve import resolve_app
from lincli.config.manager import Config
from lincli.utils.console import show_version
from lincli.utils.logging import log_message, setup_logging

app = typer.Typer(
    name="lin",
    help="Linear from the command line.",
    add_completion=False,
    no_args_is_help=True,
)
app.add_typer(auth_app, name="auth")
app.add_typer(team_app, name="team")
app.add_typer(cache_app, name="cache")
app.add_typer(resolve_app, name="resolve")


def version_callback(value: bool) -> None:
    """Display version and exit."""
    if value:
        show_version()
        raise typer.Exit()


@app.callback()
def root(
    ctx: typer.Context,
    api_token: Annotated[
        Optional[str],
        typer.Option(
            "--api-token",
            help="API token (overrides LINEAR_API_TOKEN and the config file)",
        ),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Bypass cached teams, states and responses"),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version information",
        ),
    ] = None,
) -> None:
    """Linear from the command line."""
    setup_logging()
    with handle_errors():
        config = Config.load()
    log_message(f"Invoked: {ctx.invoked_subcommand}")

    cli = CliContext(config=config, api_token=api_token, no_cache=no_cache)
    ctx.obj = cli
    ctx.call_on_close(cli.close)


def main() -> None:
    """Console-script entry point."""
    app()
