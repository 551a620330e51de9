"""``lin resolve`` commands: print the API value for a human identifier."""

from __future__ import annotations

from typing import Annotated, Optional

import typer

from lincli.cli.context import get_context, handle_errors
from lincli.utils.console import console

resolve_app = typer.Typer(
    help="Resolve team keys, state names, project slugs and estimate labels to API values.",
    no_args_is_help=True,
)


@resolve_app.command("team")
def resolve_team(
    ctx: typer.Context,
    key: Annotated[
        Optional[str],
        typer.Argument(help="Team key or UUID (default: current team)"),
    ] = None,
) -> None:
    """Print the UUID of a team."""
    cli = get_context(ctx)
    with handle_errors():
        team_id = cli.resolver().resolve_team_or_current(key, use_cache=cli.use_cache)
    console.print(team_id)


@resolve_app.command("state")
def resolve_state(
    ctx: typer.Context,
    team: Annotated[str, typer.Argument(help="Team key or UUID")],
    state: Annotated[str, typer.Argument(help="Workflow state name or UUID")],
) -> None:
    """Print the UUID of a team's workflow state."""
    cli = get_context(ctx)
    with handle_errors():
        state_id = cli.resolver().resolve_state(team, state, use_cache=cli.use_cache)
    console.print(state_id)


@resolve_app.command("estimate")
def resolve_estimate(
    ctx: typer.Context,
    value: Annotated[str, typer.Argument(help="Estimate label (e.g. M) or number")],
    team: Annotated[
        Optional[str],
        typer.Option("--team", "-t", help="Team whose estimate labels to use"),
    ] = None,
) -> None:
    """Print the numeric value of an estimate."""
    cli = get_context(ctx)
    with handle_errors():
        # Numbers never need a token or a team
        try:
            estimate = float(value)
        except ValueError:
            team = team or cli.config.get_current_team()
            estimate = cli.resolver().resolve_estimate(value, team, use_cache=cli.use_cache)
    console.print(f"{estimate:g}")


@resolve_app.command("project")
def resolve_project(
    ctx: typer.Context,
    project: Annotated[str, typer.Argument(help="Project slug, name or UUID")],
) -> None:
    """Print the UUID of a project."""
    cli = get_context(ctx)
    with handle_errors():
        project_id = cli.resolver().resolve_project(project, use_cache=cli.use_cache)
    console.print(project_id)
