"""``lin auth`` and ``lin team`` commands.

Organizations are authenticated with ``lin auth add``, which validates the
token, stores it, makes the org active and syncs every team into the
org's cache.
"""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.table import Table

from lincli.cache import TTL_TEAMS, CachedQueryClient
from lincli.cli.context import get_context, handle_errors
from lincli.integrations.graphql import GraphQLClient, QueryPort
from lincli.integrations.queries import TEAMS_PAGE_SIZE, TEAMS_QUERY, VIEWER_QUERY
from lincli.resolvers import is_uuid
from lincli.sync import SyncEngine
from lincli.utils.console import console, print_info, print_success, print_warning
from lincli.utils.errors import ApiError

auth_app = typer.Typer(help="Manage authenticated organizations.", no_args_is_help=True)
team_app = typer.Typer(help="List teams and pick the default team.", no_args_is_help=True)


def _validate_token(client: GraphQLClient) -> None:
    try:
        client.query(VIEWER_QUERY)
    except ApiError as e:
        raise ApiError(
            f"Invalid or expired API token. Please check your token and try again. Error: {e}"
        ) from e


def _print_sync_summary(teams: list[tuple[str, int]]) -> None:
    state_count = sum(count for _, count in teams)
    keys = ", ".join(key for key, _ in teams) or "none"
    print_info(f"Synced {len(teams)} teams ({state_count} workflow states): {keys}")


@auth_app.command("add")
def auth_add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Organization name")],
    token: Annotated[
        str,
        typer.Option("--token", "-t", help="Linear API token", prompt=True, hide_input=True),
    ],
) -> None:
    """Authenticate an organization and sync its teams."""
    cli = get_context(ctx)
    with handle_errors(), GraphQLClient(token) as client:
        _validate_token(client)
        config = cli.config
        config.add_org(name, token)
        config.switch_org(name)
        config.save()
        teams = SyncEngine(client).sync_all(config)

    print_success(f"Authenticated organization '{name}'")
    _print_sync_summary(teams)


@auth_app.command("switch")
def auth_switch(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Organization name")],
) -> None:
    """Make another organization active."""
    config = get_context(ctx).config
    with handle_errors():
        config.switch_org(name)
        config.save()
    print_success(f"Switched to organization '{name}'")


@auth_app.command("list")
def auth_list(ctx: typer.Context) -> None:
    """List authenticated organizations."""
    config = get_context(ctx).config
    if not config.orgs:
        print_info("No organizations configured. Use 'lin auth add <name> --token <token>'.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("")
    table.add_column("Organization")
    table.add_column("Teams", justify="right")
    table.add_column("Last sync")
    for name in config.list_orgs():
        org = config.orgs[name]
        table.add_row(
            "*" if name == config.active_org else "",
            name,
            str(len(org.cache.teams)),
            org.cache.last_sync or "never",
        )
    console.print(table)


@auth_app.command("remove")
def auth_remove(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Organization name")],
) -> None:
    """Forget an organization and its cached teams."""
    config = get_context(ctx).config
    with handle_errors():
        config.remove_org(name)
        config.save()
    print_success(f"Removed organization '{name}'")


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Show the active organization and its cached teams."""
    config = get_context(ctx).config
    with handle_errors():
        name = config.get_active_org_name()
        org = config.get_active_org()

    print_info(f"Organization: {name}")
    print_info(f"Token: {config.mask_token(org.token)}")
    print_info(f"Teams: {', '.join(config.get_all_team_keys()) or 'none cached'}")
    print_info(f"Projects: {len(org.cache.projects)} cached")
    if org.current_team:
        print_info(f"Current team: {org.current_team}")
    print_info(f"Last sync: {org.cache.last_sync or 'never'}")
    for issue in config.validate().issues:
        print_warning(issue.message)


@auth_app.command("sync")
def auth_sync(ctx: typer.Context) -> None:
    """Re-sync every team of the active organization."""
    cli = get_context(ctx)
    with handle_errors():
        cli.config.get_active_org()
        teams = SyncEngine(cli.client()).sync_all(cli.config)
    print_success("Sync complete")
    _print_sync_summary(teams)


@team_app.command("list")
def team_list(
    ctx: typer.Context,
    refresh: Annotated[
        bool,
        typer.Option("--refresh", help="Drop the cached team list and fetch it again"),
    ] = False,
) -> None:
    """List the organization's teams (served from the response cache for an hour)."""
    cli = get_context(ctx)
    variables = {"first": TEAMS_PAGE_SIZE}
    with handle_errors():
        client: QueryPort = cli.client()
        if not cli.no_cache:
            # Keyed by token so each organization gets its own entry
            cached = CachedQueryClient(
                client, cli.response_cache(), TTL_TEAMS, namespace=cli.token().token
            )
            if refresh:
                cached.invalidate(TEAMS_QUERY, variables)
            client = cached
        data = client.query(TEAMS_QUERY, variables)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("ID", style="dim")
    for team in data.get("teams", {}).get("nodes", []):
        table.add_row(team["key"], team["name"], team["id"])
    console.print(table)


@team_app.command("switch")
def team_switch(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Team key or UUID, e.g. ENG")],
) -> None:
    """Set the default team used when --team is omitted."""
    cli = get_context(ctx)
    with handle_errors():
        resolver = cli.resolver()
        team_id = resolver.resolve_team(key, use_cache=True)
        team_key = resolver.get_team_key(team_id) if is_uuid(key) else key
        cli.config.set_current_team(team_key)
        cli.config.save()
    print_success(f"Current team set to {team_key.upper()}")


@team_app.command("estimates")
def team_estimates(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Team key, e.g. ENG")],
    labels: Annotated[
        Optional[list[str]],
        typer.Argument(help="LABEL=VALUE pairs, e.g. S=1 M=2 L=3"),
    ] = None,
) -> None:
    """Show or replace a team's cached estimate labels."""
    config = get_context(ctx).config
    with handle_errors():
        if labels:
            config.set_estimates(key, _parse_estimate_pairs(labels))
            config.save()
        team = config.get_team(key)

    if team is None or not team.estimates:
        print_info(f"No estimates configured for team {key.upper()}.")
        return
    for label, value in sorted(team.estimates.items(), key=lambda kv: kv[1]):
        print_info(f"  {label} = {value:g}")


def _parse_estimate_pairs(pairs: list[str]) -> dict[str, float]:
    estimates: dict[str, float] = {}
    for pair in pairs:
        label, sep, value = pair.partition("=")
        if not sep or not label:
            raise typer.BadParameter(f"Expected LABEL=VALUE, got '{pair}'")
        try:
            estimates[label] = float(value)
        except ValueError:
            raise typer.BadParameter(f"Estimate value for '{label}' must be numeric") from None
    return estimates
