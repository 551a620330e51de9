"""``lin cache`` commands for the API response cache."""

from __future__ import annotations

import typer

from lincli.cli.context import get_context, handle_errors
from lincli.utils.console import console, print_header, print_success

cache_app = typer.Typer(help="Inspect and manage the API response cache.", no_args_is_help=True)


@cache_app.command("status")
def cache_status(ctx: typer.Context) -> None:
    """Show cache location, entry counts and size."""
    with handle_errors():
        cache = get_context(ctx).response_cache()
        stats = cache.stats()

    expired = (
        f"[yellow]{stats.expired_entries}[/yellow]"
        if stats.expired_entries
        else str(stats.expired_entries)
    )
    print_header("Cache Status")
    console.print(f"  [dim]Location:[/dim] {cache.cache_dir}")
    console.print(
        f"  [dim]Entries:[/dim] {stats.total_entries} "
        f"([green]{stats.valid_entries}[/green] valid, {expired} expired)"
    )
    console.print(f"  [dim]Size:[/dim] {stats.formatted_size}")


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached response."""
    with handle_errors():
        count = get_context(ctx).response_cache().clear()

    if count == 0:
        console.print("Cache is already empty.")
    elif count == 1:
        print_success("Cleared 1 cache entry.")
    else:
        print_success(f"Cleared {count} cache entries.")


@cache_app.command("prune")
def cache_prune(ctx: typer.Context) -> None:
    """Remove only expired cached responses."""
    with handle_errors():
        count = get_context(ctx).response_cache().prune_expired()

    if count == 0:
        console.print("No expired entries.")
    else:
        print_success(f"Removed {count} expired cache entr{'y' if count == 1 else 'ies'}.")
