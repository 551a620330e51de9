"""Rich-based terminal output utilities."""

from __future__ import annotations

from rich.console import Console

from lincli import __version__

console = Console()
err_console = Console(stderr=True)


def print_error(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_info(message: str) -> None:
    console.print(message)


def print_header(message: str) -> None:
    console.print(f"[bold]{message}[/bold]")


def show_version() -> None:
    console.print(f"lin {__version__}")
