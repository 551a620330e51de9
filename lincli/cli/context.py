"""Per-invocation state shared by CLI commands.

The root callback builds one CliContext, stores it on ``ctx.obj`` and every
command reads it back. The config is loaded once here and threaded through
the resolver and sync code explicitly.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

import typer

from lincli.cache import ResponseCache
from lincli.config.manager import Config
from lincli.integrations.auth import ResolvedToken, get_api_token
from lincli.integrations.graphql import GraphQLClient
from lincli.resolvers import Resolver
from lincli.utils.console import print_error
from lincli.utils.errors import ExitCode, LinError


@dataclass
class CliContext:
    """Options from the root callback plus lazily built collaborators."""

    config: Config
    api_token: str | None = None
    no_cache: bool = False
    _client: GraphQLClient | None = field(default=None, repr=False)

    def token(self) -> ResolvedToken:
        return get_api_token(self.api_token, self.config)

    @property
    def use_cache(self) -> bool:
        """Cached resolution needs a config-sourced token and no --no-cache."""
        return not self.no_cache and self.token().use_cache

    def client(self) -> GraphQLClient:
        if self._client is None:
            self._client = GraphQLClient(self.token().token)
        return self._client

    def resolver(self) -> Resolver:
        return Resolver(self.client(), self.config)

    def response_cache(self) -> ResponseCache:
        return ResponseCache()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def get_context(ctx: typer.Context) -> CliContext:
    obj = ctx.find_root().obj
    if not isinstance(obj, CliContext):
        raise RuntimeError("CLI context was not initialized")
    return obj


@contextmanager
def handle_errors() -> Iterator[None]:
    """Map LinError to a single red message and the error's exit code."""
    try:
        yield
    except LinError as e:
        print_error(str(e))
        raise typer.Exit(e.exit_code) from e
    except KeyboardInterrupt:
        raise typer.Exit(ExitCode.GENERAL_ERROR) from None
