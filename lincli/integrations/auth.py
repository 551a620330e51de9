"""API token resolution.

Token priority:
    1. ``--api-token`` CLI flag
    2. ``LINEAR_API_TOKEN`` environment variable
    3. The active (or named) organization in the config file

Only a token that came from the config file has an organization cache to
go with it, so resolution runs in cached mode only for source CONFIG.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from lincli.config.manager import Config
from lincli.utils.errors import ConfigError
from lincli.utils.logging import log_once

LINEAR_API_TOKEN_ENV = "LINEAR_API_TOKEN"


class TokenSource(Enum):
    CLI = "cli"
    ENVIRONMENT = "environment"
    CONFIG = "config"


@dataclass(frozen=True)
class ResolvedToken:
    """An API token and where it came from."""

    token: str
    source: TokenSource

    @property
    def use_cache(self) -> bool:
        return self.source is TokenSource.CONFIG


def get_api_token(
    cli_token: str | None,
    config: Config,
    org: str | None = None,
) -> ResolvedToken:
    """Resolve the token to use for API requests.

    Raises:
        ConfigError: If no source provides a token
    """
    if cli_token:
        return ResolvedToken(cli_token, TokenSource.CLI)

    env_token = os.environ.get(LINEAR_API_TOKEN_ENV)
    if env_token:
        if config.get_active_org_or_none() is not None:
            log_once(
                "env-token-overrides-config",
                f"{LINEAR_API_TOKEN_ENV} overrides the token of organization "
                f"'{config.active_org}'; the team cache is not used",
            )
        return ResolvedToken(env_token, TokenSource.ENVIRONMENT)

    try:
        return ResolvedToken(config.get_token(org), TokenSource.CONFIG)
    except ConfigError as e:
        raise ConfigError(
            "No API token found. Provide a token using one of these methods:\n"
            "  1. Use --api-token flag: lin --api-token <token> <command>\n"
            f"  2. Set the {LINEAR_API_TOKEN_ENV} environment variable\n"
            "  3. Authenticate an organization: lin auth add <name> --token <token>"
        ) from e


__all__ = [
    "LINEAR_API_TOKEN_ENV",
    "ResolvedToken",
    "TokenSource",
    "get_api_token",
]
