"""Team, state and estimate resolution with caching support.

Turns user-supplied identifiers into the values the Linear API expects:

- team keys ("ENG", "eng") -> team UUIDs
- workflow-state names ("Todo", "in progress") -> state UUIDs
- project slugs or names ("q1-backend", "Q1 Backend") -> project UUIDs
- estimate labels ("M", "xl") or numbers ("3", "0.5") -> floats

In cached mode the active organization's team cache is consulted first and
refreshed from the API on a miss. In uncached mode (token supplied through
the environment, no local state) the API is queried directly.
"""

from __future__ import annotations

import logging
import re

from lincli.config.manager import CachedTeam, Config, project_slug
from lincli.integrations.graphql import QueryPort
from lincli.integrations.queries import TEAM_QUERY
from lincli.sync import SyncEngine
from lincli.utils.errors import ApiError, ConfigError, NotFoundError, ParseError

logger = logging.getLogger(__name__)

_UUID_PATTERN = re.compile(
    r"^(?:[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}|[0-9a-f]{32})$",
    re.IGNORECASE,
)

TEAM_LIST_HINT = "Run 'lin auth sync' or 'lin team list' to see available teams."


def is_uuid(value: str) -> bool:
    """Check for a 36-char hyphenated or 32-char bare hex UUID."""
    return bool(_UUID_PATTERN.match(value))


class Resolver:
    """Resolves human identifiers against the cache and the API.

    The config is passed in explicitly and saved whenever a sync adds or
    refreshes a team.

    Attributes:
        client: QueryPort used for syncs and direct lookups
        config: Loaded configuration owning the team cache
        sync: SyncEngine used on cache misses
    """

    def __init__(
        self,
        client: QueryPort,
        config: Config,
        sync: SyncEngine | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.sync = sync or SyncEngine(client)

    # -- teams -------------------------------------------------------------

    def resolve_team(self, token: str, use_cache: bool = True) -> str:
        """Resolve a team key or UUID to a team UUID.

        Raises:
            NotFoundError: If the team does not exist (lists cached team keys)
            ConfigError: If ``use_cache`` is set but no organization is active
            ApiError: If an upstream query fails
        """
        if is_uuid(token):
            return token

        if not use_cache:
            try:
                return self.sync.fetch_team_by_key(token)["id"]
            except NotFoundError:
                raise NotFoundError("Team", token, hint=TEAM_LIST_HINT) from None

        self.config.get_active_org()
        cached_id = self.config.get_team_id(token)
        if cached_id is not None:
            logger.debug(f"Cache hit for team {token}")
            return cached_id

        logger.debug(f"Cache miss for team {token}, syncing")
        known = self.config.get_all_team_keys()
        try:
            cached = self.sync.sync_team(token)
        except NotFoundError:
            raise NotFoundError("Team", token, known, hint=TEAM_LIST_HINT) from None
        except ApiError as e:
            hint = f"Available teams: {', '.join(known)}" if known else TEAM_LIST_HINT
            raise ApiError(f"Could not sync team '{token}': {e}. {hint}") from e

        self.config.cache_team(token.upper(), cached)
        self.config.save()
        return cached.id

    def resolve_team_or_current(self, token: str | None, use_cache: bool = True) -> str:
        """Resolve ``token``, or the org's current team when it is None.

        Raises:
            ConfigError: If no token is given and no current team is set
        """
        if token is not None:
            return self.resolve_team(token, use_cache)

        current = self.config.get_current_team()
        if current is None:
            raise ConfigError(
                "No team specified. Use --team or set a default team with 'lin team switch <key>'."
            )
        return self.resolve_team(current, use_cache)

    def get_team_key(self, team_id: str) -> str:
        """Find the key of a team given its UUID (cache first, then API)."""
        org = self.config.get_active_org_or_none()
        if org is not None:
            for key, team in org.cache.teams.items():
                if team.id == team_id:
                    return key

        data = self.client.query(TEAM_QUERY, {"id": team_id})
        team = data.get("team")
        if not team:
            raise NotFoundError("Team", team_id)
        key: str = team["key"]
        return key

    def _cached_team(self, team_token: str, team_id: str) -> tuple[str, CachedTeam] | None:
        """Locate a cached team by key, falling back to its UUID."""
        org = self.config.get_active_org_or_none()
        if org is None:
            return None
        found = org.find_team(team_token)
        if found is not None:
            return found
        for key, team in org.cache.teams.items():
            if team.id == team_id:
                return key, team
        return None

    def _refresh_team(self, team_token: str, team_id: str) -> str:
        """Re-sync a team's states, keeping manually configured estimates.

        Returns:
            The key the refreshed team is cached under
        """
        existing = self._cached_team(team_token, team_id)
        if existing is not None:
            key = existing[0]
        elif is_uuid(team_token):
            key = self.get_team_key(team_id).upper()
        else:
            key = team_token.upper()

        refreshed = self.sync.sync_team(key)
        if existing is not None:
            refreshed.estimates = dict(existing[1].estimates)
        self.config.cache_team(key, refreshed)
        self.config.save()
        return key

    # -- workflow states ---------------------------------------------------

    def resolve_state(self, team_token: str, state_token: str, use_cache: bool = True) -> str:
        """Resolve a workflow-state name or UUID to a state UUID.

        States are team-scoped, so the team is resolved first. Names match
        case-insensitively.

        Raises:
            NotFoundError: If the state does not exist (lists known states)
        """
        if is_uuid(state_token):
            return state_token

        team_id = self.resolve_team(team_token, use_cache)

        if not use_cache:
            states = self.sync.fetch_workflow_states(team_id)
            state_name = state_token.lower()
            for state in states:
                if state["name"].lower() == state_name:
                    state_id: str = state["id"]
                    return state_id
            raise NotFoundError(
                "State",
                state_token,
                [s["name"] for s in states],
                context=f"team '{team_token}'",
            )

        found = self._cached_team(team_token, team_id)
        if found is not None:
            cached_id = self.config.get_state_id(found[0], state_token)
            if cached_id is not None:
                return cached_id

        logger.debug(f"Cache miss for state {state_token} in {team_token}, re-syncing team")
        key = self._refresh_team(team_token, team_id)
        refreshed_id = self.config.get_state_id(key, state_token)
        if refreshed_id is not None:
            return refreshed_id
        raise NotFoundError(
            "State",
            state_token,
            self.config.get_all_states_for_team(key),
            context=f"team '{team_token}'",
        )

    # -- projects ----------------------------------------------------------

    def resolve_project(self, token: str, use_cache: bool = True) -> str:
        """Resolve a project slug or name to a project UUID.

        Slugs are cached by sync_all. A cache miss re-fetches the project
        list once before giving up.

        Raises:
            NotFoundError: If no project matches (lists known slugs)
        """
        if is_uuid(token):
            return token

        if not use_cache:
            projects = self.sync.fetch_projects()
            slug = project_slug(token)
            for project in projects:
                if project_slug(project["name"]) == slug:
                    project_id: str = project["id"]
                    return project_id
            raise NotFoundError("Project", token, [project_slug(p["name"]) for p in projects])

        self.config.get_active_org()
        cached_id = self.config.get_project_id(token)
        if cached_id is not None:
            return cached_id

        logger.debug(f"Cache miss for project {token}, re-syncing projects")
        self.sync.sync_projects(self.config)
        self.config.save()
        cached_id = self.config.get_project_id(token)
        if cached_id is not None:
            return cached_id
        raise NotFoundError("Project", token, self.config.get_all_project_slugs())

    # -- estimates ---------------------------------------------------------

    def resolve_estimate(
        self,
        value_token: str,
        team_token: str | None = None,
        use_cache: bool = True,
    ) -> float:
        """Resolve an estimate label or numeric string to a number.

        Numbers are returned as-is. Labels are only looked up in the cached
        estimate map of the given team; there is no API fallback.

        Raises:
            NotFoundError: If the label is not configured for the team
            ConfigError: If the team has no estimate labels at all
            ParseError: If the value is not numeric and no cache lookup is possible
        """
        try:
            return float(value_token)
        except ValueError:
            pass

        if use_cache and team_token is not None:
            value = self._cached_estimate(team_token, value_token)
            if value is not None:
                return value

            available = self._cached_estimate_labels(team_token)
            if not available:
                raise ConfigError(
                    f"Estimate '{value_token}' is not a number and no estimates are "
                    f"configured for team '{team_token}'. Provide a numeric value."
                )
            raise NotFoundError(
                "Estimate",
                value_token,
                available,
                context=f"team '{team_token}'",
            )

        raise ParseError(f"Invalid estimate '{value_token}': must be a numeric value")

    def _cached_estimate(self, team_token: str, label: str) -> float | None:
        if not is_uuid(team_token):
            return self.config.get_estimate_value(team_token, label)
        found = self._cached_team(team_token, team_token)
        if found is None:
            return None
        folded = label.lower()
        for name, value in found[1].estimates.items():
            if name.lower() == folded:
                return value
        return None

    def _cached_estimate_labels(self, team_token: str) -> list[str]:
        if not is_uuid(team_token):
            return self.config.get_all_estimates_for_team(team_token)
        found = self._cached_team(team_token, team_token)
        return list(found[1].estimates) if found else []


__all__ = ["Resolver", "is_uuid"]
