"""Team metadata synchronization.

Fetches team ids, names and workflow states from Linear and turns them into
CachedTeam records stored in the active organization's cache, along with
the project slug -> id map.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any

from lincli.config.manager import CachedTeam, Config
from lincli.integrations.graphql import QueryPort
from lincli.integrations.queries import (
    PROJECTS_PAGE_SIZE,
    PROJECTS_QUERY,
    TEAM_BY_KEY_QUERY,
    TEAMS_PAGE_SIZE,
    TEAMS_QUERY,
    WORKFLOW_STATES_QUERY,
)
from lincli.utils.errors import ApiError, NotFoundError
from lincli.utils.logging import log_message

logger = logging.getLogger(__name__)

# Linear's issueEstimationType -> label/value scale
ESTIMATE_SCALES: MappingProxyType[str, tuple[tuple[str, float], ...]] = MappingProxyType(
    {
        "tShirt": (("xs", 1.0), ("s", 2.0), ("m", 3.0), ("l", 5.0), ("xl", 8.0)),
        "linear": tuple((str(v), float(v)) for v in (1, 2, 3, 4, 5)),
        "fibonacci": tuple((str(v), float(v)) for v in (1, 2, 3, 5, 8, 13, 21)),
        "exponential": tuple((str(v), float(v)) for v in (1, 2, 4, 8, 16, 32, 64)),
    }
)


def parse_estimate_scale(estimate_type: str | None) -> dict[str, float]:
    """Map a team's estimation type to its label -> value table.

    Returns an empty dict for ``notUsed``, None, or unknown types.
    """
    if estimate_type is None:
        return {}
    return dict(ESTIMATE_SCALES.get(estimate_type, ()))


def _nodes(data: dict[str, Any], *path: str) -> list[dict[str, Any]]:
    current: Any = data
    for key in path:
        if not isinstance(current, dict) or current.get(key) is None:
            raise ApiError(f"Unexpected response shape: missing '{key}'")
        current = current[key]
    nodes = current.get("nodes") if isinstance(current, dict) else None
    if not isinstance(nodes, list):
        raise ApiError("Unexpected response shape: missing 'nodes'")
    return nodes


class SyncEngine:
    """Populates and refreshes CachedTeam records from the API."""

    def __init__(self, client: QueryPort) -> None:
        self.client = client

    def fetch_team_by_key(self, team_key: str) -> dict[str, Any]:
        """Query a single team by key (upper-cased before sending).

        Raises:
            NotFoundError: If no team has that key
            ApiError: If the query fails
        """
        data = self.client.query(
            TEAM_BY_KEY_QUERY,
            {"filter": {"key": {"eq": team_key.upper()}}},
        )
        teams = _nodes(data, "teams")
        if not teams:
            raise NotFoundError("Team", team_key)
        return teams[0]

    def fetch_workflow_states(self, team_id: str) -> list[dict[str, Any]]:
        """Query all workflow states of a team."""
        data = self.client.query(WORKFLOW_STATES_QUERY, {"id": team_id})
        return _nodes(data, "team", "states")

    def _build_team(
        self,
        team: dict[str, Any],
        estimates: dict[str, float] | None = None,
    ) -> CachedTeam:
        states = self.fetch_workflow_states(team["id"])
        return CachedTeam(
            id=team["id"],
            name=team.get("name", ""),
            states={s["name"].lower(): s["id"] for s in states},
            estimates=estimates or {},
        )

    def sync_team(self, team_key: str) -> CachedTeam:
        """Fetch one team and its workflow states.

        The returned record has an empty estimates map; estimate labels are
        filled in by sync_all or configured by hand.

        Raises:
            NotFoundError: If no team has that key
            ApiError: If either query fails
        """
        team = self.fetch_team_by_key(team_key)
        cached = self._build_team(team)
        logger.debug(f"Synced team {team_key.upper()} ({len(cached.states)} states)")
        return cached

    def fetch_projects(self) -> list[dict[str, Any]]:
        """Query the organization's projects (id and name)."""
        data = self.client.query(PROJECTS_QUERY, {"first": PROJECTS_PAGE_SIZE})
        return _nodes(data, "projects")

    def sync_projects(self, config: Config) -> int:
        """Fetch the organization's projects into the active org's slug map.

        Returns:
            Number of projects fetched

        Raises:
            ConfigError: If there is no active organization
            ApiError: If the query fails
        """
        config.get_active_org()
        projects = self.fetch_projects()
        config.cache_projects((p["id"], p["name"]) for p in projects)
        logger.debug(f"Synced {len(projects)} projects")
        return len(projects)

    def sync_all(self, config: Config) -> list[tuple[str, int]]:
        """Refresh every team and project of the active organization.

        Teams are written into ``config`` and saved one at a time. The first
        failure aborts the pass and propagates; teams synced before it stay
        saved, and ``last_sync`` is only updated when everything succeeds.

        A team that already has estimate labels keeps them; otherwise its
        labels are derived from the team's estimation type.

        Returns:
            (team_key, state_count) for each synced team, in API order

        Raises:
            ConfigError: If there is no active organization
            ApiError: If any query fails
        """
        config.get_active_org()
        data = self.client.query(TEAMS_QUERY, {"first": TEAMS_PAGE_SIZE})

        results: list[tuple[str, int]] = []
        for team in _nodes(data, "teams"):
            existing = config.get_team(team["key"])
            if existing is not None and existing.estimates:
                estimates = dict(existing.estimates)
            else:
                estimates = parse_estimate_scale(team.get("issueEstimationType"))
            cached = self._build_team(team, estimates=estimates)
            config.cache_team(team["key"], cached)
            config.save()
            results.append((team["key"], len(cached.states)))

        self.sync_projects(config)
        config.update_last_sync()
        config.save()
        log_message(f"Synced {len(results)} teams for {config.active_org}")
        return results


__all__ = ["ESTIMATE_SCALES", "SyncEngine", "parse_estimate_scale"]
