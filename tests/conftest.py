"""Shared pytest fixtures for lincli tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from lincli.cache import ResponseCache
from lincli.config.manager import CachedTeam, Config
from lincli.integrations.graphql import QueryPort
from lincli.integrations.queries import (
    PROJECTS_QUERY,
    TEAM_BY_KEY_QUERY,
    TEAM_QUERY,
    TEAMS_QUERY,
    VIEWER_QUERY,
    WORKFLOW_STATES_QUERY,
)
from lincli.utils.errors import ApiError

ENG_ID = "t-1"
DES_ID = "t-2"


class FakeQueryPort(QueryPort):
    """In-memory stand-in for the Linear API.

    Teams are given as ``{key: {"id", "name", "states": {name: id},
    "issueEstimationType"}}`` and projects as ``{name: id}``. Every call is
    recorded in ``calls``.
    """

    def __init__(
        self,
        teams: dict[str, dict[str, Any]] | None = None,
        projects: dict[str, str] | None = None,
    ) -> None:
        self.teams = teams if teams is not None else {}
        self.projects = projects if projects is not None else {}
        self.calls: list[tuple[str, dict[str, Any] | None]] = []
        self.fail_on: set[str] = set()

    def _team_node(self, key: str) -> dict[str, Any]:
        team = self.teams[key]
        return {
            "id": team["id"],
            "key": key,
            "name": team.get("name", key.title()),
            "issueEstimationType": team.get("issueEstimationType"),
        }

    def query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((query, variables))
        if query in self.fail_on:
            raise ApiError("HTTP 500 from Linear API")

        if query == TEAMS_QUERY:
            return {"teams": {"nodes": [self._team_node(k) for k in self.teams]}}
        if query == TEAM_BY_KEY_QUERY:
            key = variables["filter"]["key"]["eq"]
            nodes = [self._team_node(key)] if key in self.teams else []
            return {"teams": {"nodes": nodes}}
        if query == WORKFLOW_STATES_QUERY:
            for team in self.teams.values():
                if team["id"] == variables["id"]:
                    nodes = [
                        {"id": sid, "name": name, "color": "#000", "type": "unstarted"}
                        for name, sid in team.get("states", {}).items()
                    ]
                    return {"team": {"id": team["id"], "states": {"nodes": nodes}}}
            raise ApiError(f"GraphQL errors: Entity not found: {variables['id']}")
        if query == TEAM_QUERY:
            for key in self.teams:
                if self.teams[key]["id"] == variables["id"]:
                    return {"team": self._team_node(key)}
            return {"team": None}
        if query == PROJECTS_QUERY:
            nodes = [{"id": pid, "name": name} for name, pid in self.projects.items()]
            return {"projects": {"nodes": nodes}}
        if query == VIEWER_QUERY:
            return {"viewer": {"id": "u-1", "name": "Test User", "email": "test@example.com"}}
        raise AssertionError(f"Unexpected query: {query}")

    def count(self, query: str) -> int:
        return sum(1 for q, _ in self.calls if q == query)

    # GraphQLClient lifecycle, so the fake can be patched in for CLI tests
    def close(self) -> None:
        pass

    def __enter__(self) -> FakeQueryPort:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests away from the real home directory and API token."""
    monkeypatch.delenv("LINEAR_API_TOKEN", raising=False)
    monkeypatch.setenv("LIN_CONFIG_FILE", str(tmp_path / "config" / "config.json"))
    monkeypatch.setenv("LIN_CACHE_DIR", str(tmp_path / "cache"))


@pytest.fixture
def fake_api() -> FakeQueryPort:
    return FakeQueryPort(
        {
            "ENG": {
                "id": ENG_ID,
                "name": "Engineering",
                "states": {"Todo": "s-1", "Done": "s-2"},
                "issueEstimationType": "tShirt",
            },
            "DES": {
                "id": DES_ID,
                "name": "Design",
                "states": {"Backlog": "s-3", "In Progress": "s-4"},
                "issueEstimationType": "fibonacci",
            },
        },
        projects={"Q1 Backend": "p-1", "Mobile App": "p-2"},
    )


@pytest.fixture
def other_api() -> FakeQueryPort:
    """A second organization with a single OPS team."""
    return FakeQueryPort(
        {"OPS": {"id": "t-9", "name": "Operations", "states": {"Queued": "s-9"}}},
        projects={"Runbooks": "p-9"},
    )

@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "config" / "config.json"


@pytest.fixture
def empty_config(config_file: Path) -> Config:
    """Config with one active org and an empty team cache."""
    config = Config(path=config_file)
    config.add_org("acme", "lin_api_test_token_123")
    config.save()
    return config


@pytest.fixture
def cached_config(empty_config: Config) -> Config:
    """Config whose active org already has ENG cached."""
    empty_config.cache_team(
        "ENG",
        CachedTeam(
            id=ENG_ID,
            name="Engineering",
            states={"Todo": "s-1", "Done": "s-2"},
            estimates={"S": 1.0, "M": 2.0, "L": 3.0},
        ),
    )
    empty_config.save()
    return empty_config


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(tmp_path: Path, clock: FakeClock) -> ResponseCache:
    return ResponseCache(tmp_path / "responses", clock=clock)
