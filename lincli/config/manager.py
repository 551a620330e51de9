"""Persisted configuration for lincli.

This module owns the on-disk JSON document that holds API credentials for
every authenticated organization plus, per organization, a cache of team
metadata (team key -> id, workflow-state names, estimate labels) and project
slugs used to resolve short identifiers without a network call.

Config file location (first match wins):

    1. $LIN_CONFIG_FILE
    2. Local config (.lin/config.json in the current or a parent directory,
       stopping at the repository root)
    3. Global config ($XDG_CONFIG_HOME/lin/config.json or ~/.config/lin/config.json)

Each CLI invocation loads the document once, mutates it in memory and saves
it back. There is no cross-process locking; saves are atomic replaces, so
the last writer wins at the file level.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from lincli.utils.errors import ConfigError, NotFoundError
from lincli.utils.logging import log_message

logger = logging.getLogger(__name__)

LOCAL_CONFIG_DIR = ".lin"
CONFIG_FILE_NAME = "config.json"
TOKEN_PREFIX = "lin_api_"

_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def global_config_path() -> Path:
    """Returns the path to the global configuration file."""
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "lin" / CONFIG_FILE_NAME


def find_local_config_path(start: Path | None = None) -> Path | None:
    """Find a local .lin/config.json by traversing up from ``start`` (CWD).

    Stops at the first directory containing ``.git`` (repository root) or
    at the filesystem root.
    """
    current = start or Path.cwd()
    while True:
        candidate = current / LOCAL_CONFIG_DIR / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

        if (current / ".git").exists():
            return None

        parent = current.parent
        if parent == current:
            return None
        current = parent


def config_path() -> Path:
    """Resolve the config file used by this invocation."""
    override = os.environ.get("LIN_CONFIG_FILE")
    if override:
        return Path(override)
    return find_local_config_path() or global_config_path()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def project_slug(name: str) -> str:
    """Slug used to refer to a project by name: "Q1 Backend!" -> "q1-backend"."""
    return _SLUG_SEPARATORS.sub("-", name.lower()).strip("-")


@dataclass
class CachedTeam:
    """Cached metadata for one team.

    Attributes:
        id: Team UUID
        name: Team display name
        states: Workflow-state name (lower-cased) -> state UUID
        estimates: Estimate label -> numeric value
    """

    id: str
    name: str
    states: dict[str, str] = field(default_factory=dict)
    estimates: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # State names are stored lower-cased
        self.states = {name.lower(): state_id for name, state_id in self.states.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "states": dict(self.states),
            "estimates": dict(self.estimates),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CachedTeam:
        return cls(
            id=raw["id"],
            name=raw.get("name", ""),
            states=dict(raw.get("states") or {}),
            estimates={k: float(v) for k, v in (raw.get("estimates") or {}).items()},
        )


@dataclass
class OrgCache:
    """Per-organization cache: teams, project slugs and last full-sync timestamp.

    Attributes:
        teams: Team key -> CachedTeam
        projects: Project slug (see project_slug) -> project UUID
        last_sync: ISO-8601 UTC time of the last complete sync
    """

    teams: dict[str, CachedTeam] = field(default_factory=dict)
    projects: dict[str, str] = field(default_factory=dict)
    last_sync: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "teams": {key: team.to_dict() for key, team in self.teams.items()},
            "projects": dict(self.projects),
            "last_sync": self.last_sync,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OrgCache:
        teams = {key: CachedTeam.from_dict(t) for key, t in (raw.get("teams") or {}).items()}
        return cls(
            teams=teams,
            projects=dict(raw.get("projects") or {}),
            last_sync=raw.get("last_sync"),
        )


@dataclass
class OrgConfig:
    """Credentials and cached data for one organization."""

    token: str
    cache: OrgCache = field(default_factory=OrgCache)
    current_team: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "current_team": self.current_team,
            "cache": self.cache.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OrgConfig:
        return cls(
            token=raw.get("token", ""),
            cache=OrgCache.from_dict(raw.get("cache") or {}),
            current_team=raw.get("current_team"),
        )

    def find_team(self, team_key: str) -> tuple[str, CachedTeam] | None:
        """Look up a cached team by key, ignoring case.

        Returns:
            (stored key, team) or None
        """
        for candidate in (team_key, team_key.upper()):
            team = self.cache.teams.get(candidate)
            if team is not None:
                return candidate, team
        folded = team_key.lower()
        for key, team in self.cache.teams.items():
            if key.lower() == folded:
                return key, team
        return None


class ValidationSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ConfigValidationIssue:
    severity: ValidationSeverity
    field: str
    message: str


@dataclass
class ConfigValidationResult:
    """Result of Config.validate(): valid unless an ERROR issue is present."""

    issues: list[ConfigValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not any(i.severity is ValidationSeverity.ERROR for i in self.issues)


@dataclass
class Config:
    """Multi-organization configuration document.

    Attributes:
        active_org: Name of the organization used by default
        orgs: Organization name -> OrgConfig
        path: File this config was loaded from and is saved to
    """

    active_org: str | None = None
    orgs: dict[str, OrgConfig] = field(default_factory=dict)
    path: Path | None = field(default=None, compare=False, repr=False)

    # -- persistence -------------------------------------------------------

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Load configuration from disk.

        A missing file yields an empty configuration bound to ``path``.

        Raises:
            ConfigError: If the file exists but cannot be read or parsed
        """
        target = path or config_path()
        if not target.exists():
            return cls(path=target)

        try:
            raw = json.loads(target.read_text())
        except OSError as e:
            raise ConfigError(f"Failed to read config file {target}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse config file {target}: {e}") from e

        try:
            config = cls.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"Malformed config file {target}: {e}") from e
        config.path = target
        log_message(f"Loaded configuration from {target} ({len(config.orgs)} orgs)")
        return config

    def save(self, path: Path | None = None) -> None:
        """Atomically write the configuration with 0600 permissions.

        Raises:
            ConfigError: If the file cannot be written
        """
        target = path or self.path or config_path()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=target.parent, prefix=".lin-config-")
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(self.to_dict(), f, indent=2)
                    f.write("\n")
                os.chmod(temp_path, 0o600)
                os.replace(temp_path, target)
            except BaseException:
                Path(temp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ConfigError(f"Failed to write config file {target}: {e}") from e
        self.path = target
        logger.debug(f"Saved configuration to {target}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "active_org": self.active_org,
            "orgs": {name: org.to_dict() for name, org in self.orgs.items()},
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Config:
        if not isinstance(raw, dict):
            raise ValueError("top-level value must be an object")
        orgs = {name: OrgConfig.from_dict(org) for name, org in (raw.get("orgs") or {}).items()}
        return cls(active_org=raw.get("active_org"), orgs=orgs)

    # -- organizations -----------------------------------------------------

    def add_org(self, name: str, token: str) -> None:
        """Add an organization or replace its token, keeping its cache.

        The first organization added becomes the active one.
        """
        existing = self.orgs.get(name)
        if existing is not None:
            existing.token = token
        else:
            self.orgs[name] = OrgConfig(token=token)
        if self.active_org is None:
            self.active_org = name

    def switch_org(self, name: str) -> None:
        if name not in self.orgs:
            raise ConfigError(
                f"Organization '{name}' not found in configuration. "
                f"Use 'lin auth add {name} --token <token>' to add it."
            )
        self.active_org = name

    def remove_org(self, name: str) -> None:
        if self.orgs.pop(name, None) is None:
            raise ConfigError(f"Organization '{name}' not found in configuration")
        if self.active_org == name:
            self.active_org = None

    def list_orgs(self) -> list[str]:
        return sorted(self.orgs)

    def get_active_org_name(self) -> str:
        if self.active_org is None:
            raise ConfigError(
                "No active organization. Use 'lin auth add <name> --token <token>' "
                "to authenticate."
            )
        return self.active_org

    def get_active_org(self) -> OrgConfig:
        """Return the active organization's config.

        Raises:
            ConfigError: If no org is active or the active org is missing
        """
        name = self.get_active_org_name()
        org = self.orgs.get(name)
        if org is None:
            raise ConfigError(f"Active organization '{name}' is not in the configuration")
        return org

    def get_token(self, org: str | None = None) -> str:
        if org is None:
            return self.get_active_org().token
        org_config = self.orgs.get(org)
        if org_config is None:
            raise ConfigError(
                f"Organization '{org}' not found in configuration. "
                f"Use 'lin auth add {org} --token <token>' to add it."
            )
        return org_config.token

    # -- team cache --------------------------------------------------------

    def get_active_org_or_none(self) -> OrgConfig | None:
        if self.active_org is None:
            return None
        return self.orgs.get(self.active_org)

    def cache_team(self, team_key: str, team: CachedTeam) -> None:
        """Store a team in the active org's cache (in memory; call save())."""
        self.get_active_org().cache.teams[team_key] = team

    def get_team(self, team_key: str) -> CachedTeam | None:
        org = self.get_active_org_or_none()
        if org is None:
            return None
        found = org.find_team(team_key)
        return found[1] if found else None

    def get_team_id(self, team_key: str) -> str | None:
        team = self.get_team(team_key)
        return team.id if team else None

    def get_state_id(self, team_key: str, state_name: str) -> str | None:
        team = self.get_team(team_key)
        if team is None:
            return None
        return team.states.get(state_name.lower())

    def get_estimate_value(self, team_key: str, label: str) -> float | None:
        team = self.get_team(team_key)
        if team is None:
            return None
        if label in team.estimates:
            return team.estimates[label]
        folded = label.lower()
        for name, value in team.estimates.items():
            if name.lower() == folded:
                return value
        return None

    def set_estimates(self, team_key: str, estimates: dict[str, float]) -> None:
        """Replace a cached team's estimate labels.

        Raises:
            NotFoundError: If the team is not cached for the active org
        """
        org = self.get_active_org()
        found = org.find_team(team_key)
        if found is None:
            raise NotFoundError("Team", team_key, self.get_all_team_keys())
        found[1].estimates = {label: float(value) for label, value in estimates.items()}

    def get_all_team_keys(self) -> list[str]:
        org = self.get_active_org_or_none()
        return sorted(org.cache.teams) if org else []

    def get_all_states_for_team(self, team_key: str) -> list[str]:
        team = self.get_team(team_key)
        return sorted(team.states) if team else []

    def get_all_estimates_for_team(self, team_key: str) -> list[str]:
        team = self.get_team(team_key)
        if team is None:
            return []
        return [label for label, _ in sorted(team.estimates.items(), key=lambda kv: kv[1])]

    # -- project cache -----------------------------------------------------

    def cache_projects(self, projects: Iterable[tuple[str, str]]) -> None:
        """Add (project id, project name) pairs to the active org's slug map."""
        cache = self.get_active_org().cache
        for project_id, name in projects:
            slug = project_slug(name)
            if slug:
                cache.projects[slug] = project_id

    def get_project_id(self, slug: str) -> str | None:
        """Look up a project UUID by slug or by name (case-insensitive)."""
        org = self.get_active_org_or_none()
        if org is None:
            return None
        return org.cache.projects.get(project_slug(slug))

    def get_project_slug(self, project_id: str) -> str | None:
        org = self.get_active_org_or_none()
        if org is None:
            return None
        for slug, cached_id in org.cache.projects.items():
            if cached_id == project_id:
                return slug
        return None

    def get_all_project_slugs(self) -> list[str]:
        org = self.get_active_org_or_none()
        return sorted(org.cache.projects) if org else []

    def update_last_sync(self, timestamp: str | None = None) -> None:
        self.get_active_org().cache.last_sync = timestamp or _utc_now_iso()

    def set_current_team(self, team_key: str) -> None:
        self.get_active_org().current_team = team_key.upper()

    def get_current_team(self) -> str | None:
        org = self.get_active_org_or_none()
        return org.current_team if org else None

    # -- validation --------------------------------------------------------

    def validate(self) -> ConfigValidationResult:
        """Check tokens and the active organization reference."""
        result = ConfigValidationResult()
        for name, org in sorted(self.orgs.items()):
            if not name.strip():
                result.issues.append(
                    ConfigValidationIssue(
                        ValidationSeverity.ERROR, "orgs", "Organization name cannot be empty"
                    )
                )
            if not org.token:
                result.issues.append(
                    ConfigValidationIssue(
                        ValidationSeverity.ERROR,
                        f"orgs.{name}.token",
                        f"Token for organization '{name}' is empty",
                    )
                )
            elif not org.token.startswith(TOKEN_PREFIX):
                result.issues.append(
                    ConfigValidationIssue(
                        ValidationSeverity.WARNING,
                        f"orgs.{name}.token",
                        f"Token for organization '{name}' may be invalid: "
                        f"does not start with '{TOKEN_PREFIX}'",
                    )
                )

        if self.active_org is not None and self.active_org not in self.orgs:
            result.issues.append(
                ConfigValidationIssue(
                    ValidationSeverity.ERROR,
                    "active_org",
                    f"Active organization '{self.active_org}' does not exist",
                )
            )
        return result

    @staticmethod
    def mask_token(token: str) -> str:
        """Show only the first 12 characters of a token."""
        if len(token) <= 12:
            return "*" * len(token)
        return f"{token[:12]}..."


__all__ = [
    "CachedTeam",
    "OrgCache",
    "OrgConfig",
    "Config",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "ValidationSeverity",
    "config_path",
    "find_local_config_path",
    "global_config_path",
    "project_slug",
]
