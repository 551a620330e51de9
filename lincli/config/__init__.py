"""Configuration management for lincli."""

from lincli.config.manager import (
    CachedTeam,
    Config,
    ConfigValidationIssue,
    ConfigValidationResult,
    OrgCache,
    OrgConfig,
    ValidationSeverity,
    config_path,
    find_local_config_path,
    global_config_path,
    project_slug,
)

__all__ = [
    "CachedTeam",
    "Config",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "OrgCache",
    "OrgConfig",
    "ValidationSeverity",
    "config_path",
    "find_local_config_path",
    "global_config_path",
    "project_slug",
]
