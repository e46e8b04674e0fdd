"""Configuration system for bq-backup.

This module provides TOML-based configuration loading, validation,
command line overrides and schema definitions for the backup run.
"""

from .loader import (
    ConfigError,
    apply_overrides,
    find_config_file,
    load_config,
    require_bucket,
)
from .schema import (
    Config,
    DiscordConfig,
    GlobalConfig,
    NotificationConfig,
    WorkspaceConfig,
)

__all__ = [
    "Config",
    "DiscordConfig",
    "GlobalConfig",
    "NotificationConfig",
    "WorkspaceConfig",
    "apply_overrides",
    "load_config",
    "find_config_file",
    "require_bucket",
    "ConfigError",
]
