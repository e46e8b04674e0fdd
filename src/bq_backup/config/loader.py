"""TOML configuration loading and validation.

Handles config file discovery, parsing, command line overrides and
validation with helpful error messages.
"""

import argparse
import tomllib
from pathlib import Path
from typing import Any

from .schema import (
    DEFAULT_JOB_TIMEOUT,
    DEFAULT_LOG_FILE,
    DEFAULT_MAX_LOG_SIZE,
    DEFAULT_PROJECT_FILE,
    DEFAULT_RETENTION_DAYS,
    Config,
    DiscordConfig,
    GlobalConfig,
    NotificationConfig,
    WorkspaceConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "bq-backup" / "config.toml",
    Path("/etc/bq-backup/config.toml"),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def split_tag_ids(value: str | list[str] | None) -> list[str]:
    """Normalize tag ids given as a comma separated string or a list."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(v).strip() for v in value if str(v).strip()]


def _parse_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' must be an integer, got {value!r}")
    return value


def _parse_global(data: dict[str, Any]) -> GlobalConfig:
    """Parse global configuration from dict."""
    return GlobalConfig(
        bucket=data.get("bucket", ""),
        project_file=data.get("project_file", DEFAULT_PROJECT_FILE),
        retention_days=_parse_int(data, "retention_days", DEFAULT_RETENTION_DAYS),
        log_file=data.get("log_file", DEFAULT_LOG_FILE),
        max_log_size=_parse_int(data, "max_log_size", DEFAULT_MAX_LOG_SIZE),
        workers=_parse_int(data, "workers", 0),
        job_timeout=_parse_int(data, "job_timeout", DEFAULT_JOB_TIMEOUT),
        operator_log=data.get("operator_log") or None,
    )


def _parse_notifications(data: dict[str, Any]) -> NotificationConfig:
    """Parse notification channels from dict."""
    discord = data.get("discord", {})
    workspace = data.get("workspace", {})
    return NotificationConfig(
        discord=DiscordConfig(
            webhook_url=discord.get("webhook_url", ""),
            tag_ids=split_tag_ids(discord.get("tag_ids")),
        ),
        workspace=WorkspaceConfig(webhook_url=workspace.get("webhook_url", "")),
    )


def _validate_config(config: Config) -> list[str]:
    """Validate configuration, raising on fatal problems and returning warnings."""
    settings = config.global_config

    if settings.retention_days < 0:
        raise ConfigError("'retention_days' must not be negative")
    if settings.workers < 0:
        raise ConfigError("'workers' must not be negative")
    if settings.max_log_size <= 0:
        raise ConfigError("'max_log_size' must be positive")
    if settings.job_timeout < 0:
        raise ConfigError("'job_timeout' must not be negative")

    warnings = []

    if not settings.bucket:
        warnings.append("No bucket configured")

    for name, url in (
        ("discord", config.notifications.discord.webhook_url),
        ("workspace", config.notifications.workspace.webhook_url),
    ):
        if url and not url.startswith(("http://", "https://")):
            warnings.append(f"Webhook URL for {name} does not look like an HTTP URL")

    if config.notifications.discord.tag_ids and not config.notifications.discord.enabled:
        warnings.append("Discord tag ids configured without a Discord webhook")

    return warnings


def load_config(path: Path | str | None) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file, None for built-in defaults

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    data: dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML syntax: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}")

    config = Config(
        global_config=_parse_global(data.get("global", {})),
        notifications=_parse_notifications(data.get("notifications", {})),
    )

    warnings = _validate_config(config)

    return config, warnings


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply command line flags on top of file configuration.

    Only flags that were actually given override the file values.
    """
    settings = config.global_config

    if getattr(args, "bucket", None):
        settings.bucket = args.bucket
    if getattr(args, "project_file", None):
        settings.project_file = args.project_file
    if getattr(args, "retention", None) is not None:
        settings.retention_days = args.retention
    if getattr(args, "workers", None) is not None:
        settings.workers = args.workers
    if getattr(args, "job_timeout", None) is not None:
        settings.job_timeout = args.job_timeout
    if getattr(args, "log_file", None):
        settings.log_file = args.log_file
    if getattr(args, "webhook", None):
        config.notifications.discord.webhook_url = args.webhook
    if getattr(args, "tagid", None):
        config.notifications.discord.tag_ids = split_tag_ids(args.tagid)
    if getattr(args, "workspace", None):
        config.notifications.workspace.webhook_url = args.workspace

    _validate_config(config)
    return config


def require_bucket(config: Config) -> str:
    """Return the destination bucket or raise when none is configured."""
    bucket = config.global_config.bucket
    if not bucket:
        raise ConfigError(
            "No bucket configured. Use --bucket=BUCKET_NAME or set "
            "'bucket' in the [global] section"
        )
    return bucket


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# bq-backup configuration
# See documentation for full options

[global]
bucket = "my-bigquery-backups"
project_file = "project.txt"
retention_days = 7
log_file = "/var/log/bq-backup/backup_log.csv"
max_log_size = 10485760   # archive the run log above 10MB

# Concurrency settings
workers = 0               # 0 = half the available CPUs
job_timeout = 3600        # seconds to wait for an export job (0 = no limit)

# operator_log = "/var/log/bq-backup/bq-backup.log"

# Per-table alerts
[notifications.discord]
webhook_url = ""
# tag_ids = ["123456789012345678"]

# Daily digest
[notifications.workspace]
webhook_url = ""
"""
