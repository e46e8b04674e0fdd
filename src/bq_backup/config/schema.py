"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
"""

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_RETENTION_DAYS = 7
DEFAULT_PROJECT_FILE = "project.txt"
DEFAULT_LOG_FILE = "/var/log/bq-backup/backup_log.csv"
DEFAULT_MAX_LOG_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_JOB_TIMEOUT = 3600


@dataclass
class DiscordConfig:
    """Immediate per-table alert channel.

    Attributes:
        webhook_url: Discord webhook URL (empty disables the channel)
        tag_ids: User ids mentioned on failed tables
    """

    webhook_url: str = ""
    tag_ids: list[str] = field(default_factory=list)

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)


@dataclass
class WorkspaceConfig:
    """End-of-run digest channel.

    Attributes:
        webhook_url: Google Workspace Chat webhook URL (empty disables the channel)
    """

    webhook_url: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)


@dataclass
class NotificationConfig:
    """Notification channels."""

    discord: DiscordConfig = field(default_factory=DiscordConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)


@dataclass
class GlobalConfig:
    """Global configuration settings.

    Attributes:
        bucket: Destination GCS bucket (required)
        project_file: File listing one project id per line
        retention_days: Backups older than this many days are pruned
        log_file: CSV run log recording every table outcome
        max_log_size: Run log size in bytes above which it is archived
        workers: Concurrent exports per project (0 = half the CPUs)
        job_timeout: Seconds to wait for a warehouse job (0 = no limit)
        operator_log: Optional file receiving operator log output
    """

    bucket: str = ""
    project_file: str = DEFAULT_PROJECT_FILE
    retention_days: int = DEFAULT_RETENTION_DAYS
    log_file: str = DEFAULT_LOG_FILE
    max_log_size: int = DEFAULT_MAX_LOG_SIZE
    workers: int = 0
    job_timeout: int = DEFAULT_JOB_TIMEOUT
    operator_log: Optional[str] = None


@dataclass
class Config:
    """Root configuration object.

    Attributes:
        global_config: Settings that apply to the whole run
        notifications: Webhook channels
    """

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)

    def get_job_timeout(self) -> Optional[float]:
        """Timeout for warehouse jobs, None meaning wait indefinitely."""
        timeout = self.global_config.job_timeout
        return float(timeout) if timeout > 0 else None
