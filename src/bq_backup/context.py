"""Run-scoped state shared by every component of a backup run."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from . import __util__
from .config.schema import Config
from .core.models import BackupOutcome, CleanupWarnings
from .notify import Notifier, create_notifier
from .runlog import RunLog

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Everything a run needs besides the cloud clients.

    Attributes:
        run_date: YYYY-MM-DD prefix under which this run stores its backups
        now: Reference time for the retention cutoff
        bucket: Destination bucket
        retention_days: Age in days after which backups are pruned
        workers: Concurrent exports per project
        job_timeout: Seconds to wait for a warehouse job, None for no limit
        run_log: Outcome log, None to skip persisting outcomes
        notifier: Notification fan-out
        cleanup_warnings: Best-effort cleanup failures of this run
        dry_run: Plan only, no exports, deletions or notifications
    """

    run_date: str
    now: datetime
    bucket: str
    retention_days: int
    workers: int
    job_timeout: Optional[float] = None
    run_log: Optional[RunLog] = None
    notifier: Notifier = field(default_factory=Notifier)
    cleanup_warnings: CleanupWarnings = field(default_factory=CleanupWarnings)
    dry_run: bool = False

    @classmethod
    def from_config(
        cls,
        config: Config,
        now: Optional[datetime] = None,
        dry_run: bool = False,
    ) -> "RunContext":
        settings = config.global_config
        now = now or datetime.now()
        return cls(
            run_date=__util__.format_date(now),
            now=now,
            bucket=settings.bucket,
            retention_days=settings.retention_days,
            workers=settings.workers or __util__.default_worker_count(),
            job_timeout=config.get_job_timeout(),
            run_log=None if dry_run else RunLog(settings.log_file, settings.max_log_size),
            notifier=Notifier() if dry_run else create_notifier(config.notifications),
            dry_run=dry_run,
        )

    def record(self, outcome: BackupOutcome) -> None:
        """Persist an outcome and notify about it as soon as it is known."""
        if outcome.succeeded:
            logger.info("Backed up %s.%s.%s", outcome.project, outcome.dataset, outcome.table)
        else:
            logger.error(
                "Backup of %s.%s.%s failed: %s",
                outcome.project,
                outcome.dataset,
                outcome.table,
                outcome.reason,
            )

        if self.run_log is not None:
            try:
                self.run_log.append(outcome)
            except OSError as e:
                logger.error("Failed to write run log %s: %s", self.run_log.path, e)

        self.notifier.notify(outcome)
