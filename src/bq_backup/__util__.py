# pyright: standard

"""bq-backup: bq_backup/__util__.py
Common exceptions and small helpers shared by all modules.
"""

import os
import time
from datetime import date, datetime

DATE_FORMAT = "%Y-%m-%d"


class BackupJobError(Exception):
    """A warehouse job (export, materialization, metadata) did not succeed."""

    pass


class JobTimeoutError(BackupJobError):
    """A warehouse job did not reach a terminal state within the timeout."""

    def __init__(self, job_id, timeout) -> None:
        self.job_id = job_id
        self.timeout = timeout
        super().__init__(f"job {job_id} did not finish within {timeout}s")


def log_heading(caption: str) -> str:
    """Return a framed heading for log output."""
    return f"--[ {caption} ]--"


def format_date(value: date | datetime) -> str:
    """Format a run date as YYYY-MM-DD."""
    return value.strftime(DATE_FORMAT)


def parse_date(value: str) -> datetime:
    """Parse a YYYY-MM-DD string, raising ValueError on anything else."""
    return datetime.strptime(value, DATE_FORMAT)


def default_worker_count() -> int:
    """Half the available CPUs, but never less than one worker."""
    return max(1, (os.cpu_count() or 1) // 2)


def unix_timestamp() -> int:
    """Whole seconds since the epoch."""
    return int(time.time())
