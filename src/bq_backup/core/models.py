"""Records flowing through a backup run.

A BackupJob names one table to back up. Exactly one BackupOutcome is
produced for every job; it is persisted by the run log and fanned out to
the notification channels. Best-effort cleanup failures never change an
outcome and are collected separately as CleanupWarnings.
"""

import threading
from dataclasses import dataclass
from enum import Enum

from ..endpoint.common import TableRef


class BackupStatus(Enum):
    """Terminal status of a table backup."""

    COMPLETE = "Complete"
    FAILED = "Failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BackupJob:
    """One table to back up."""

    project: str
    dataset: str
    table: str

    @classmethod
    def from_table(cls, table: TableRef) -> "BackupJob":
        return cls(table.project, table.dataset, table.table)

    def __str__(self) -> str:
        return f"{self.project}.{self.dataset}.{self.table}"


@dataclass(frozen=True)
class BackupOutcome:
    """Result of one BackupJob."""

    run_date: str
    project: str
    dataset: str
    table: str
    status: BackupStatus
    reason: str = ""

    @classmethod
    def complete(cls, run_date: str, job: BackupJob) -> "BackupOutcome":
        return cls(run_date, job.project, job.dataset, job.table, BackupStatus.COMPLETE)

    @classmethod
    def failed(cls, run_date: str, job: BackupJob, reason: str) -> "BackupOutcome":
        return cls(
            run_date, job.project, job.dataset, job.table, BackupStatus.FAILED, reason
        )

    @property
    def succeeded(self) -> bool:
        return self.status is BackupStatus.COMPLETE

    def as_row(self) -> list[str]:
        """Row written to the run log."""
        return [
            self.run_date,
            self.project,
            self.dataset,
            self.table,
            str(self.status),
            self.reason,
        ]


@dataclass(frozen=True)
class CleanupWarning:
    """A best-effort cleanup step that did not succeed."""

    kind: str  # "temp-table", "stale-backup" or "retention-scan"
    target: str
    reason: str

    def __str__(self) -> str:
        return f"{self.kind} {self.target}: {self.reason}"


class CleanupWarnings:
    """Thread-safe collector for cleanup failures of a run."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._warnings: list[CleanupWarning] = []

    def add(self, kind: str, target: str, reason: str) -> CleanupWarning:
        warning = CleanupWarning(kind, target, reason)
        with self._lock:
            self._warnings.append(warning)
        return warning

    def snapshot(self) -> list[CleanupWarning]:
        with self._lock:
            return list(self._warnings)

    def __len__(self) -> int:
        with self._lock:
            return len(self._warnings)
