"""Core backup operations for bq-backup.

Table export, the per-project worker pool and retention pruning. The
run orchestration lives in ``core.orchestrator``.
"""

from .export import TableExporter
from .models import BackupJob, BackupOutcome, BackupStatus, CleanupWarnings
from .pool import WorkerPool
from .retention import PruneResult, prune_project

__all__ = [
    "BackupJob",
    "BackupOutcome",
    "BackupStatus",
    "CleanupWarnings",
    "PruneResult",
    "TableExporter",
    "WorkerPool",
    "prune_project",
]
