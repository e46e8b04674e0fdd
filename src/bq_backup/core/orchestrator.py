"""Run orchestration: every project in turn, then the digest.

Per project: create the warehouse client, enumerate datasets and tables,
drain the export jobs through a worker pool, then prune old backups.
Projects are processed one after the other; a failure while setting up or
enumerating a project ends that project only.
"""

import contextlib
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .. import __util__
from ..context import RunContext
from ..endpoint import ObjectStore, Warehouse, create_warehouse
from .export import TableExporter
from .models import BackupJob, BackupOutcome, CleanupWarning
from .pool import WorkerPool
from .retention import prune_project

logger = logging.getLogger(__name__)


@dataclass
class ProjectResult:
    """What happened to one project during a run."""

    project: str
    tables: int = 0
    complete: int = 0
    failed: int = 0
    pruned: int = 0
    error: Optional[str] = None
    outcomes: list[BackupOutcome] = field(default_factory=list)

    @property
    def aborted(self) -> bool:
        return self.error is not None


@dataclass
class RunSummary:
    """Aggregate of a whole run."""

    run_date: str
    projects: list[ProjectResult] = field(default_factory=list)
    cleanup_warnings: list[CleanupWarning] = field(default_factory=list)
    digest_sent: bool = False

    @property
    def tables(self) -> int:
        return sum(p.tables for p in self.projects)

    @property
    def complete(self) -> int:
        return sum(p.complete for p in self.projects)

    @property
    def failed(self) -> int:
        return sum(p.failed for p in self.projects)

    @property
    def pruned(self) -> int:
        return sum(p.pruned for p in self.projects)

    @property
    def aborted_projects(self) -> list[ProjectResult]:
        return [p for p in self.projects if p.aborted]


def enumerate_jobs(warehouse: Warehouse) -> list[BackupJob]:
    """List every table of every dataset of the warehouse's project.

    Listing errors propagate to the caller.
    """
    jobs = []
    for dataset in warehouse.list_datasets():
        for table in warehouse.list_tables(dataset):
            jobs.append(BackupJob.from_table(table))
    return jobs


def backup_project(
    context: RunContext,
    project: str,
    store: ObjectStore,
    warehouse_factory: Callable[[str], Warehouse] = create_warehouse,
    progress=None,
) -> ProjectResult:
    """Back up every table of one project, then prune its old backups.

    Args:
        context: Run context
        project: Project id
        store: Backup bucket
        warehouse_factory: Creates the warehouse client for a project
        progress: Optional object whose ``track(project, total)`` returns a
            context manager yielding a (completed, total, job) callback
    """
    result = ProjectResult(project=project)

    try:
        warehouse = warehouse_factory(project)
    except Exception as e:
        logger.error("Failed to create BigQuery client for project %s: %s", project, e)
        result.error = f"Failed to create client: {e}"
        return result

    try:
        try:
            jobs = enumerate_jobs(warehouse)
        except Exception as e:
            logger.error("Failed to list datasets or tables of %s: %s", project, e)
            result.error = f"Failed to enumerate tables: {e}"
            return result

        result.tables = len(jobs)
        logger.info("Project %s: %d table(s) to back up", project, len(jobs))

        if context.dry_run:
            for job in jobs:
                logger.info("Would back up %s", job)
        else:
            exporter = TableExporter(
                warehouse,
                store,
                context.run_date,
                job_timeout=context.job_timeout,
                cleanup_warnings=context.cleanup_warnings,
            )
            tracker = (
                progress.track(project, len(jobs))
                if progress is not None
                else contextlib.nullcontext()
            )
            with tracker as on_progress:
                pool = WorkerPool(
                    context.run_date,
                    context.workers,
                    record=context.record,
                    on_progress=on_progress,
                )
                result.outcomes = pool.run(jobs, exporter.backup)
            result.complete = sum(1 for o in result.outcomes if o.succeeded)
            result.failed = len(result.outcomes) - result.complete
    finally:
        try:
            warehouse.close()
        except Exception as e:
            logger.warning("Failed to close client for %s: %s", project, e)

    pruned = prune_project(
        store,
        project,
        context.retention_days,
        now=context.now,
        cleanup_warnings=context.cleanup_warnings,
        dry_run=context.dry_run,
    )
    result.pruned = pruned.deleted_count
    return result


def prune_projects(
    context: RunContext, projects: Sequence[str], store: ObjectStore
) -> RunSummary:
    """Apply retention to every project without exporting anything."""
    summary = RunSummary(run_date=context.run_date)
    for project in projects:
        pruned = prune_project(
            store,
            project,
            context.retention_days,
            now=context.now,
            cleanup_warnings=context.cleanup_warnings,
            dry_run=context.dry_run,
        )
        summary.projects.append(ProjectResult(project=project, pruned=pruned.deleted_count))
    summary.cleanup_warnings = context.cleanup_warnings.snapshot()
    return summary


def run_backup(
    context: RunContext,
    projects: Sequence[str],
    store: ObjectStore,
    warehouse_factory: Callable[[str], Warehouse] = create_warehouse,
    progress=None,
) -> RunSummary:
    """Back up all projects sequentially and send the digest.

    Never raises because of a single project; failures end up in the
    returned summary.
    """
    logger.info(__util__.log_heading(f"Started at {time.ctime()}"))
    logger.info(
        "Backing up %d project(s) to %s for %s, %d worker(s) per project",
        len(projects),
        context.bucket,
        context.run_date,
        context.workers,
    )

    summary = RunSummary(run_date=context.run_date)
    for project in projects:
        logger.info(__util__.log_heading(f"Project: {project}"))
        try:
            result = backup_project(
                context, project, store, warehouse_factory, progress=progress
            )
        except Exception as e:
            logger.error("Project %s failed: %s", project, e)
            result = ProjectResult(project=project, error=str(e))
        summary.projects.append(result)

    summary.cleanup_warnings = context.cleanup_warnings.snapshot()
    if not context.dry_run:
        summary.digest_sent = context.notifier.send_digest(
            context.run_date, summary.cleanup_warnings
        )

    log_summary(summary)
    return summary


def log_summary(summary: RunSummary) -> None:
    """Log the end-of-run summary for the operator."""
    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))
    logger.info(
        "Projects: %d processed, %d aborted",
        len(summary.projects),
        len(summary.aborted_projects),
    )
    for project in summary.aborted_projects:
        logger.warning("  %s: %s", project.project, project.error)
    logger.info(
        "Tables: %d complete, %d failed; old backups deleted: %d",
        summary.complete,
        summary.failed,
        summary.pruned,
    )
    if summary.cleanup_warnings:
        logger.warning("Cleanup warnings: %d", len(summary.cleanup_warnings))
        for warning in summary.cleanup_warnings:
            logger.warning("  %s", warning)
