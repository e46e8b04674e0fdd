"""Bounded worker pool draining one project's backup jobs.

The pool is created per project with a fixed number of threads and blocks
until every submitted job produced exactly one outcome. A job whose worker
raises is reported as failed instead of being dropped.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence

from .. import __util__
from .models import BackupJob, BackupOutcome

logger = logging.getLogger(__name__)


class WorkerPool:
    """Fixed-size pool of export workers for one project.

    Args:
        run_date: Run date stamped on outcomes synthesized for crashed jobs
        workers: Number of concurrent workers (default: half the CPUs)
        record: Called from the worker thread with each outcome
        on_progress: Called with (completed, total, job) after each job
    """

    def __init__(
        self,
        run_date: str,
        workers: Optional[int] = None,
        record: Optional[Callable[[BackupOutcome], None]] = None,
        on_progress: Optional[Callable[[int, int, BackupJob], None]] = None,
    ) -> None:
        self.run_date = run_date
        self.workers = max(1, workers or __util__.default_worker_count())
        self._record = record
        self._on_progress = on_progress
        self._lock = threading.Lock()
        self._completed = 0
        self._total = 0

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    def run(
        self,
        jobs: Sequence[BackupJob],
        worker: Callable[[BackupJob], BackupOutcome],
    ) -> list[BackupOutcome]:
        """Run every job and return the outcomes in submission order."""
        self._total = len(jobs)
        if not jobs:
            return []

        logger.debug("Running %d job(s) on %d worker(s)", len(jobs), self.workers)
        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="bq-backup"
        ) as executor:
            futures = [executor.submit(self._run_one, job, worker) for job in jobs]
        # Leaving the with block waits for every future.
        return [future.result() for future in futures]

    def _run_one(
        self, job: BackupJob, worker: Callable[[BackupJob], BackupOutcome]
    ) -> BackupOutcome:
        try:
            outcome = worker(job)
        except Exception as e:
            logger.exception("Unexpected error backing up %s", job)
            outcome = BackupOutcome.failed(self.run_date, job, f"Unexpected error: {e}")

        if self._record is not None:
            try:
                self._record(outcome)
            except Exception as e:
                logger.error("Failed to record outcome for %s: %s", job, e)

        with self._lock:
            self._completed += 1
            completed = self._completed
        if self._on_progress is not None:
            try:
                self._on_progress(completed, self._total, job)
            except Exception as e:
                logger.warning("Progress update failed for %s: %s", job, e)
        return outcome
