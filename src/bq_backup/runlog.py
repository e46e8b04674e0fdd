"""Durable CSV log of every table outcome, archived into zip files by size.

Each row is (date, project, dataset, table, status, reason). Before every
append the log size is checked; once it exceeds the threshold the whole
log is compressed into ``<stem><N>.zip`` (first unused N starting at 1)
next to the log and the live log starts over empty.

The size check, rotation and append form one critical section guarded by
a thread lock and a lock file, so concurrent workers (and concurrent
processes sharing the log) never interleave records or split a rotation.
A crash after the archive is renamed into place but before the live log
is truncated leaves those records in both places.
"""

import csv
import logging
import os
import threading
import zipfile
from pathlib import Path
from typing import Optional

from filelock import FileLock

from .config.schema import DEFAULT_MAX_LOG_SIZE
from .core.models import BackupOutcome

logger = logging.getLogger(__name__)

FIELDS = ["date", "project", "dataset", "table", "status", "reason"]


def next_archive_path(log_path: Path) -> Path:
    """Return the first unused archive name for ``log_path``."""
    counter = 1
    while True:
        candidate = log_path.with_name(f"{log_path.stem}{counter}.zip")
        if not candidate.exists():
            return candidate
        counter += 1


def list_archives(log_path: Path | str) -> list[Path]:
    """Return the existing archives of a log, in numeric order."""
    log_path = Path(log_path)
    archives = []
    counter = 1
    while True:
        candidate = log_path.with_name(f"{log_path.stem}{counter}.zip")
        if not candidate.exists():
            return archives
        archives.append(candidate)
        counter += 1


class RunLog:
    """Append-only outcome log with size based rotation."""

    def __init__(self, path: Path | str, max_size: int = DEFAULT_MAX_LOG_SIZE) -> None:
        self.path = Path(path)
        self.max_size = max_size
        self._lock = threading.Lock()
        self._file_lock = FileLock(str(self.path.with_name(self.path.name + ".lock")))

    def __repr__(self) -> str:
        return f"RunLog({self.path})"

    def append(self, outcome: BackupOutcome) -> Optional[Path]:
        """Append one outcome, rotating first if the log is over the threshold.

        Returns:
            Path of the archive created by this append, if any

        Raises:
            OSError: If the log or the archive cannot be written
        """
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._file_lock:
                archive = self._rotate_if_needed()
                with open(self.path, "a", newline="", encoding="utf-8") as f:
                    csv.writer(f, lineterminator="\n").writerow(outcome.as_row())
        return archive

    def _rotate_if_needed(self) -> Optional[Path]:
        try:
            size = self.path.stat().st_size
        except FileNotFoundError:
            return None
        if size <= self.max_size:
            return None
        return self._rotate()

    def _rotate(self) -> Path:
        archive = next_archive_path(self.path)
        partial = archive.with_name(archive.name + ".partial")
        with zipfile.ZipFile(partial, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.write(self.path, arcname=self.path.name)
        os.replace(partial, archive)
        with open(self.path, "w", encoding="utf-8"):
            pass
        logger.info("Archived run log %s to %s", self.path, archive)
        return archive


def _parse_rows(lines) -> list[dict[str, str]]:
    records = []
    for row in csv.reader(lines):
        if not row:
            continue
        row = row + [""] * (len(FIELDS) - len(row))
        records.append(dict(zip(FIELDS, row)))
    return records


def read_log(path: Path | str, limit: Optional[int] = None) -> list[dict[str, str]]:
    """Read records from the live log, most recent last.

    Args:
        path: Path of the live log
        limit: Only return the last ``limit`` records

    Returns:
        List of records keyed by FIELDS; empty if the log does not exist
    """
    path = Path(path)
    if not path.exists():
        return []
    with open(path, newline="", encoding="utf-8") as f:
        records = _parse_rows(f)
    if limit is not None:
        records = records[-limit:] if limit > 0 else []
    return records


def read_archive(archive: Path | str) -> list[dict[str, str]]:
    """Read every record stored in one archive."""
    records = []
    with zipfile.ZipFile(archive) as zf:
        for name in zf.namelist():
            text = zf.read(name).decode("utf-8")
            records.extend(_parse_rows(text.splitlines()))
    return records


def get_log_stats(records: list[dict[str, str]]) -> dict[str, int]:
    """Count records by status."""
    stats = {"total": len(records), "complete": 0, "failed": 0}
    for record in records:
        status = record.get("status", "").lower()
        if status in stats:
            stats[status] += 1
    return stats
