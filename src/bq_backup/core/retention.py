"""Age based retention over stored backups.

Backups live under ``{project}/{YYYY-MM-DD}/{dataset}/{table}/...``. An
object is deleted when its date segment is strictly before
``now - retention_days``. Objects without a parseable date segment are
never deleted.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .. import __util__
from ..endpoint.common import ObjectStore
from .models import CleanupWarnings

logger = logging.getLogger(__name__)


@dataclass
class PruneResult:
    """Counters of one retention pass over a project."""

    project: str
    cutoff: datetime
    scanned: int = 0
    kept: int = 0
    malformed: int = 0
    deleted: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    return now - timedelta(days=retention_days)


def backup_date(object_path: str) -> Optional[datetime]:
    """Return the run date encoded in an object path, or None if there is none."""
    parts = object_path.split("/")
    if len(parts) < 3:
        return None
    try:
        return __util__.parse_date(parts[1])
    except ValueError:
        return None


def prune_project(
    store: ObjectStore,
    project: str,
    retention_days: int,
    now: Optional[datetime] = None,
    cleanup_warnings: Optional[CleanupWarnings] = None,
    dry_run: bool = False,
) -> PruneResult:
    """Delete the project's backups that are older than the retention window.

    Deletion failures are logged and collected; the scan continues with
    the remaining objects. A listing failure ends the scan.
    """
    cutoff = retention_cutoff(now or datetime.now(), retention_days)
    result = PruneResult(project=project, cutoff=cutoff)
    warnings = cleanup_warnings if cleanup_warnings is not None else CleanupWarnings()

    logger.info(
        "Pruning backups of %s older than %s", project, __util__.format_date(cutoff)
    )

    try:
        for obj in store.list_objects(f"{project}/"):
            result.scanned += 1
            date = backup_date(obj.name)
            if date is None:
                logger.debug("No backup date in %s, keeping it", obj.name)
                result.malformed += 1
                continue
            if date >= cutoff:
                result.kept += 1
                continue

            if dry_run:
                logger.info("Would delete old backup %s", obj.name)
                result.deleted.append(obj.name)
                continue

            try:
                store.delete_object(obj.name)
            except Exception as e:
                logger.error("Failed to delete old backup %s: %s", obj.name, e)
                result.errors.append(f"{obj.name}: {e}")
                warnings.add("stale-backup", obj.name, str(e))
            else:
                logger.info("Deleted old backup %s", obj.name)
                result.deleted.append(obj.name)
    except Exception as e:
        logger.error("Failed to list objects for cleanup of %s: %s", project, e)
        result.errors.append(f"listing failed: {e}")
        warnings.add("retention-scan", f"{store.bucket}/{project}/", str(e))

    logger.info(
        "%s: scanned %d, deleted %d, kept %d, malformed %d",
        project,
        result.scanned,
        result.deleted_count,
        result.kept,
        result.malformed,
    )
    return result
