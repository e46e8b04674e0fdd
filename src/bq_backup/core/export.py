"""Table export: one table's full contents to Avro files in the backup bucket.

External tables have no native storage the warehouse could export, so they
are first copied into a temporary table (``<table>_temp_<unix ts>``) in the
same dataset; that copy is exported under the source table's path and then
dropped whatever the export result was.
"""

import logging
from typing import Callable, Optional

from .. import __util__, backup_prefix
from ..endpoint.common import AVRO, ObjectStore, TableKind, TableRef, Warehouse
from .models import BackupJob, BackupOutcome, CleanupWarnings

logger = logging.getLogger(__name__)


def temp_table_name(table: str, timestamp: int) -> str:
    return f"{table}_temp_{timestamp}"


def materialize_sql(temp_table: TableRef, source: TableRef) -> str:
    return (
        f"CREATE TABLE `{temp_table.qualified_name}` "
        f"AS SELECT * FROM `{source.qualified_name}`"
    )


class TableExporter:
    """Backs up single tables of one project for one run date."""

    def __init__(
        self,
        warehouse: Warehouse,
        store: ObjectStore,
        run_date: str,
        job_timeout: Optional[float] = None,
        cleanup_warnings: Optional[CleanupWarnings] = None,
        clock: Callable[[], int] = __util__.unix_timestamp,
    ) -> None:
        self.warehouse = warehouse
        self.store = store
        self.run_date = run_date
        self.job_timeout = job_timeout
        self.cleanup_warnings = (
            cleanup_warnings if cleanup_warnings is not None else CleanupWarnings()
        )
        self._clock = clock

    def destination_uri(self, job: BackupJob) -> str:
        """Wildcard URI the export job writes its Avro files to."""
        prefix = backup_prefix(job.project, self.run_date, job.dataset, job.table)
        return self.store.uri(f"{prefix}/*.avro")

    def backup(self, job: BackupJob) -> BackupOutcome:
        """Back up one table and report the outcome; never raises for job failures."""
        table = TableRef(job.project, job.dataset, job.table)

        try:
            metadata = self.warehouse.get_metadata(table)
        except Exception as e:
            return BackupOutcome.failed(
                self.run_date, job, f"Failed to get metadata: {e}"
            )

        if metadata.kind is TableKind.EXTERNAL:
            return self._backup_external(job, metadata.ref)

        try:
            self._export(metadata.ref, job)
        except Exception as e:
            return BackupOutcome.failed(
                self.run_date, job, f"Failed to back up table: {e}"
            )
        return BackupOutcome.complete(self.run_date, job)

    def _backup_external(self, job: BackupJob, table: TableRef) -> BackupOutcome:
        temp_table = table.sibling(temp_table_name(table.table, self._clock()))
        logger.debug("Materializing external table %s into %s", table, temp_table)

        try:
            self.warehouse.run_query_job(
                materialize_sql(temp_table, table), timeout=self.job_timeout
            )
        except Exception as e:
            return BackupOutcome.failed(
                self.run_date, job, f"Failed to create temporary table: {e}"
            )

        try:
            self._export(temp_table, job)
        except Exception as e:
            outcome = BackupOutcome.failed(
                self.run_date, job, f"Failed to back up table: {e}"
            )
        else:
            outcome = BackupOutcome.complete(self.run_date, job)

        self._drop_temp_table(temp_table)
        return outcome

    def _export(self, table: TableRef, job: BackupJob) -> None:
        uri = self.destination_uri(job)
        logger.debug("Exporting %s to %s", table.qualified_name, uri)
        self.warehouse.run_export_job(table, uri, AVRO, timeout=self.job_timeout)

    def _drop_temp_table(self, temp_table: TableRef) -> None:
        try:
            self.warehouse.delete_table(temp_table)
        except Exception as e:
            logger.warning(
                "Failed to delete temporary table %s: %s", temp_table.qualified_name, e
            )
            self.cleanup_warnings.add("temp-table", temp_table.qualified_name, str(e))
        else:
            logger.debug("Deleted temporary table %s", temp_table.qualified_name)
