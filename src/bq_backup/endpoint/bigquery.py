# pyright: standard

"""bq-backup: bq_backup/endpoint/bigquery.py
Warehouse backed by Google BigQuery.
"""

import concurrent.futures
import logging
from typing import Iterator, Optional

import requests
from google.api_core import exceptions as google_exceptions
from google.cloud import bigquery

from ..__util__ import BackupJobError, JobTimeoutError
from .common import AVRO, TableKind, TableMetadata, TableRef, Warehouse

logger = logging.getLogger(__name__)

EXTERNAL_TABLE_TYPE = "EXTERNAL"


def table_kind(table_type: Optional[str]) -> TableKind:
    """Map a BigQuery table type onto the kinds the pipeline distinguishes."""
    if table_type == EXTERNAL_TABLE_TYPE:
        return TableKind.EXTERNAL
    return TableKind.MATERIALIZED


class BigQueryWarehouse(Warehouse):
    """BigQuery client bound to one project."""

    def __init__(self, project: str, client=None) -> None:
        super().__init__(project)
        self.client = client or bigquery.Client(project=project)

    def list_datasets(self) -> Iterator[str]:
        for dataset in self.client.list_datasets(project=self.project):
            yield dataset.dataset_id

    def list_tables(self, dataset: str) -> Iterator[TableRef]:
        for item in self.client.list_tables(f"{self.project}.{dataset}"):
            yield TableRef(
                self.project, dataset, item.table_id, table_kind(item.table_type)
            )

    def get_metadata(self, table: TableRef) -> TableMetadata:
        meta = self.client.get_table(table.qualified_name)
        kind = table_kind(meta.table_type)
        return TableMetadata(
            ref=TableRef(table.project, table.dataset, table.table, kind),
            kind=kind,
            num_rows=meta.num_rows,
            num_bytes=meta.num_bytes,
        )

    def run_export_job(
        self,
        table: TableRef,
        destination_uri: str,
        fmt: str = AVRO,
        timeout: Optional[float] = None,
    ) -> None:
        job_config = bigquery.ExtractJobConfig(destination_format=fmt)
        try:
            job = self.client.extract_table(
                table.qualified_name, destination_uri, job_config=job_config
            )
        except google_exceptions.GoogleAPIError as e:
            raise BackupJobError(f"failed to start extraction job: {e}") from e
        logger.debug("Extraction job %s: %s -> %s", job.job_id, table, destination_uri)
        self._wait(job, timeout, "extraction job failed")

    def run_query_job(self, sql: str, timeout: Optional[float] = None) -> None:
        try:
            job = self.client.query(sql, project=self.project)
        except google_exceptions.GoogleAPIError as e:
            raise BackupJobError(f"failed to start query job: {e}") from e
        logger.debug("Query job %s: %s", job.job_id, sql)
        self._wait(job, timeout, "query job failed")

    def delete_table(self, table: TableRef) -> None:
        self.client.delete_table(table.qualified_name)

    def close(self) -> None:
        self.client.close()

    @staticmethod
    def _wait(job, timeout: Optional[float], failure: str) -> None:
        try:
            job.result(timeout=timeout)
        except (concurrent.futures.TimeoutError, requests.Timeout) as e:
            try:
                job.cancel()
            except (
                google_exceptions.GoogleAPIError,
                requests.RequestException,
            ) as cancel_error:
                logger.warning("Could not cancel job %s: %s", job.job_id, cancel_error)
            raise JobTimeoutError(job.job_id, timeout) from e
        except google_exceptions.GoogleAPIError as e:
            raise BackupJobError(f"{failure}: {e}") from e
