# pyright: standard

"""bq-backup: bq_backup/endpoint/__init__.py."""

import logging

from .common import (
    AVRO,
    ObjectStore,
    StoredObject,
    TableKind,
    TableMetadata,
    TableRef,
    Warehouse,
)

logger = logging.getLogger(__name__)

__all__ = [
    "AVRO",
    "ObjectStore",
    "StoredObject",
    "TableKind",
    "TableMetadata",
    "TableRef",
    "Warehouse",
    "create_object_store",
    "create_warehouse",
]


def create_warehouse(project: str) -> Warehouse:
    """Create the warehouse client for one project.

    Raises:
        Exception: Whatever the client library raises on construction
            (missing credentials, unknown project); callers treat it as
            fatal for that project only.
    """
    from .bigquery import BigQueryWarehouse

    logger.debug("Creating BigQuery client for project %s", project)
    return BigQueryWarehouse(project)


def create_object_store(bucket: str) -> ObjectStore:
    """Create the object store client for the backup bucket."""
    from .gcs import GCSObjectStore

    logger.debug("Creating Storage client for bucket %s", bucket)
    return GCSObjectStore(bucket)
