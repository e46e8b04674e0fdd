# pyright: standard

"""bq-backup: bq_backup/endpoint/common.py
Capabilities the backup pipeline needs from the warehouse and the object store.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

AVRO = "AVRO"


class TableKind(Enum):
    """Storage kind of a warehouse table."""

    MATERIALIZED = "materialized"
    EXTERNAL = "external"  # no native storage, cannot be exported directly


@dataclass(frozen=True)
class TableRef:
    """A table inside a dataset of a project."""

    project: str
    dataset: str
    table: str
    kind: TableKind = TableKind.MATERIALIZED

    @property
    def qualified_name(self) -> str:
        return f"{self.project}.{self.dataset}.{self.table}"

    def sibling(self, table: str, kind: TableKind = TableKind.MATERIALIZED) -> "TableRef":
        """Return a reference to another table in the same dataset."""
        return TableRef(self.project, self.dataset, table, kind)


@dataclass(frozen=True)
class TableMetadata:
    """Metadata fetched before exporting a table."""

    ref: TableRef
    kind: TableKind
    num_rows: Optional[int] = None
    num_bytes: Optional[int] = None


@dataclass(frozen=True)
class StoredObject:
    """An object in the backup bucket."""

    name: str
    size: int = 0


class Warehouse:
    """Generic structure of a data warehouse client bound to one project."""

    def __init__(self, project: str) -> None:
        self.project = project

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.project})"

    def list_datasets(self) -> Iterator[str]:
        """Yield the dataset ids of the project."""
        raise NotImplementedError

    def list_tables(self, dataset: str) -> Iterator[TableRef]:
        """Yield the tables of a dataset with their kind."""
        raise NotImplementedError

    def get_metadata(self, table: TableRef) -> TableMetadata:
        """Fetch table metadata, raising on failure."""
        raise NotImplementedError

    def run_export_job(
        self,
        table: TableRef,
        destination_uri: str,
        fmt: str = AVRO,
        timeout: Optional[float] = None,
    ) -> None:
        """Export a table and wait until the job is done.

        Raises:
            BackupJobError: If the job fails
            JobTimeoutError: If the job is not done within ``timeout`` seconds
        """
        raise NotImplementedError

    def run_query_job(self, sql: str, timeout: Optional[float] = None) -> None:
        """Run a query job and wait until it is done, raising like run_export_job."""
        raise NotImplementedError

    def delete_table(self, table: TableRef) -> None:
        """Delete a table, raising on failure."""
        raise NotImplementedError

    def close(self) -> None:
        """Release client resources."""
        pass


class ObjectStore:
    """Generic structure of an object store bucket."""

    def __init__(self, bucket: str) -> None:
        self.bucket = bucket

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.bucket})"

    def uri(self, path: str) -> str:
        """Return the URI the warehouse exports ``path`` to."""
        raise NotImplementedError

    def list_objects(self, prefix: str) -> Iterator[StoredObject]:
        """Yield every object whose name starts with ``prefix``."""
        raise NotImplementedError

    def delete_object(self, name: str) -> None:
        """Delete one object, raising on failure."""
        raise NotImplementedError

    def close(self) -> None:
        """Release client resources."""
        pass
