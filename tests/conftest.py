"""Pytest configuration and shared fixtures."""

import re
import threading
from datetime import datetime

import pytest

from bq_backup.__util__ import BackupJobError
from bq_backup.context import RunContext
from bq_backup.endpoint.common import (
    ObjectStore,
    StoredObject,
    TableKind,
    TableMetadata,
    TableRef,
    Warehouse,
)
from bq_backup.notify import Notifier
from bq_backup.runlog import RunLog

CREATE_TABLE_RE = re.compile(r"CREATE TABLE `([^`]+)` AS SELECT \* FROM `([^`]+)`")


def source_name(table: str) -> str:
    """Name of the source table a temporary table was created from."""
    return table.split("_temp_")[0]


class FakeObjectStore(ObjectStore):
    """In-memory bucket."""

    def __init__(self, bucket="backups", objects=(), fail_delete=(), fail_list=False):
        super().__init__(bucket)
        self.objects = {name: 1 for name in objects}
        self.fail_delete = set(fail_delete)
        self.fail_list = fail_list
        self.deleted = []
        self._lock = threading.Lock()

    def uri(self, path):
        return f"gs://{self.bucket}/{path}"

    def put_uri(self, uri):
        """Store the first shard an export to ``uri`` would write."""
        path = uri[len(f"gs://{self.bucket}/") :]
        with self._lock:
            self.objects[path.replace("*", "000000000000")] = 128

    def list_objects(self, prefix):
        if self.fail_list:
            raise RuntimeError("listing denied")
        for name in sorted(self.objects):
            if name.startswith(prefix):
                yield StoredObject(name, self.objects[name])

    def delete_object(self, name):
        if name in self.fail_delete:
            raise RuntimeError("delete denied")
        with self._lock:
            del self.objects[name]
            self.deleted.append(name)


class FakeWarehouse(Warehouse):
    """In-memory warehouse for one project.

    Args:
        project: Project id
        datasets: Mapping of dataset id to table ids
        external: Table ids that are external tables
        store: Object store receiving exported objects
        fail_*: Table ids whose respective operation raises
        fail_list: Raise when listing datasets
    """

    def __init__(
        self,
        project="p1",
        datasets=None,
        external=(),
        store=None,
        fail_metadata=(),
        fail_export=(),
        fail_query=(),
        fail_delete=(),
        fail_list=False,
    ):
        super().__init__(project)
        self.datasets = datasets if datasets is not None else {"d1": ["t1"]}
        self.external = set(external)
        self.store = store
        self.fail_metadata = set(fail_metadata)
        self.fail_export = set(fail_export)
        self.fail_query = set(fail_query)
        self.fail_delete = set(fail_delete)
        self.fail_list = fail_list
        self.temp_tables = set()
        self.exports = []
        self.queries = []
        self.deleted = []
        self.closed = False
        self._lock = threading.Lock()

    def _kind(self, table):
        if table in self.external:
            return TableKind.EXTERNAL
        return TableKind.MATERIALIZED

    def list_datasets(self):
        if self.fail_list:
            raise RuntimeError("403 Access Denied")
        yield from self.datasets

    def list_tables(self, dataset):
        for table in self.datasets[dataset]:
            yield TableRef(self.project, dataset, table, self._kind(table))

    def get_metadata(self, table):
        if table.table in self.fail_metadata:
            raise RuntimeError("404 Not found")
        kind = self._kind(table.table)
        ref = TableRef(table.project, table.dataset, table.table, kind)
        return TableMetadata(ref=ref, kind=kind, num_rows=10, num_bytes=100)

    def run_query_job(self, sql, timeout=None):
        match = CREATE_TABLE_RE.match(sql)
        temp, source = match.group(1), match.group(2)
        with self._lock:
            self.queries.append(sql)
        if source.split(".")[-1] in self.fail_query:
            raise BackupJobError("query job failed: 400 bad source uri")
        with self._lock:
            self.temp_tables.add(temp)

    def run_export_job(self, table, destination_uri, fmt="AVRO", timeout=None):
        if table.kind is TableKind.EXTERNAL:
            raise BackupJobError("cannot extract external table")
        with self._lock:
            self.exports.append((table.qualified_name, destination_uri, fmt))
        if source_name(table.table) in self.fail_export:
            raise BackupJobError("extraction job failed: 500 backend error")
        if self.store is not None:
            self.store.put_uri(destination_uri)

    def delete_table(self, table):
        if source_name(table.table) in self.fail_delete:
            raise RuntimeError("403 delete denied")
        with self._lock:
            self.temp_tables.discard(table.qualified_name)
            self.deleted.append(table.qualified_name)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_store():
    """An empty in-memory bucket."""
    return FakeObjectStore()


@pytest.fixture
def run_now():
    """Reference time of the test run."""
    return datetime(2024, 6, 1, 10, 30)


@pytest.fixture
def run_log(tmp_path):
    """A run log in a temporary directory."""
    return RunLog(tmp_path / "log" / "backup_log.csv", max_size=1024)


@pytest.fixture
def make_context(run_now, run_log):
    """Factory for run contexts of 2024-06-01."""

    def factory(**kwargs):
        values = dict(
            run_date="2024-06-01",
            now=run_now,
            bucket="backups",
            retention_days=7,
            workers=2,
            run_log=run_log,
            notifier=Notifier(),
        )
        values.update(kwargs)
        return RunContext(**values)

    return factory


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[global]
bucket = "my-backups"
project_file = "/etc/bq-backup/project.txt"
retention_days = 30
log_file = "/tmp/bq-backup/backup_log.csv"
max_log_size = 2048
workers = 4
job_timeout = 600

[notifications.discord]
webhook_url = "https://discord.example.com/api/webhooks/1"
tag_ids = ["111", "222"]

[notifications.workspace]
webhook_url = "https://chat.example.com/v1/spaces/x/messages"
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[global]
bucket = "my-backups"
"""


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path
