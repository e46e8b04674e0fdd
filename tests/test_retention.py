"""Tests for age based retention."""

from datetime import datetime

from conftest import FakeObjectStore

from bq_backup.core.models import CleanupWarnings
from bq_backup.core.retention import backup_date, prune_project, retention_cutoff

NOW = datetime(2024, 3, 1)


class TestBackupDate:
    """Tests for backup_date function."""

    def test_date_segment(self):
        """Test the second path segment is parsed as the backup date."""
        assert backup_date("p1/2024-01-15/d/t/000000000000.avro") == datetime(2024, 1, 15)

    def test_too_few_segments(self):
        """Test paths with fewer than three segments have no date."""
        assert backup_date("p1/2024-01-15") is None

    def test_unparseable_date(self):
        """Test a malformed date segment yields None."""
        assert backup_date("p1/badformat/x") is None
        assert backup_date("p1/2024-13-01/d/t/x.avro") is None


class TestRetentionCutoff:
    def test_cutoff(self):
        assert retention_cutoff(NOW, 30) == datetime(2024, 1, 31)

    def test_zero_days(self):
        assert retention_cutoff(NOW, 0) == NOW


class TestPruneProject:
    """Tests for prune_project function."""

    def test_deletes_only_expired_objects(self):
        """Test old objects are deleted and recent or undated ones kept."""
        store = FakeObjectStore(
            objects=[
                "p1/2024-01-15/d/t/x.avro",
                "p1/2024-02-15/d/t/x.avro",
                "p1/badformat/x",
            ]
        )

        result = prune_project(store, "p1", 30, now=NOW)

        assert store.deleted == ["p1/2024-01-15/d/t/x.avro"]
        assert sorted(store.objects) == ["p1/2024-02-15/d/t/x.avro", "p1/badformat/x"]
        assert result.scanned == 3
        assert result.deleted_count == 1
        assert result.kept == 1
        assert result.malformed == 1
        assert result.errors == []

    def test_cutoff_day_is_kept(self):
        """Test an object dated exactly at the cutoff is not deleted."""
        store = FakeObjectStore(objects=["p1/2024-01-31/d/t/x.avro"])

        result = prune_project(store, "p1", 30, now=NOW)

        assert result.deleted_count == 0
        assert "p1/2024-01-31/d/t/x.avro" in store.objects

    def test_only_own_project(self):
        """Test objects of projects sharing a name prefix are not touched."""
        store = FakeObjectStore(
            objects=["p1/2020-01-01/d/t/x.avro", "p10/2020-01-01/d/t/x.avro"]
        )

        prune_project(store, "p1", 30, now=NOW)

        assert store.deleted == ["p1/2020-01-01/d/t/x.avro"]
        assert "p10/2020-01-01/d/t/x.avro" in store.objects

    def test_delete_failure_continues(self):
        """Test a failed deletion is recorded and the scan goes on."""
        store = FakeObjectStore(
            objects=["p1/2024-01-01/d/a/x.avro", "p1/2024-01-02/d/b/x.avro"],
            fail_delete=["p1/2024-01-01/d/a/x.avro"],
        )
        warnings = CleanupWarnings()

        result = prune_project(store, "p1", 30, now=NOW, cleanup_warnings=warnings)

        assert store.deleted == ["p1/2024-01-02/d/b/x.avro"]
        assert len(result.errors) == 1
        (warning,) = warnings.snapshot()
        assert warning.kind == "stale-backup"
        assert warning.target == "p1/2024-01-01/d/a/x.avro"

    def test_listing_failure(self):
        """Test a listing failure is reported as a warning, not raised."""
        store = FakeObjectStore(fail_list=True)
        warnings = CleanupWarnings()

        result = prune_project(store, "p1", 30, now=NOW, cleanup_warnings=warnings)

        assert result.scanned == 0
        assert result.errors
        assert warnings.snapshot()[0].kind == "retention-scan"

    def test_dry_run(self):
        """Test dry run reports but does not delete."""
        store = FakeObjectStore(objects=["p1/2024-01-15/d/t/x.avro"])

        result = prune_project(store, "p1", 30, now=NOW, dry_run=True)

        assert result.deleted == ["p1/2024-01-15/d/t/x.avro"]
        assert store.deleted == []
        assert "p1/2024-01-15/d/t/x.avro" in store.objects

    def test_zero_retention(self):
        """Test zero retention deletes everything dated before now."""
        store = FakeObjectStore(objects=["p1/2024-02-29/d/t/x.avro"])

        prune_project(store, "p1", 0, now=datetime(2024, 3, 1, 12))

        assert store.deleted == ["p1/2024-02-29/d/t/x.avro"]
