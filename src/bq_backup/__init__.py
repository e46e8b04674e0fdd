"""bq-backup: bq_backup/__init__.py."""

__version__ = "0.3.0"


def backup_prefix(project: str, date: str, dataset: str, table: str) -> str:
    """Return the object-store prefix holding one table's backup for a run date."""
    return f"{project}/{date}/{dataset}/{table}"
