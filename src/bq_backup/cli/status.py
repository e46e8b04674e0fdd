"""Status command: Show recent table outcomes from the run log."""

import argparse
import logging
import zipfile

from ..__logger__ import create_logger
from ..config import ConfigError
from ..runlog import get_log_stats, list_archives, read_archive, read_log
from .common import get_log_level, load_run_config

logger = logging.getLogger(__name__)


def execute_status(args: argparse.Namespace) -> int:
    """Execute the status command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (1 if the most recent run date has failed tables)
    """
    log_level = get_log_level(args)
    create_logger(log_level)

    try:
        config = load_run_config(args)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    log_file = config.global_config.log_file
    records = read_log(log_file)
    archives = list_archives(log_file)
    archived = 0
    for archive in archives:
        try:
            archived += len(read_archive(archive))
        except (OSError, zipfile.BadZipFile) as e:
            logger.warning("Cannot read archive %s: %s", archive, e)

    print("bq-backup Status")
    print("=" * 60)
    print(f"Run log: {log_file}")
    print(f"Archives: {len(archives)} ({archived} archived record(s))")
    print(f"Bucket: {config.global_config.bucket or '(not configured)'}")
    print(f"Retention: {config.global_config.retention_days} day(s)")
    print("")

    if not records:
        print("No backups recorded yet")
        return 0

    last_date = records[-1]["date"]
    last_run = [r for r in records if r["date"] == last_date]
    stats = get_log_stats(last_run)
    print(f"Last run: {last_date}")
    print(f"  Tables: {stats['total']}")
    print(f"  Complete: {stats['complete']}")
    print(f"  Failed: {stats['failed']}")
    print("")

    limit = getattr(args, "limit", 10)
    print(f"Recent outcomes (last {limit}):")
    for record in records[-limit:] if limit > 0 else []:
        line = (
            f"  {record['date']}  {record['project']}.{record['dataset']}."
            f"{record['table']}  {record['status']}"
        )
        if record["reason"]:
            line += f"  ({record['reason']})"
        print(line)

    return 1 if stats["failed"] else 0
