"""Prune command: Apply the retention policy without taking new backups."""

import argparse
import logging
import time
from datetime import datetime

from .. import __util__
from ..__logger__ import create_logger
from ..catalog import read_project_file
from ..config import ConfigError, require_bucket
from ..context import RunContext
from ..core.orchestrator import prune_projects
from ..endpoint import create_object_store
from .common import get_log_level, load_run_config

logger = logging.getLogger(__name__)


def execute_prune(args: argparse.Namespace) -> int:
    """Execute the prune command.

    Deletes backups older than the retention window for every listed project.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    log_level = get_log_level(args)
    create_logger(log_level)

    try:
        config = load_run_config(args)
        bucket = require_bucket(config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    try:
        projects = read_project_file(config.global_config.project_file)
    except OSError as e:
        logger.error("Failed to read project file: %s", e)
        return 1

    if not projects:
        logger.error("No projects listed")
        return 1

    dry_run = getattr(args, "dry_run", False)
    if dry_run:
        logger.info("Dry run mode - showing what would be deleted")

    try:
        store = create_object_store(bucket)
    except Exception as e:
        logger.error("Failed to create Storage client: %s", e)
        return 1

    logger.info(__util__.log_heading(f"Pruning backups at {time.ctime()}"))
    logger.info("Retention: %d day(s)", config.global_config.retention_days)

    now = datetime.now()
    context = RunContext(
        run_date=__util__.format_date(now),
        now=now,
        bucket=bucket,
        retention_days=config.global_config.retention_days,
        workers=1,
        dry_run=dry_run,
    )
    try:
        summary = prune_projects(context, projects, store)
    finally:
        store.close()

    verb = "would be deleted" if dry_run else "deleted"
    logger.info("Total: %d old backup object(s) %s", summary.pruned, verb)

    if summary.cleanup_warnings:
        logger.warning("Completed with %d error(s)", len(summary.cleanup_warnings))
        return 1
    return 0
