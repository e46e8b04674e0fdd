"""Run command: Back up every table of every listed project."""

import argparse
import logging

from ..__logger__ import create_logger
from ..catalog import read_project_file
from ..config import ConfigError, require_bucket
from ..context import RunContext
from ..core.orchestrator import run_backup
from ..endpoint import create_object_store
from .common import get_log_level, load_run_config
from .progress import RichProgress

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Failed tables are recorded in the run log and notifications; they do
    not change the exit code.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 once the run completed, 1 for configuration errors)
    """
    # Initialize logger
    log_level = get_log_level(args)
    create_logger(log_level)

    try:
        config = load_run_config(args)
        bucket = require_bucket(config)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    if config.global_config.operator_log:
        create_logger(log_level, config.global_config.operator_log)

    project_file = config.global_config.project_file
    try:
        projects = read_project_file(project_file)
    except OSError as e:
        logger.error("Failed to read project file %s: %s", project_file, e)
        return 1

    if not projects:
        logger.warning("No projects listed in %s", project_file)

    try:
        store = create_object_store(bucket)
    except Exception as e:
        logger.error("Failed to create Storage client: %s", e)
        return 1

    dry_run = getattr(args, "dry_run", False)
    if dry_run:
        logger.info("Dry run mode - nothing will be exported or deleted")

    context = RunContext.from_config(config, dry_run=dry_run)

    show_progress = not (
        getattr(args, "no_progress", False) or getattr(args, "quiet", False)
    )
    progress = RichProgress() if show_progress and not dry_run else None

    try:
        run_backup(context, projects, store, progress=progress)
    finally:
        store.close()

    return 0
