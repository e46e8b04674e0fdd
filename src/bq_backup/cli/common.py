"""Shared CLI utilities and argument parsers."""

import argparse
import logging

from ..config import (
    Config,
    apply_overrides,
    find_config_file,
    load_config,
)

logger = logging.getLogger(__name__)


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_progress_args(parser: argparse.ArgumentParser) -> None:
    """Add progress display arguments to a parser."""
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not show a progress bar while tables are exported",
    )


def add_source_args(parser: argparse.ArgumentParser) -> None:
    """Add the arguments selecting projects, bucket and retention."""
    group = parser.add_argument_group("Backup options (override config)")
    group.add_argument(
        "-f",
        "--project-file",
        metavar="FILE",
        help="File containing list of project IDs",
    )
    group.add_argument(
        "--bucket",
        metavar="NAME",
        help="GCS bucket name",
    )
    group.add_argument(
        "--retention",
        type=int,
        metavar="DAYS",
        help="Retention period in days",
    )
    group.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )


def add_notification_args(parser: argparse.ArgumentParser) -> None:
    """Add webhook arguments to a parser."""
    group = parser.add_argument_group("Notification options (override config)")
    group.add_argument(
        "--webhook",
        metavar="URL",
        help="Discord webhook URL for per-table alerts",
    )
    group.add_argument(
        "--workspace",
        metavar="URL",
        help="Google Workspace Chat webhook URL for the run digest",
    )
    group.add_argument(
        "--tagid",
        metavar="IDS",
        help="Comma-separated list of Discord tag IDs mentioned on failures",
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def load_run_config(args: argparse.Namespace) -> Config:
    """Load the configuration file (if any) and apply command line overrides.

    Raises:
        ConfigError: If the configuration is invalid
    """
    config_path = find_config_file(getattr(args, "config", None))
    if config_path is not None:
        logger.info("Loading configuration from: %s", config_path)
    config, warnings = load_config(config_path)

    for warning in warnings:
        if warning == "No bucket configured" and getattr(args, "bucket", None):
            continue
        logger.warning("Config: %s", warning)

    return apply_overrides(config, args)
