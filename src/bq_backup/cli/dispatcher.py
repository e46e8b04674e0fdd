"""CLI dispatcher with legacy mode detection.

This module handles routing between the subcommand-based CLI and the
flag-only invocation of earlier releases, kept for crontab compatibility:
    bq-backup -f=project.txt --bucket=BUCKET_NAME --retention=7
"""

import argparse
import sys
from typing import Callable

from .common import (
    add_notification_args,
    add_progress_args,
    add_source_args,
    add_verbosity_args,
)

# Known subcommands
SUBCOMMANDS = frozenset(
    {
        "run",
        "prune",
        "status",
        "config",
    }
)

# Flags of the flag-only interface, single dash accepted as well
LEGACY_FLAGS = {
    "f": "--project-file",
    "bucket": "--bucket",
    "retention": "--retention",
    "webhook": "--webhook",
    "workspace": "--workspace",
    "tagid": "--tagid",
}

# Options of the main parser that may appear among legacy flags
GLOBAL_FLAGS = frozenset({"-v", "--verbose", "-q", "--quiet", "--debug"})


def is_legacy_mode(argv: list[str]) -> bool:
    """Detect if arguments indicate the flag-only CLI.

    Legacy mode is when no subcommand is given and at least one of the
    original backup flags is present.

    Args:
        argv: Command line arguments (without program name)

    Returns:
        True if legacy mode should be used
    """
    if not argv:
        return False

    if argv[0] in SUBCOMMANDS:
        return False

    if argv[0] in {"-h", "--help", "-V", "--version"}:
        return False

    return any(_legacy_flag_name(arg) in LEGACY_FLAGS for arg in argv)


def _legacy_flag_name(arg: str) -> str | None:
    if not arg.startswith("-"):
        return None
    return arg.lstrip("-").split("=", 1)[0]


def normalize_legacy_args(argv: list[str]) -> list[str]:
    """Rewrite a flag-only invocation into an equivalent 'run' command line.

    Legacy flags (e.g. '-bucket=x', '-f=x') get their long forms, and
    global options are moved in front of the subcommand.
    """
    global_args = []
    normalized = []
    args = iter(argv)
    for arg in args:
        if arg in GLOBAL_FLAGS:
            global_args.append(arg)
            continue
        if arg in {"-c", "--config"}:
            global_args.extend([arg, next(args, "")])
            continue
        if arg.startswith("--config="):
            global_args.append(arg)
            continue
        name = _legacy_flag_name(arg)
        if name in LEGACY_FLAGS:
            _, sep, value = arg.partition("=")
            arg = f"{LEGACY_FLAGS[name]}={value}" if sep else LEGACY_FLAGS[name]
        normalized.append(arg)
    return [*global_args, "run", *normalized]


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="bq-backup",
        description="Back up BigQuery datasets of many projects to Cloud Storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Back up all listed projects",
        description="Export every table, prune old backups and send notifications",
    )
    add_source_args(run_parser)
    add_notification_args(run_parser)
    run_parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Concurrent exports per project (overrides config)",
    )
    run_parser.add_argument(
        "--job-timeout",
        type=int,
        metavar="SECONDS",
        help="Seconds to wait for each warehouse job, 0 for no limit (overrides config)",
    )
    run_parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="CSV run log path (overrides config)",
    )
    add_progress_args(run_parser)

    # prune command
    prune_parser = subparsers.add_parser(
        "prune",
        help="Apply the retention policy",
        description="Delete backups older than the retention window",
    )
    add_source_args(prune_parser)

    # status command
    status_parser = subparsers.add_parser(
        "status",
        help="Show recent backup outcomes",
        description="Display the last run's results from the run log",
    )
    status_parser.add_argument(
        "-n",
        "--limit",
        type=int,
        default=10,
        metavar="N",
        help="Number of outcomes to show (default: 10)",
    )
    status_parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="CSV run log path (overrides config)",
    )

    # config command with subcommands
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )

    init_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    init_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __version__

    if args.version:
        print(f"bq-backup {__version__}")
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    # Route to appropriate command handler
    handlers: dict[str, Callable] = {
        "run": cmd_run,
        "prune": cmd_prune,
        "status": cmd_status,
        "config": cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command."""
    from .run import execute_run

    return execute_run(args)


def cmd_prune(args: argparse.Namespace) -> int:
    """Execute prune command."""
    from .prune import execute_prune

    return execute_prune(args)


def cmd_status(args: argparse.Namespace) -> int:
    """Execute status command."""
    from .status import execute_status

    return execute_status(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for bq-backup CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    # Check for legacy mode
    if is_legacy_mode(argv):
        argv = normalize_legacy_args(argv)

    # Parse with subcommand interface
    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)
