"""CLI dispatcher.

Builds the subcommand parser and routes each command to its handler.
"""

import argparse
import logging
import signal
import sys
from typing import Callable, NoReturn

from ..__util__ import INTERRUPT_EXIT_CODE
from .common import create_global_parser, create_options_parser

logger = logging.getLogger(__name__)

EPILOG = """\
For backup: specify paths relative to / (e.g. etc/nginx var/www).

Examples:
  # Backup from remote server
  stz backup -H user@host -f nginx.tzst etc/nginx

  # View archive content as tree
  stz list -f nginx.tzst

  # Test extraction locally (into ./restore-test)
  stz test-restore -f nginx.tzst -o ./restore-test

  # Restore archive to remote server (to root)
  stz restore -f nginx.tzst -H user@host

  # Restore into alternative prefix on remote
  stz restore -f nginx.tzst -H user@host --prefix /tmp/restore-root
"""


class ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser reporting usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = ArgumentParser(
        prog="stz",
        description="Universal backup/restore via tar+ssh+zstd",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
        parser_class=ArgumentParser,
    )

    options = create_options_parser()

    # backup command
    backup_parser = subparsers.add_parser(
        "backup",
        parents=[options],
        help="Create local archive from remote paths (remote -> local .tar.zst)",
        description="Stream remote paths through tar and zstd into a local archive",
    )
    backup_parser.add_argument(
        "paths",
        nargs="*",
        metavar="PATH",
        help="Paths relative to / on the remote host",
    )

    # list command
    subparsers.add_parser(
        "list",
        parents=[options],
        help="Show archive contents as tree",
        description="Decompress an archive and show its members as a tree",
    )

    # test-restore command
    subparsers.add_parser(
        "test-restore",
        parents=[options],
        help="Test extract archive into local folder",
        description="Extract an archive into --out-dir on this machine",
    )

    # restore command
    subparsers.add_parser(
        "restore",
        parents=[options],
        help="Restore archive to remote server (local -> remote)",
        description="Stream an archive into tar on the remote host under --prefix",
    )

    # config command with subcommands
    config_parser = subparsers.add_parser(
        "config",
        parents=[create_global_parser()],
        help="Configuration management",
        description="Generate or validate the configuration file",
    )
    config_subs = config_parser.add_subparsers(
        dest="config_action", parser_class=ArgumentParser
    )

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
        print(__version__)
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    # Route to appropriate command handler
    handlers: dict[str, Callable] = {
        "backup": cmd_backup,
        "list": cmd_list,
        "test-restore": cmd_test_restore,
        "restore": cmd_restore,
        "config": cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


def cmd_backup(args: argparse.Namespace) -> int:
    """Execute backup command."""
    from .backup import execute_backup

    return execute_backup(args)


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command."""
    from .list_cmd import execute_list

    return execute_list(args)


def cmd_test_restore(args: argparse.Namespace) -> int:
    """Execute test-restore command."""
    from .restore import execute_test_restore

    return execute_test_restore(args)


def cmd_restore(args: argparse.Namespace) -> int:
    """Execute restore command."""
    from .restore import execute_restore

    return execute_restore(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


def _raise_interrupt(signum, frame) -> NoReturn:
    """Turn SIGTERM into KeyboardInterrupt so cleanup runs the same way."""
    raise KeyboardInterrupt(f"signal {signum}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for stz CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_subcommand_parser()
    if not argv:
        parser.print_help(sys.stderr)
        return 1

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1

    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        return run_subcommand(args)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return INTERRUPT_EXIT_CODE
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)
