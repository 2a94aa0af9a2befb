"""Shared CLI utilities and argument parsers."""

import argparse
import logging

from ..__logger__ import add_file_handler, create_logger
from ..config import (
    Config,
    build_config,
    find_config_file,
    load_config,
    validate_config,
)

logger = logging.getLogger(__name__)


def create_global_parser() -> argparse.ArgumentParser:
    """Create a parser with global options that can be used as a parent."""
    parser = argparse.ArgumentParser(add_help=False)
    add_verbosity_args(parser)
    add_config_args(parser)
    return parser


def create_options_parser() -> argparse.ArgumentParser:
    """Parent parser with every option of the archive commands."""
    parser = create_global_parser()
    add_progress_args(parser)
    add_ssh_args(parser)
    add_archive_args(parser)
    return parser


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


def add_config_args(parser: argparse.ArgumentParser) -> None:
    """Add config file and log file arguments to a parser."""
    group = parser.add_argument_group("Configuration")
    group.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )
    group.add_argument(
        "--log-file",
        metavar="FILE",
        help="Also write a debug log to FILE",
    )


def add_progress_args(parser: argparse.ArgumentParser) -> None:
    """Add progress display arguments to a parser."""
    parser.add_argument(
        "--no-pv",
        "--no-progress",
        dest="progress",
        action="store_false",
        default=None,
        help="Disable the pv progress indicator",
    )


def add_ssh_args(parser: argparse.ArgumentParser) -> None:
    """Add SSH / sudo arguments to a parser."""
    group = parser.add_argument_group("SSH / sudo")
    group.add_argument(
        "-H",
        "--host",
        metavar="USER@HOST",
        help="Remote host (for backup/restore)",
    )
    group.add_argument("-p", "--port", metavar="PORT", help="SSH port")
    group.add_argument("-i", "--identity", metavar="KEY", help="SSH private key")
    group.add_argument(
        "--keepalive-interval",
        metavar="SECONDS",
        help="Seconds between SSH keepalive probes (default: 5)",
    )
    group.add_argument(
        "--keepalive-count",
        metavar="N",
        help="Unanswered keepalive probes before giving up (default: 6)",
    )
    group.add_argument(
        "--sudo-remote",
        metavar="CMD",
        help="sudo command on the remote side (default 'sudo -n', '' for none)",
    )
    group.add_argument(
        "--sudo-local",
        metavar="CMD",
        help="sudo command for local extraction (default 'sudo -n', '' for none)",
    )


def add_archive_args(parser: argparse.ArgumentParser) -> None:
    """Add archive / path arguments to a parser."""
    group = parser.add_argument_group("Archive / paths")
    group.add_argument(
        "-f",
        "--file",
        dest="archive",
        metavar="FILE.tar.zst",
        help="Archive path (output file for backup)",
    )
    group.add_argument(
        "-o",
        "--out-dir",
        metavar="DIR",
        help="Local directory for archives and test extraction (default: .)",
    )
    group.add_argument(
        "--prefix",
        dest="restore_prefix",
        metavar="DIR",
        help="Prefix on the remote host during restore (default: /)",
    )
    group.add_argument(
        "--exclude",
        dest="excludes",
        metavar="GLOB",
        action="append",
        help="Exclude pattern (can be repeated)",
    )
    group.add_argument(
        "--zstd-level",
        metavar="N",
        help="zstd compression level (1..22, default 19)",
    )
    group.add_argument(
        "--threads",
        metavar="N",
        help="zstd threads (0=auto)",
    )
    group.add_argument(
        "--no-acls",
        dest="keep_acls",
        action="store_false",
        default=None,
        help="Do not preserve ACLs (default: preserve)",
    )
    group.add_argument(
        "--no-xattrs",
        dest="keep_xattrs",
        action="store_false",
        default=None,
        help="Do not preserve xattrs (default: preserve)",
    )
    group.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the commands that would run without running them",
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


def setup_logging(args: argparse.Namespace) -> None:
    """Initialize logging from verbosity flags and --log-file."""
    create_logger(get_log_level(args))
    log_file = getattr(args, "log_file", None)
    if log_file:
        add_file_handler(log_file)


def prepare_config(args: argparse.Namespace, command: str) -> Config:
    """Build and validate the Config for command.

    Raises:
        ConfigError: If the config file or any value is invalid
    """
    defaults = {}
    config_path = find_config_file(getattr(args, "config", None))
    if config_path is not None:
        logger.debug("Loading configuration from: %s", config_path)
        defaults, warnings = load_config(config_path)
        for warning in warnings:
            logger.warning("Config: %s", warning)

    config = build_config(args, defaults)
    return validate_config(config, command)
