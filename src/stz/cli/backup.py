"""Backup command: Archive remote paths into a local .tar.zst file."""

import argparse
import logging

from ..__util__ import StzError, exit_code_for
from ..config.validate import BACKUP
from ..core.operations import backup
from .common import prepare_config, setup_logging

logger = logging.getLogger(__name__)


def execute_backup(args: argparse.Namespace) -> int:
    """Execute the backup command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        setup_logging(args)
        config = prepare_config(args, BACKUP)
        archive = backup(config)
    except (StzError, OSError) as e:
        logger.error("%s", e)
        return exit_code_for(e)

    if config.dry_run:
        logger.info("Dry run complete, archive would be written to %s", archive)
    return 0
