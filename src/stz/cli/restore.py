"""Restore commands: Extract an archive on the remote host or locally.

test-restore unpacks into a local directory to check that an archive is
usable; restore streams it back to the remote host.
"""

import argparse
import logging

from ..__util__ import StzError, exit_code_for
from ..config.validate import RESTORE, TEST_RESTORE
from ..core.operations import restore, restore_local
from .common import prepare_config, setup_logging

logger = logging.getLogger(__name__)


def execute_restore(args: argparse.Namespace) -> int:
    """Execute the restore command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        setup_logging(args)
        config = prepare_config(args, RESTORE)
        restore(config)
    except (StzError, OSError) as e:
        logger.error("%s", e)
        return exit_code_for(e)

    return 0


def execute_test_restore(args: argparse.Namespace) -> int:
    """Execute the test-restore command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        setup_logging(args)
        config = prepare_config(args, TEST_RESTORE)
        restore_local(config)
    except (StzError, OSError) as e:
        logger.error("%s", e)
        return exit_code_for(e)

    return 0
