"""List command: Show archive contents as a tree."""

import argparse
import logging

from ..__util__ import StzError, exit_code_for
from ..config.validate import LIST
from ..core.operations import list_archive
from .common import prepare_config, setup_logging

logger = logging.getLogger(__name__)


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        setup_logging(args)
        config = prepare_config(args, LIST)
        lines = list_archive(config)
    except (StzError, OSError) as e:
        logger.error("%s", e)
        return exit_code_for(e)

    for line in lines:
        print(line)

    return 0
