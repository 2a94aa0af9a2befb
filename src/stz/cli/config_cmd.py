"""Config command: Generate or validate the defaults file."""

import argparse
import logging
from pathlib import Path

from ..config import ConfigError, find_config_file, generate_example_config, load_config
from .common import setup_logging

logger = logging.getLogger(__name__)


def execute_config(args: argparse.Namespace) -> int:
    """Execute the config command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    try:
        setup_logging(args)
    except OSError as e:
        logger.error("Cannot open log file: %s", e)
        return 1

    action = getattr(args, "config_action", None)

    if action == "init":
        return _init_config(args)
    elif action == "validate":
        return _validate_config(args)
    else:
        print("Usage: stz config {init,validate}")
        return 1


def _init_config(args: argparse.Namespace) -> int:
    """Print or write an example configuration."""
    content = generate_example_config()
    output = getattr(args, "output", None)

    if not output:
        print(content, end="")
        return 0

    path = Path(output)
    if path.exists():
        logger.error("Refusing to overwrite existing file: %s", path)
        return 1

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    except OSError as e:
        logger.error("Cannot write %s: %s", path, e)
        return 1

    logger.info("Wrote example configuration to %s", path)
    return 0


def _validate_config(args: argparse.Namespace) -> int:
    """Parse the configuration file and report problems."""
    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found.")
            print("Create one with: stz config init -o ~/.config/stz/config.toml")
            return 1

        _, warnings = load_config(config_path)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    for warning in warnings:
        logger.warning("Config: %s", warning)

    print(f"{config_path}: OK ({len(warnings)} warning(s))")
    return 0
