"""Configuration system for stz.

This module provides TOML-based defaults loading, the immutable Config
schema and the validation run before every command.
"""

from .loader import (
    ConfigError,
    build_config,
    find_config_file,
    generate_example_config,
    load_config,
)
from .schema import Config, SSHOptions, ToolPaths
from .validate import COMMANDS, validate_config

__all__ = [
    "Config",
    "SSHOptions",
    "ToolPaths",
    "COMMANDS",
    "build_config",
    "load_config",
    "find_config_file",
    "generate_example_config",
    "validate_config",
    "ConfigError",
]
