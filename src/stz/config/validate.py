"""Range and completeness checks run before any process is spawned."""

from pathlib import Path

from .loader import ConfigError
from .schema import Config

BACKUP = "backup"
LIST = "list"
TEST_RESTORE = "test-restore"
RESTORE = "restore"

COMMANDS = frozenset({BACKUP, LIST, TEST_RESTORE, RESTORE})

MIN_ZSTD_LEVEL = 1
MAX_ZSTD_LEVEL = 22


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Config, command: str) -> Config:
    """Check config for the given command.

    Args:
        config: Configuration built from flags and defaults
        command: One of backup, list, test-restore, restore

    Returns:
        The same config, once every check has passed

    Raises:
        ConfigError: Naming the first violated constraint
    """
    level = config.zstd_level
    if not _is_int(level) or not MIN_ZSTD_LEVEL <= level <= MAX_ZSTD_LEVEL:
        raise ConfigError(
            f"--zstd-level must be an integer in "
            f"[{MIN_ZSTD_LEVEL},{MAX_ZSTD_LEVEL}], got {level!r}"
        )

    threads = config.zstd_threads
    if not _is_int(threads) or threads < 0:
        raise ConfigError(
            f"--threads must be a non-negative integer, got {threads!r}"
        )

    port = config.ssh.port
    if port is not None and (not _is_int(port) or not 1 <= port <= 65535):
        raise ConfigError(f"--port must be in [1,65535], got {port!r}")

    for name, value in (
        ("--keepalive-interval", config.ssh.keepalive_interval),
        ("--keepalive-count", config.ssh.keepalive_count),
    ):
        if not _is_int(value) or value < 1:
            raise ConfigError(f"{name} must be a positive integer, got {value!r}")

    if command not in COMMANDS:
        raise ConfigError(f"Unknown command: {command}")

    if command == BACKUP:
        if not config.ssh.host:
            raise ConfigError("Need --host for backup")
        if not config.paths:
            raise ConfigError("Need at least one path (e.g. etc/nginx)")
        return config

    if not config.archive:
        raise ConfigError(f"Need --file for {command}")
    if not Path(config.archive).is_file():
        raise ConfigError(f"File not found: {config.archive}")

    if command == RESTORE and not config.ssh.host:
        raise ConfigError("Need --host for restore")

    return config
