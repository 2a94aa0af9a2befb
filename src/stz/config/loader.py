"""TOML defaults loading and Config construction.

Handles config file discovery, parsing, and merging of command line
flags, environment overrides and file defaults into one Config.
"""

import argparse
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional

from ..__util__ import StzError
from .schema import Config, SSHOptions, ToolPaths


class ConfigError(StzError):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "stz" / "config.toml",
    Path("/etc/stz/config.toml"),
]

# TOML section -> {key in file: Config field}
SECTIONS: dict[str, dict[str, str]] = {
    "ssh": {
        "host": "host",
        "port": "port",
        "identity": "identity",
        "keepalive_interval": "keepalive_interval",
        "keepalive_count": "keepalive_count",
    },
    "sudo": {
        "remote": "sudo_remote",
        "local": "sudo_local",
    },
    "compression": {
        "level": "zstd_level",
        "threads": "zstd_threads",
    },
    "archive": {
        "out_dir": "out_dir",
        "restore_prefix": "restore_prefix",
        "acls": "keep_acls",
        "xattrs": "keep_xattrs",
        "progress": "progress",
        "excludes": "excludes",
    },
    "tools": {
        "ssh": "tool_ssh",
        "pv": "tool_pv",
        "tar": "tool_tar",
        "zstd": "tool_zstd",
    },
}


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _flatten(data: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Map TOML sections onto Config field names, collecting warnings."""
    defaults: dict[str, Any] = {}
    warnings = []

    for section, values in data.items():
        keys = SECTIONS.get(section)
        if keys is None:
            warnings.append(f"Unknown section [{section}]")
            continue
        if not isinstance(values, dict):
            warnings.append(f"'{section}' should be a table")
            continue
        for key, value in values.items():
            if key not in keys:
                warnings.append(f"Unknown key '{key}' in [{section}]")
                continue
            defaults[keys[key]] = value

    excludes = defaults.get("excludes")
    if excludes is not None and not (
        isinstance(excludes, list) and all(isinstance(e, str) for e in excludes)
    ):
        raise ConfigError("[archive] excludes must be a list of strings")

    return defaults, warnings


def load_config(path: Path | str) -> tuple[dict[str, Any], list[str]]:
    """Load defaults from a TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (defaults keyed by Config field name, list of warnings)

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    return _flatten(data)


def _as_int(value: Any, name: str) -> int:
    """Coerce a flag or file value to int, naming it on failure."""
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def build_config(
    args: argparse.Namespace,
    defaults: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Merge flags, environment and file defaults into a Config.

    Flags left unset on the command line are None in args and fall back
    to the file defaults, then to the schema defaults. Exclude patterns
    from the file and the command line accumulate.

    Args:
        args: Parsed command line arguments
        defaults: Values from load_config()
        environ: Environment (defaults to os.environ)

    Returns:
        Immutable Config

    Raises:
        ConfigError: If a numeric value is not an integer
    """
    defaults = dict(defaults or {})

    def pick(attr: str, key: str | None = None) -> Any:
        value = getattr(args, attr, None)
        if value is None:
            value = defaults.get(key or attr)
        return value

    base = Config()
    base_ssh = SSHOptions()

    port = pick("port")
    identity = pick("identity")
    interval = pick("keepalive_interval")
    count = pick("keepalive_count")
    ssh = SSHOptions(
        host=pick("host") or None,
        port=_as_int(port, "--port") if port is not None else None,
        identity=os.path.expanduser(identity) if identity else None,
        keepalive_interval=(
            _as_int(interval, "--keepalive-interval")
            if interval is not None
            else base_ssh.keepalive_interval
        ),
        keepalive_count=(
            _as_int(count, "--keepalive-count")
            if count is not None
            else base_ssh.keepalive_count
        ),
    )

    tools = ToolPaths.from_env(
        environ,
        ssh=defaults.get("tool_ssh", ""),
        pv=defaults.get("tool_pv", ""),
        tar=defaults.get("tool_tar", ""),
        zstd=defaults.get("tool_zstd", ""),
    )

    level = pick("zstd_level")
    threads = pick("threads", "zstd_threads")
    excludes = list(defaults.get("excludes") or []) + list(
        getattr(args, "excludes", None) or []
    )

    def flag(attr: str, fallback: bool) -> bool:
        value = pick(attr)
        return fallback if value is None else bool(value)

    sudo_remote = pick("sudo_remote")
    sudo_local = pick("sudo_local")

    return Config(
        ssh=ssh,
        tools=tools,
        sudo_remote=base.sudo_remote if sudo_remote is None else sudo_remote,
        sudo_local=base.sudo_local if sudo_local is None else sudo_local,
        zstd_level=(
            _as_int(level, "--zstd-level") if level is not None else base.zstd_level
        ),
        zstd_threads=(
            _as_int(threads, "--threads") if threads is not None else base.zstd_threads
        ),
        keep_acls=flag("keep_acls", base.keep_acls),
        keep_xattrs=flag("keep_xattrs", base.keep_xattrs),
        archive=getattr(args, "archive", None) or None,
        restore_prefix=pick("restore_prefix") or base.restore_prefix,
        out_dir=pick("out_dir") or base.out_dir,
        excludes=tuple(excludes),
        paths=tuple(getattr(args, "paths", None) or ()),
        dry_run=bool(getattr(args, "dry_run", False)),
        verbose=bool(getattr(args, "verbose", False)),
        progress=flag("progress", base.progress),
    )


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# stz configuration
# Command line flags override every value below.

[ssh]
# host = "backup@server"
# port = 22
# identity = "~/.ssh/id_ed25519"
keepalive_interval = 5   # seconds between keepalive probes
keepalive_count = 6      # unanswered probes before giving up

[sudo]
remote = "sudo -n"       # "" to run tar without sudo
local = "sudo -n"

[compression]
level = 19               # 1..22
threads = 0              # 0 = auto

[archive]
out_dir = "."
restore_prefix = "/"
acls = true
xattrs = true
progress = true
excludes = ["*.sock", "var/cache/*"]

# [tools]
# ssh = "ssh"
# pv = "pv"
# tar = "tar"
# zstd = "zstd"
"""
