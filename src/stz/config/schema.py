"""Configuration schema definitions using dataclasses.

Every record is frozen: a Config is built once per invocation and then
handed, unchanged, to every component.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_ZSTD_LEVEL = 19
DEFAULT_SUDO = "sudo -n"

# Environment variables that override the external binaries
TOOL_ENV_VARS = {
    "ssh": "SSH_BIN",
    "pv": "PV_BIN",
    "tar": "TAR_BIN",
    "zstd": "ZSTD_BIN",
}


@dataclass(frozen=True)
class SSHOptions:
    """Transport options.

    Attributes:
        host: Remote host as user@host (or any ssh destination)
        port: SSH port, None for the ssh default
        identity: Path to SSH private key
        keepalive_interval: Seconds between ServerAlive probes
        keepalive_count: Unanswered probes before the connection is dropped
    """

    host: Optional[str] = None
    port: Optional[int] = None
    identity: Optional[str] = None
    keepalive_interval: int = 5
    keepalive_count: int = 6


@dataclass(frozen=True)
class ToolPaths:
    """Binaries used to build pipelines."""

    ssh: str = "ssh"
    pv: str = "pv"
    tar: str = "tar"
    zstd: str = "zstd"

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: str
    ) -> "ToolPaths":
        """Build tool paths, letting SSH_BIN/PV_BIN/TAR_BIN/ZSTD_BIN win."""
        if environ is None:
            environ = os.environ
        values = {k: v for k, v in overrides.items() if v}
        for name, var in TOOL_ENV_VARS.items():
            if environ.get(var):
                values[name] = environ[var]
        return cls(**values)


@dataclass(frozen=True)
class Config:
    """Root configuration object for one invocation.

    Attributes:
        ssh: Transport options
        tools: External binaries
        sudo_remote: Privilege elevation command on the remote side ("" for none)
        sudo_local: Privilege elevation command for local extraction ("" for none)
        zstd_level: Compression level (1..22)
        zstd_threads: Compression threads (0 = auto)
        keep_acls: Preserve ACLs (--acls)
        keep_xattrs: Preserve extended attributes (--xattrs)
        archive: Archive path (output for backup, input otherwise)
        restore_prefix: Extraction root on the remote host during restore
        out_dir: Local directory for new archives and test extractions
        excludes: tar exclude patterns, applied when the archive is created
        paths: Source paths relative to / on the remote host
        dry_run: Only log the commands that would run
        verbose: Verbose output
        progress: Show a pv progress meter when pv is available
    """

    ssh: SSHOptions = field(default_factory=SSHOptions)
    tools: ToolPaths = field(default_factory=ToolPaths)
    sudo_remote: str = DEFAULT_SUDO
    sudo_local: str = DEFAULT_SUDO
    zstd_level: int = DEFAULT_ZSTD_LEVEL
    zstd_threads: int = 0
    keep_acls: bool = True
    keep_xattrs: bool = True
    archive: Optional[str] = None
    restore_prefix: str = "/"
    out_dir: str = "."
    excludes: tuple[str, ...] = ()
    paths: tuple[str, ...] = ()
    dry_run: bool = False
    verbose: bool = False
    progress: bool = True
