"""Pytest configuration and shared fixtures."""

import logging
import stat
from pathlib import Path

import pytest

from stz.config.schema import Config, SSHOptions, ToolPaths

# Minimal ssh stand-in: drops options and host, runs the command locally
FAKE_SSH = """#!/bin/sh
while [ $# -gt 0 ]; do
    case "$1" in
        -p|-i|-o) shift 2 ;;
        -*) shift ;;
        *) shift; break ;;
    esac
done
exec sh -c "$*"
"""

# ssh stand-in for an unreachable host, recording each call
FAILING_SSH = """#!/bin/sh
echo "$*" >> "$0.calls"
echo "ssh: connect to host example port 22: Connection refused" >&2
exit 255
"""

# zstd stand-in that passes data through and fails the integrity test
CAT_ZSTD = """#!/bin/sh
for arg in "$@"; do
    if [ "$arg" = "-tq" ]; then
        exit 1
    fi
done
exec cat
"""

# ssh stand-in that reaches the host but cannot create directories there
MKDIR_FAILING_SSH = """#!/bin/sh
while [ $# -gt 0 ]; do
    case "$1" in
        -p|-i|-o) shift 2 ;;
        -*) shift ;;
        *) shift; break ;;
    esac
done
case "$*" in
    *mkdir*) echo "mkdir: cannot create directory: Permission denied" >&2; exit 1 ;;
esac
exec sh -c "$*"
"""

# pv stand-in: records each call and copies its input
FAKE_PV = """#!/bin/sh
echo "$*" >> "$0.calls"
if [ "$1" = "-s" ]; then
    shift 2
fi
exec cat "$@"
"""


def write_script(path: Path, content: str) -> Path:
    """Write an executable shell script."""
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep user config files and binary overrides out of the tests."""
    monkeypatch.setattr("stz.config.loader.CONFIG_PATHS", [])
    for var in ("SSH_BIN", "PV_BIN", "TAR_BIN", "ZSTD_BIN"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo logging.basicConfig(force=True) done by CLI handlers."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def bin_dir(tmp_path):
    """Directory for fake binaries."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def fake_ssh(bin_dir):
    return write_script(bin_dir / "ssh", FAKE_SSH)


@pytest.fixture
def failing_ssh(bin_dir):
    return write_script(bin_dir / "ssh-down", FAILING_SSH)


@pytest.fixture
def mkdir_failing_ssh(bin_dir):
    return write_script(bin_dir / "ssh-ro", MKDIR_FAILING_SSH)


@pytest.fixture
def fake_pv(bin_dir):
    return write_script(bin_dir / "pv", FAKE_PV)


@pytest.fixture
def cat_zstd(bin_dir):
    return write_script(bin_dir / "zstd-cat", CAT_ZSTD)


@pytest.fixture
def source_tree(tmp_path):
    """A small directory tree to back up."""
    root = tmp_path / "data"
    (root / "etc" / "nginx").mkdir(parents=True)
    (root / "etc" / "nginx" / "nginx.conf").write_text("worker_processes 1;\n")
    (root / "etc" / "nginx" / "access.log").write_text("GET /\n")
    (root / "var" / "www").mkdir(parents=True)
    (root / "var" / "www" / "index.html").write_text("<h1>hi</h1>\n")
    (root / "var" / "www" / "with space.txt").write_text("spaces\n")
    return root


@pytest.fixture
def make_config(tmp_path):
    """Factory for Config objects with test-friendly defaults.

    No sudo, no pv and no ACL/xattr flags, so the pipelines run as an
    unprivileged user with any tar.
    """

    def factory(ssh=None, tools=None, **overrides):
        values = {
            "sudo_remote": "",
            "sudo_local": "",
            "keep_acls": False,
            "keep_xattrs": False,
            "progress": False,
            "out_dir": str(tmp_path / "out"),
        }
        values.update(overrides)
        return Config(
            ssh=ssh or SSHOptions(host="backup@server"),
            tools=tools or ToolPaths(),
            **values,
        )

    return factory


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[ssh]
host = "backup@server"
port = 2222
identity = "/root/.ssh/backup_key"
keepalive_interval = 10
keepalive_count = 3

[sudo]
remote = "doas"
local = ""

[compression]
level = 12
threads = 4

[archive]
out_dir = "/srv/backups"
restore_prefix = "/tmp/restore-root"
acls = false
xattrs = true
progress = false
excludes = ["*.sock", "var/cache/*"]

[tools]
zstd = "/opt/zstd/bin/zstd"
"""


@pytest.fixture
def config_file(tmp_path, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def archive_file(tmp_path):
    """An existing (not necessarily valid) archive file."""
    path = tmp_path / "existing.tar.zst"
    path.write_bytes(b"not really zstd")
    return path
