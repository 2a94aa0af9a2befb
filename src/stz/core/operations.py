"""Core operations: backup, list, test-restore and restore.

Each operation takes a validated Config, builds its commands and runs
them as one pipeline. In dry-run mode the commands are only logged.
"""

import logging
import os
import shlex
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Optional

from .. import encode_host_for_name
from ..__util__ import (
    CapabilityError,
    IntegrityError,
    PipelineError,
    file_size,
    has_cmd,
    require_cmd,
)
from ..config.schema import Config
from .cleanup import CleanupGuard
from .commands import CommandBuilder
from .pipeline import Pipeline, Stage
from .tree import iter_tree_lines, sort_entries

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar.zst"
STAMP_FORMAT = "%Y-%m-%d-%H%M%S"


def resolve_archive_path(config: Config, now: Optional[time.struct_time] = None) -> Path:
    """Where a backup is written.

    An absolute --file is used as is, a relative one is placed in out_dir,
    and without --file a name is generated from the host and the time.
    """
    out_dir = Path(config.out_dir)
    if config.archive:
        archive = Path(config.archive)
        return archive if archive.is_absolute() else out_dir / archive

    stamp = time.strftime(STAMP_FORMAT, now or time.localtime())
    host = encode_host_for_name(config.ssh.host or "localhost")
    return out_dir / f"backup-{host}-{stamp}{ARCHIVE_SUFFIX}"


def _progress_enabled(config: Config) -> bool:
    """Whether a pv stage should be added."""
    if not config.progress:
        return False
    if config.dry_run or has_cmd(config.tools.pv):
        return True
    logger.warning("pv not found, progress indicator will be disabled")
    return False


def _new_file_mode() -> int:
    """Mode a plain redirect would give a new file under the current umask."""
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


def _log_dry_run(label: str, text: str) -> None:
    logger.info("[dry-run] %s: %s", label, text)


def probe_remote(builder: CommandBuilder) -> None:
    """Make sure the archiver can be run on the remote host.

    Raises:
        CapabilityError: If the probe fails (including ssh failures)
    """
    logger.info("Checking tar availability on remote...")
    cmd = builder.probe_command()
    logger.debug("Probe command: %s", cmd)
    result = subprocess.run(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        detail = result.stderr.strip().splitlines()
        reason = f": {detail[-1]}" if detail else ""
        raise CapabilityError(
            f"tar not found on remote (exit code {result.returncode}){reason}"
        )


def verify_archive(builder: CommandBuilder, path: Path | str) -> None:
    """Run the compressor's integrity test on a written archive.

    Raises:
        IntegrityError: If the test fails
    """
    logger.info("Verifying archive integrity...")
    result = subprocess.run(
        builder.verify_command(str(path)),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        logger.error("Integrity check output: %s", result.stderr.strip())
        raise IntegrityError(
            f"Archive failed integrity check (exit code {result.returncode}): {path}"
        )


def _backup_pipeline(
    config: Config, builder: CommandBuilder, sink: Path | str, progress: bool
) -> Pipeline:
    stages = [Stage("ssh tar", builder.ssh_command(builder.remote_archive_command()))]
    if progress:
        stages.append(Stage("pv", builder.progress_command()))
    stages.append(Stage("zstd", builder.compress_command()))
    return Pipeline(stages, sink=sink)


def _read_stages(
    config: Config, builder: CommandBuilder, progress: bool
) -> tuple[list[Stage], Optional[str]]:
    """Stages reading and decompressing the archive, plus the stdin file."""
    archive = str(config.archive)
    stages = []
    source: Optional[str] = archive
    if progress:
        stages.append(
            Stage("pv", builder.progress_command(archive, file_size(archive)))
        )
        source = None
    stages.append(Stage("zstd -d", builder.decompress_command()))
    return stages, source


def backup(config: Config) -> Path:
    """Stream remote paths through tar, pv and zstd into a local archive.

    Returns:
        Path of the written archive
    """
    builder = CommandBuilder(config)
    archive = resolve_archive_path(config)
    progress = _progress_enabled(config)

    if config.dry_run:
        _log_dry_run("probe", shlex.join(builder.probe_command()))
        pipeline = _backup_pipeline(config, builder, archive, progress)
        _log_dry_run("pipeline", pipeline.describe())
        return archive

    require_cmd(config.tools.ssh)
    require_cmd(config.tools.zstd)
    archive.parent.mkdir(parents=True, exist_ok=True)
    if archive.exists():
        logger.warning("Archive %s exists and will be replaced on success", archive)

    with CleanupGuard() as guard:
        probe_remote(builder)

        fd, partial = tempfile.mkstemp(
            prefix=f".{archive.name}.", suffix=".part", dir=archive.parent
        )
        os.close(fd)
        guard.own(partial)

        logger.info("Creating archive: %s", archive)
        logger.info("Sources (remote:/): %s", " ".join(config.paths))
        logger.info("Excludes: %s", " ".join(config.excludes) or "(none)")

        _backup_pipeline(config, builder, partial, progress).check()
        verify_archive(builder, partial)
        os.chmod(partial, _new_file_mode())
        os.replace(partial, archive)

    logger.info("Done: %s", archive)
    return archive


def list_archive(config: Config) -> list[str]:
    """Return the archive content rendered as tree lines."""
    builder = CommandBuilder(config)
    stages, source = _read_stages(config, builder, _progress_enabled(config))
    stages.append(Stage("tar", builder.list_command()))
    pipeline = Pipeline(stages, source=source, capture=True)

    if config.dry_run:
        _log_dry_run("pipeline", pipeline.describe())
        return []

    require_cmd(config.tools.zstd)
    require_cmd(config.tools.tar)

    logger.info("Archive content (tree): %s", config.archive)
    result = pipeline.check()
    return list(iter_tree_lines(sort_entries(result.lines)))


def restore_local(config: Config) -> None:
    """Extract the archive into a local directory."""
    builder = CommandBuilder(config)
    stages, source = _read_stages(config, builder, _progress_enabled(config))
    stages.append(Stage("tar", builder.local_extract_command()))
    pipeline = Pipeline(stages, source=source)

    if config.dry_run:
        _log_dry_run("pipeline", pipeline.describe())
        return

    require_cmd(config.tools.zstd)
    require_cmd(config.tools.tar)
    Path(config.out_dir).mkdir(parents=True, exist_ok=True)

    if os.geteuid() != 0:
        logger.warning(
            "You are not root. Restoring owners/permissions may fail. Use sudo."
        )

    logger.info("Test extraction into: %s", config.out_dir)
    pipeline.check()
    logger.info("Done.")


def restore(config: Config) -> None:
    """Stream the archive through zstd into tar on the remote host."""
    builder = CommandBuilder(config)
    mkdir_cmd = builder.ssh_command(builder.remote_mkdir_command())
    stages, source = _read_stages(config, builder, _progress_enabled(config))
    stages.append(
        Stage("ssh tar", builder.ssh_command(builder.remote_extract_command()))
    )
    pipeline = Pipeline(stages, source=source)

    if config.dry_run:
        _log_dry_run("probe", shlex.join(builder.probe_command()))
        _log_dry_run("mkdir", shlex.join(mkdir_cmd))
        _log_dry_run("pipeline", pipeline.describe())
        return

    require_cmd(config.tools.ssh)
    require_cmd(config.tools.zstd)

    probe_remote(builder)

    logger.info("Creating prefix dir on remote: %s", config.restore_prefix)
    result = subprocess.run(mkdir_cmd, stdin=subprocess.DEVNULL, check=False)
    if result.returncode != 0:
        raise PipelineError(
            "ssh mkdir",
            result.returncode,
            f"Cannot create {config.restore_prefix} on remote "
            f"(exit code {result.returncode})",
        )

    logger.info(
        "Restoring %s → %s:%s", config.archive, config.ssh.host, config.restore_prefix
    )
    pipeline.check()
    logger.info("Done.")
