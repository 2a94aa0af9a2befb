# pyright: standard

"""stz: src/stz/__util__.py
Common exceptions and helpers shared by all modules.
"""

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

# Exit status reported when the run is interrupted (SIGINT / SIGTERM)
INTERRUPT_EXIT_CODE = 130


class StzError(Exception):
    """Base class of every error reported to the operator."""

    exit_code = 1


class ToolNotFoundError(StzError):
    """A required local binary is not available."""

    pass


class CapabilityError(StzError):
    """The remote host cannot run the archiver."""

    pass


class PipelineError(StzError):
    """A pipeline stage exited with a non-zero status."""

    def __init__(self, stage: str, returncode: int, message: str | None = None):
        self.stage = stage
        self.returncode = returncode
        if message is None:
            message = f"Stage '{stage}' failed with exit code {returncode}"
        super().__init__(message)


class IntegrityError(StzError):
    """The written archive did not pass the compressor's integrity test."""

    pass


def has_cmd(command: str) -> bool:
    """Check if a command exists in the PATH (or is an executable path)."""
    return shutil.which(command) is not None


def require_cmd(command: str) -> None:
    """Raise ToolNotFoundError unless command can be executed."""
    if not has_cmd(command):
        raise ToolNotFoundError(f"Required command '{command}' not found in PATH")


def file_size(path: Path | str) -> int:
    """Size of a file in bytes."""
    return os.stat(path).st_size


def exit_code_for(exc: BaseException | None) -> int:
    """Map an exception ending an invocation to the process exit status."""
    if exc is None:
        return 0
    if isinstance(exc, KeyboardInterrupt):
        return INTERRUPT_EXIT_CODE
    if isinstance(exc, SystemExit):
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1
    if isinstance(exc, StzError):
        return exc.exit_code
    return 1
