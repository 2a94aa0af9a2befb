"""Removal of partially written artifacts on abnormal exit."""

import logging
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from ..__util__ import exit_code_for

logger = logging.getLogger(__name__)


class CleanupGuard:
    """Scope guard for one command invocation.

    The guard starts out owning nothing. A backup marks the single file it
    creates with own(); when the guarded block is left through an exception
    (including KeyboardInterrupt) with a non-zero status, that file is
    deleted. Files the guard was never told it owns are never touched, so
    archives handed in for list or restore are safe.

    The exception is always propagated.
    """

    def __init__(self) -> None:
        self._owned: Optional[Path] = None
        self.status: Optional[int] = None

    @property
    def owned(self) -> Optional[Path]:
        return self._owned

    def own(self, path: Path | str) -> Path:
        """Mark path as created by this invocation."""
        if self._owned is not None:
            raise RuntimeError(f"CleanupGuard already owns {self._owned}")
        self._owned = Path(path)
        logger.debug("Owning artifact %s", self._owned)
        return self._owned

    def release(self, status: int) -> bool:
        """Remove the owned file if status is non-zero.

        Returns:
            True if a file was removed
        """
        self.status = status
        path = self._owned
        if status == 0 or path is None or not path.is_file():
            return False

        logger.warning("Removing partially created file: %s (code %d)", path, status)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def __enter__(self) -> "CleanupGuard":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        self.release(exit_code_for(exc))
        return False
