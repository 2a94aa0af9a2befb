"""Core operations for stz.

Command building, process pipelines, archive tree rendering and the
cleanup guard used by the backup, list, test-restore and restore commands.
"""

from .cleanup import CleanupGuard
from .commands import CommandBuilder
from .operations import backup, list_archive, restore, restore_local
from .pipeline import Pipeline, PipelineResult, Stage
from .tree import ArchiveEntry, iter_tree_lines, render_tree, sort_entries

__all__ = [
    "ArchiveEntry",
    "CleanupGuard",
    "CommandBuilder",
    "Pipeline",
    "PipelineResult",
    "Stage",
    "backup",
    "iter_tree_lines",
    "list_archive",
    "render_tree",
    "restore",
    "restore_local",
    "sort_entries",
]
