"""Tree rendering of archive member listings.

The renderer works on a list that is already sorted by path segment and
never reorders it. An entry is drawn as the last child of its parent when
the following entry has a different parent prefix.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator

SEPARATOR = "/"
BRANCH = "├─"
LAST_BRANCH = "└─"
INDENT = "  "


@dataclass(frozen=True)
class ArchiveEntry:
    """A member path from a tar listing."""

    path: str
    is_dir: bool = False

    @property
    def segments(self) -> list[str]:
        return self.path.split(SEPARATOR)

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def parent(self) -> str:
        """All segments but the last ("" for top-level entries)."""
        head, sep, _ = self.path.rpartition(SEPARATOR)
        return head if sep else ""

    @property
    def name(self) -> str:
        return self.segments[-1]


def normalize_entry(raw: str) -> ArchiveEntry:
    """Strip a leading './' and a trailing '/', remembering directories."""
    path = raw.rstrip("\r\n")
    while path.startswith("./"):
        path = path[2:]
    if path == ".":
        path = ""
    is_dir = path.endswith(SEPARATOR)
    path = path.rstrip(SEPARATOR)
    return ArchiveEntry(path=path, is_dir=is_dir)


def _segment_key(raw: str) -> tuple[str, ...]:
    return tuple(normalize_entry(raw).segments)


def sort_entries(paths: Iterable[str]) -> list[str]:
    """Sort raw member paths by path segment, so children follow parents."""
    return sorted(paths, key=_segment_key)


def iter_tree_lines(paths: Iterable[str]) -> Iterator[str]:
    """Yield one rendered line per non-empty member path.

    Args:
        paths: Member paths sorted in ascending order by path segment

    Yields:
        Lines like '  ├─ nginx.conf' or '└─ etc/'
    """
    entries = [e for e in (normalize_entry(p) for p in paths) if e.path]

    for i, entry in enumerate(entries):
        next_parent = entries[i + 1].parent if i + 1 < len(entries) else ""
        glyph = LAST_BRANCH if entry.parent != next_parent else BRANCH
        indent = INDENT * (entry.depth - 1)
        suffix = SEPARATOR if entry.is_dir else ""
        yield f"{indent}{glyph} {entry.name}{suffix}"


def render_tree(paths: Iterable[str]) -> str:
    """Render member paths as an indented tree."""
    return "\n".join(iter_tree_lines(paths))
