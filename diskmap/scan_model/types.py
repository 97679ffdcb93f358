"""Domain datatypes for scanned file/directory trees."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class EntryKind(Enum):
    """Classification outcome for one filesystem entry."""

    FILE = "file"
    DIRECTORY = "directory"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    OTHER_ERROR = "other_error"

    @property
    def is_error(self) -> bool:
        return self not in (EntryKind.FILE, EntryKind.DIRECTORY)


@dataclass(frozen=True)
class EntryInfo:
    """Metadata observed for one entry, or the error that prevented it."""

    path: Path
    kind: EntryKind
    size: int = 0
    identity: tuple[int, int] | None = None
    error: OSError | None = None

    @property
    def inode(self) -> int | None:
        return None if self.identity is None else self.identity[1]


@dataclass
class Node:
    """One file or directory with its fully aggregated size.

    ``children`` holds only the materialized levels; ``size`` and
    ``children_count`` always describe the whole subtree on disk.
    """

    name: str
    path: Path
    size: int
    is_directory: bool
    children: list["Node"] = field(default_factory=list)
    children_count: int = 0
    inode: int | None = None

    def shallow_copy(self) -> "Node":
        """Copy scalar fields with an empty ``children`` list."""
        return Node(
            name=self.name,
            path=self.path,
            size=self.size,
            is_directory=self.is_directory,
            children=[],
            children_count=self.children_count,
            inode=self.inode,
        )

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-ready mapping used by the command surface."""
        return {
            "name": self.name,
            "path": str(self.path),
            "size": self.size,
            "is_directory": self.is_directory,
            "children": [child.to_dict() for child in self.children],
            "children_count": self.children_count,
            "inode": self.inode,
        }


def node_name(path: Path) -> str:
    """Base name for ``path``; filesystem roots keep their full spelling."""
    return path.name or str(path)


def absolute_path(path: Path | str) -> Path:
    """Absolute spelling of ``path`` with no symlinks resolved."""
    return Path(os.path.abspath(os.path.expanduser(os.fspath(path))))


def normalize_path(path: Path | str) -> Path:
    """Return an absolute path with its parent resolved.

    The final component is kept as-is so a symlink path keeps naming the link
    rather than its target (deleting a link must not delete the target).
    """
    candidate = absolute_path(path)
    if not candidate.name:
        return candidate
    return candidate.parent.resolve() / candidate.name


__all__ = [
    "EntryKind",
    "EntryInfo",
    "Node",
    "node_name",
    "absolute_path",
    "normalize_path",
]
