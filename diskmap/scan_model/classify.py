"""Classify single filesystem entries for the directory walker.

Symlinks are followed once (``os.stat`` semantics). Failures are returned as
error kinds instead of raised so one bad entry never unwinds a walk.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from .types import EntryInfo, EntryKind


def error_kind(exc: OSError) -> EntryKind:
    """Map an ``OSError`` onto the tally-relevant error kinds."""
    if isinstance(exc, PermissionError):
        return EntryKind.PERMISSION_DENIED
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return EntryKind.NOT_FOUND
    return EntryKind.OTHER_ERROR


def _from_stat(path: Path, st: os.stat_result) -> EntryInfo:
    # Some platforms report st_ino == 0 from scandir; treat that as unknown.
    identity = (int(st.st_dev), int(st.st_ino)) if st.st_ino else None
    if stat.S_ISDIR(st.st_mode):
        return EntryInfo(path=path, kind=EntryKind.DIRECTORY, identity=identity)
    return EntryInfo(path=path, kind=EntryKind.FILE, size=int(st.st_size), identity=identity)


def classify_path(path: Path) -> EntryInfo:
    """Stat ``path`` (following symlinks) and classify it."""
    try:
        st = os.stat(path)
    except OSError as exc:
        return EntryInfo(path=path, kind=error_kind(exc), error=exc)
    return _from_stat(path, st)


def classify_dir_entry(entry: os.DirEntry[str]) -> EntryInfo:
    """Classify a ``scandir`` entry, reusing its cached stat where possible."""
    path = Path(entry.path)
    try:
        st = entry.stat(follow_symlinks=True)
    except OSError as exc:
        return EntryInfo(path=path, kind=error_kind(exc), error=exc)
    return _from_stat(path, st)


__all__ = [
    "error_kind",
    "classify_path",
    "classify_dir_entry",
]
