"""Permanent deletion of scanned paths plus in-place cache patching."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from ..scan_model import (
    EntryKind,
    Node,
    absolute_path,
    error_kind,
    find_node_chain,
    normalize_path,
    relative_parts,
)
from .cache import ScanCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletionFailure:
    """One path that could not be deleted and why."""

    path: Path
    kind: EntryKind
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": str(self.path), "kind": self.kind.value, "message": self.message}


@dataclass(frozen=True)
class DeletionReport:
    """Per-path outcome of a ``delete_paths`` batch."""

    deleted: tuple[Path, ...] = ()
    failures: tuple[DeletionFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict[str, object]:
        return {
            "deleted": [str(path) for path in self.deleted],
            "failed": [failure.to_dict() for failure in self.failures],
        }


def remove_path(path: Path) -> None:
    """Delete a file, symlink, or whole directory tree; raises ``OSError``."""
    if not path.is_symlink() and path.is_dir():
        shutil.rmtree(path)
    else:
        os.remove(path)


def detach_node(tree: Node, path: Path) -> Node | None:
    """Remove ``path`` from ``tree`` and subtract its size from every ancestor.

    Returns the removed node, or ``None`` when ``path`` is the root or is not
    materialized in ``tree`` (the tree is left untouched).
    """
    chain = find_node_chain(tree, path)
    if chain is None or len(chain) < 2:
        return None
    node = chain[-1]
    parent = chain[-2]
    for index, child in enumerate(parent.children):
        if child is node:
            del parent.children[index]
            break
    parent.children_count = max(0, parent.children_count - 1)
    for ancestor in chain[:-1]:
        ancestor.size = max(0, ancestor.size - node.size)
    return node


def _contains(root: Path, path: Path) -> bool:
    return relative_parts(root, path) is not None


def _real_root(root: Path) -> Path | None:
    try:
        return root.resolve()
    except (OSError, RuntimeError):
        return None


def _patch_cache(cache: ScanCache, path: Path, *, removed: bool) -> None:
    """Bring every cached tree touching ``path`` in line with the disk.

    ``path`` is matched both as spelled and with its parent resolved, since
    tree nodes keep the spelling their root was scanned under. Trees that
    cannot be patched exactly are invalidated so the next request rebuilds
    them instead of serving stale sizes.
    """
    resolved = normalize_path(path)
    spellings = [path] if resolved == path else [path, resolved]
    for entry in cache.entries():
        root = entry.root_path
        if any(_contains(spelling, root) for spelling in spellings):
            # the cached root itself (or one of its ancestors) is gone
            cache.invalidate(root)
            logger.info("invalidated cache for %s after deleting %s", root, path)
            continue
        inside = [spelling for spelling in spellings if _contains(root, spelling)]
        if not inside:
            real_root = _real_root(root)
            if real_root is None or _contains(real_root, resolved) or _contains(resolved, real_root):
                # reached through a symlink spelling this tree does not use
                cache.invalidate(root)
                logger.info("invalidated cache for %s after deleting %s", root, path)
            continue
        with cache.root_lock(root):
            current = cache.peek(root)
            if current is None:
                continue
            if removed and any(detach_node(current.tree, spelling) is not None for spelling in inside):
                logger.debug("patched cache for %s after deleting %s", root, path)
                continue
            cache.invalidate(root)
            logger.info("invalidated cache for %s after deleting %s", root, path)


def delete_paths(paths: list[Path | str], cache: ScanCache | None = None) -> DeletionReport:
    """Delete each path independently and patch ``cache`` for the successes.

    Paths are reported as given (made absolute, symlinks left alone). A
    failure never stops the remaining paths. A failed delete that may have
    removed part of a directory invalidates the cached trees containing it.
    """
    deleted: list[Path] = []
    failures: list[DeletionFailure] = []
    seen: set[Path] = set()
    for raw_path in paths:
        path = absolute_path(raw_path)
        if path in seen:
            continue
        seen.add(path)
        existed_as_dir = not path.is_symlink() and path.is_dir()
        try:
            remove_path(path)
        except OSError as exc:
            kind = error_kind(exc)
            failures.append(DeletionFailure(path=path, kind=kind, message=exc.strerror or str(exc)))
            logger.warning("failed to delete %s: %s", path, exc)
            if cache is not None and existed_as_dir:
                _patch_cache(cache, path, removed=False)
            continue
        deleted.append(path)
        logger.info("deleted %s", path)
        if cache is not None:
            _patch_cache(cache, path, removed=True)
    return DeletionReport(deleted=tuple(deleted), failures=tuple(failures))


__all__ = [
    "DeletionFailure",
    "DeletionReport",
    "remove_path",
    "detach_node",
    "delete_paths",
]
