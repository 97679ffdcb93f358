"""Application context owning the walker, scan cache, and error tally.

Construct one ``ScanService`` at startup and pass it to every command handler;
nothing in the engine keeps module-level mutable state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import InsufficientDepthError, InvalidPathError
from ..runtime import config
from ..scan_model import (
    DirectoryWalker,
    ErrorStats,
    ErrorTally,
    Node,
    default_max_workers,
    find_node,
    normalize_path,
    project_tree,
)
from .cache import CacheEntry, ScanCache
from .deletion import DeletionReport, delete_paths

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanSettings:
    """Tunables for one ``ScanService``."""

    default_depth: int = config.DEFAULT_DEPTH
    max_workers: int = field(default_factory=default_max_workers)
    cache_max_entries: int = config.DEFAULT_CACHE_MAX_ENTRIES

    @classmethod
    def from_config(cls) -> ScanSettings:
        """Build settings from the persisted user config."""
        max_workers = config.load_max_workers()
        return cls(
            default_depth=config.load_default_depth(),
            max_workers=max_workers if max_workers is not None else default_max_workers(),
            cache_max_entries=config.load_cache_max_entries(),
        )


def _check_depth(depth: int) -> None:
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
        raise ValueError(f"depth must be a non-negative integer, got {depth!r}")


class ScanService:
    """Scan, cache, project, and delete against one shared cache/tally."""

    def __init__(self, settings: ScanSettings | None = None) -> None:
        self.settings = settings if settings is not None else ScanSettings()
        self.tally = ErrorTally()
        self.cache = ScanCache(max_entries=self.settings.cache_max_entries)
        self.walker = DirectoryWalker(self.tally, max_workers=self.settings.max_workers)

    def build_cache(self, path: Path | str, depth: int | None = None) -> CacheEntry:
        """Walk ``path`` to ``depth`` materialized levels and cache the tree."""
        root = normalize_path(path)
        depth = self.settings.default_depth if depth is None else depth
        _check_depth(depth)
        with self.cache.root_lock(root):
            return self._rebuild_locked(root, depth)

    def _rebuild_locked(self, root: Path, depth: int) -> CacheEntry:
        started = time.perf_counter()
        result = self.walker.walk(root, depth)
        if not result.root.is_directory:
            raise InvalidPathError(root, "not a directory")
        entry = CacheEntry(
            root_path=root,
            tree=result.root,
            built_depth=depth,
            error_snapshot=result.errors,
        )
        self.cache.put(entry)
        errors = result.errors
        logger.info(
            "built cache for %s to depth %d in %.3fs (%d bytes, permission errors %d, not found %d, other %d)",
            root,
            depth,
            time.perf_counter() - started,
            result.root.size,
            errors.permission_errors,
            errors.not_found_errors,
            errors.other_errors,
        )
        return entry

    def _project_cached(self, root: Path, depth: int) -> Node | None:
        entry = self.cache.get(root)
        if entry is None:
            return None
        try:
            return project_tree(entry.tree, entry.built_depth, depth)
        except InsufficientDepthError as exc:
            logger.info("cache for %s too shallow (%s); rebuilding", root, exc)
            return None

    def _project_from_ancestor(self, path: Path, depth: int) -> Node | None:
        """Serve ``path`` from a cached ancestor root when it is deep enough."""
        for entry in self.cache.ancestors_of(path):
            with self.cache.root_lock(entry.root_path):
                current = self.cache.peek(entry.root_path)
                if current is None:
                    continue
                found = find_node(current.tree, path)
                if found is None:
                    continue
                node, level = found
                if not node.is_directory:
                    raise InvalidPathError(path, "not a directory")
                remaining = current.built_depth - level
                if depth > remaining:
                    continue
                self.cache.get(entry.root_path)
                return project_tree(node, remaining, depth)
        return None

    def get_result_with_depth(self, path: Path | str, max_depth: int) -> Node:
        """Return the tree at ``path`` materialized to ``max_depth`` levels.

        Served from the cache when possible; otherwise ``path`` is rebuilt
        deep enough and the new tree replaces its cache entry.
        """
        _check_depth(max_depth)
        root = normalize_path(path)
        with self.cache.root_lock(root):
            view = self._project_cached(root, max_depth)
        if view is None:
            view = self._project_from_ancestor(root, max_depth)
        if view is not None:
            return view
        with self.cache.root_lock(root):
            # another caller may have finished the same build while we waited
            view = self._project_cached(root, max_depth)
            if view is not None:
                return view
            entry = self._rebuild_locked(root, max(max_depth, self.settings.default_depth))
            return project_tree(entry.tree, entry.built_depth, max_depth)

    def get_directory_children_with_depth(self, path: Path | str, max_depth: int) -> list[Node]:
        """Immediate children of ``path``, materialized ``max_depth`` levels below it.

        Depths below one are treated as one: the children themselves are
        always listed.
        """
        _check_depth(max_depth)
        return self.get_result_with_depth(path, max(1, max_depth)).children

    def get_error_stats(self) -> ErrorStats:
        return self.tally.snapshot()

    def reset_error_stats(self) -> None:
        self.tally.reset()

    def delete_items(self, paths: list[Path | str]) -> DeletionReport:
        """Permanently delete ``paths`` and patch cached trees in place."""
        report = delete_paths(paths, self.cache)
        if report.failures:
            logger.warning("%d of %d deletions failed", len(report.failures), len(report.deleted) + len(report.failures))
        return report

    def cached_roots(self) -> list[Path]:
        return [entry.root_path for entry in self.cache.entries()]


__all__ = [
    "ScanSettings",
    "ScanService",
]
