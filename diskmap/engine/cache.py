"""In-memory scan cache keyed by requested root path.

One entry per root a caller asked for (not per directory visited). Each root
also owns a build lock: concurrent builds of one root run one at a time and
deletions patching a cached tree hold the same lock. The map itself is guarded
by a short-lived lock so different roots never wait on each other's walks.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from ..runtime.config import DEFAULT_CACHE_MAX_ENTRIES
from ..scan_model import ErrorStats, Node, relative_parts


@dataclass
class CacheEntry:
    """Most recent tree built for ``root_path`` and its materialized depth."""

    root_path: Path
    tree: Node
    built_depth: int
    error_snapshot: ErrorStats = field(default_factory=ErrorStats)
    built_at: float = field(default_factory=time.monotonic)


class _RootLock:
    """Reentrant lock plus the number of threads holding or awaiting it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class ScanCache:
    """Root-path → ``CacheEntry`` store with per-root locks and an LRU cap.

    ``max_entries`` of ``0`` disables eviction. A root's lock lives while the
    root is cached or while some thread holds or waits on it.
    """

    def __init__(self, max_entries: int = DEFAULT_CACHE_MAX_ENTRIES) -> None:
        if max_entries < 0:
            raise ValueError("max_entries must be >= 0")
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._root_locks: dict[str, _RootLock] = {}

    @contextmanager
    def root_lock(self, root: Path) -> Iterator[None]:
        """Hold the lock serializing builds and deletions for ``root``."""
        key = str(root)
        with self._lock:
            holder = self._root_locks.get(key)
            if holder is None:
                holder = _RootLock()
                self._root_locks[key] = holder
            holder.users += 1
        try:
            with holder.lock:
                yield
        finally:
            with self._lock:
                holder.users -= 1
                if key not in self._entries:
                    self._drop_idle_lock(key)

    def _drop_idle_lock(self, key: str) -> None:
        # caller holds self._lock
        holder = self._root_locks.get(key)
        if holder is not None and holder.users == 0:
            del self._root_locks[key]

    def get(self, root: Path) -> CacheEntry | None:
        """Return the entry for ``root`` and mark it recently used."""
        key = str(root)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
            return entry

    def peek(self, root: Path) -> CacheEntry | None:
        """Return the entry for ``root`` without touching LRU order."""
        with self._lock:
            return self._entries.get(str(root))

    def put(self, entry: CacheEntry) -> None:
        """Insert or replace the entry for ``entry.root_path``."""
        key = str(entry.root_path)
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self.max_entries:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    self._drop_idle_lock(evicted)

    def invalidate(self, root: Path) -> bool:
        """Drop the entry for ``root``; return whether one existed."""
        key = str(root)
        with self._lock:
            existed = self._entries.pop(key, None) is not None
            self._drop_idle_lock(key)
            return existed

    def clear(self) -> None:
        with self._lock:
            for key in list(self._entries):
                del self._entries[key]
                self._drop_idle_lock(key)

    def entries(self) -> list[CacheEntry]:
        """Snapshot of all entries, least recently used first."""
        with self._lock:
            return list(self._entries.values())

    def ancestors_of(self, path: Path) -> list[CacheEntry]:
        """Entries whose root strictly contains ``path``, nearest root first."""
        found = [
            entry
            for entry in self.entries()
            if entry.root_path != path and relative_parts(entry.root_path, path) is not None
        ]
        found.sort(key=lambda entry: len(entry.root_path.parts), reverse=True)
        return found

    def lock_count(self) -> int:
        """Number of per-root locks currently allocated."""
        with self._lock:
            return len(self._root_locks)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, root: object) -> bool:
        if not isinstance(root, Path):
            return False
        with self._lock:
            return str(root) in self._entries


__all__ = [
    "CacheEntry",
    "ScanCache",
]
