"""Parallel fork-join directory walker.

Every subdirectory is expanded as its own task on a bounded thread pool.
Workers never block on their children: each pending directory counts its
outstanding subdirectories and the last child to finish builds the parent
node. A directory ``Node`` therefore only exists once its whole subtree has
been summed, and sizes do not depend on worker scheduling.
"""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from ..errors import InvalidPathError, RootAccessError, ScanFailedError
from .classify import classify_dir_entry, classify_path, error_kind
from .tally import ErrorStats, ErrorTally
from .types import EntryInfo, EntryKind, Node, node_name, normalize_path

logger = logging.getLogger(__name__)


def default_max_workers() -> int:
    """Worker count matching the host's available parallelism."""
    return max(1, os.cpu_count() or 1)


def list_directory(path: Path) -> list[os.DirEntry[str]]:
    """Return all ``scandir`` entries of ``path``; raises ``OSError``."""
    with os.scandir(path) as entries:
        return list(entries)


@dataclass(frozen=True)
class WalkResult:
    """Finished walk: the aggregated tree plus errors seen by this walk only."""

    root: Node
    errors: ErrorStats
    target_depth: int


class _PendingDirectory:
    """Directory whose subtree is still being walked."""

    __slots__ = (
        "path",
        "name",
        "identity",
        "inode",
        "depth",
        "parent",
        "slot",
        "files",
        "file_bytes",
        "file_count",
        "subdirectories",
        "remaining",
    )

    def __init__(
        self,
        info: EntryInfo,
        name: str,
        depth: int,
        parent: _PendingDirectory | None,
        slot: int,
    ) -> None:
        self.path = info.path
        self.name = name
        self.identity = info.identity
        self.inode = info.inode
        self.depth = depth
        self.parent = parent
        self.slot = slot
        self.files: list[Node] = []
        self.file_bytes = 0
        self.file_count = 0
        self.subdirectories: list[Node | None] = []
        self.remaining = 0

    def on_ancestor_chain(self, identity: tuple[int, int]) -> bool:
        """Return whether ``identity`` is this directory or one of its ancestors."""
        current: _PendingDirectory | None = self
        while current is not None:
            if current.identity == identity:
                return True
            current = current.parent
        return False


class _WalkRun:
    """State for one walk: pool, completion signal, and per-walk tally."""

    def __init__(self, shared_tally: ErrorTally | None, target_depth: int, max_workers: int) -> None:
        self._shared_tally = shared_tally
        self._local_tally = ErrorTally()
        self._target_depth = target_depth
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._failed = threading.Event()
        self._failure: BaseException | None = None
        self._result: Node | None = None
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="diskmap-walk")

    @property
    def errors(self) -> ErrorStats:
        return self._local_tally.snapshot()

    def run(self, root_info: EntryInfo, root_entries: list[os.DirEntry[str]]) -> Node:
        root = _PendingDirectory(root_info, node_name(root_info.path), depth=0, parent=None, slot=0)
        with self._executor:
            self._guarded(self._expand, root, root_entries)
            self._done.wait()
        if self._failure is not None:
            raise ScanFailedError(f"scan of {root.path} failed: {self._failure}") from self._failure
        if self._result is None:
            raise ScanFailedError(f"scan of {root.path} finished without a result")
        return self._result

    def _guarded(self, func, *args) -> None:
        try:
            func(*args)
        except Exception as exc:
            with self._lock:
                if self._failure is None:
                    self._failure = exc
            if not self._failed.is_set():
                logger.exception("walk worker failed")
            self._failed.set()
            self._done.set()

    def _record(self, kind: EntryKind, path: Path, exc: OSError | None) -> None:
        self._local_tally.increment(kind)
        if self._shared_tally is not None:
            self._shared_tally.increment(kind)
        logger.debug("skipping %s (%s): %s", path, kind.value, exc)

    def _visit(self, pending: _PendingDirectory) -> None:
        if self._failed.is_set():
            return
        try:
            entries = list_directory(pending.path)
        except OSError as exc:
            self._record(error_kind(exc), pending.path, exc)
            self._complete(pending, None)
            return
        self._expand(pending, entries)

    def _expand(self, pending: _PendingDirectory, entries: list[os.DirEntry[str]]) -> None:
        materialize = pending.depth < self._target_depth
        subdirectories: list[_PendingDirectory] = []
        for entry in entries:
            info = classify_dir_entry(entry)
            if info.kind is EntryKind.FILE:
                pending.file_bytes += info.size
                pending.file_count += 1
                if materialize:
                    pending.files.append(
                        Node(
                            name=entry.name,
                            path=info.path,
                            size=info.size,
                            is_directory=False,
                            inode=info.inode,
                        )
                    )
            elif info.kind is EntryKind.DIRECTORY:
                if info.identity is not None and pending.on_ancestor_chain(info.identity):
                    # symlink or bind mount looping back onto an ancestor
                    self._record(EntryKind.OTHER_ERROR, info.path, None)
                    continue
                subdirectories.append(
                    _PendingDirectory(info, entry.name, pending.depth + 1, pending, len(subdirectories))
                )
            else:
                self._record(info.kind, info.path, info.error)

        pending.subdirectories = [None] * len(subdirectories)
        pending.remaining = len(subdirectories)
        if not subdirectories:
            self._complete(pending, self._build_node(pending))
            return
        for child in subdirectories:
            self._executor.submit(self._guarded, self._visit, child)

    def _build_node(self, pending: _PendingDirectory) -> Node:
        subdirectories = [node for node in pending.subdirectories if node is not None]
        children: list[Node] = []
        if pending.depth < self._target_depth:
            children = pending.files + subdirectories
        return Node(
            name=pending.name,
            path=pending.path,
            size=pending.file_bytes + sum(node.size for node in subdirectories),
            is_directory=True,
            children=children,
            children_count=pending.file_count + len(subdirectories),
            inode=pending.inode,
        )

    def _complete(self, pending: _PendingDirectory, node: Node | None) -> None:
        """Hand a finished subtree (``None`` when it failed) to its parent."""
        while True:
            parent = pending.parent
            if parent is None:
                self._result = node
                self._done.set()
                return
            with self._lock:
                parent.subdirectories[pending.slot] = node
                parent.remaining -= 1
                ready = parent.remaining == 0
            if not ready:
                return
            pending = parent
            node = self._build_node(pending)


class DirectoryWalker:
    """Build fully aggregated ``Node`` trees using a bounded worker pool."""

    def __init__(self, tally: ErrorTally | None = None, *, max_workers: int | None = None) -> None:
        self.tally = tally
        self.max_workers = max_workers if max_workers is not None else default_max_workers()
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

    def walk(self, root: Path | str, target_depth: int) -> WalkResult:
        """Walk ``root`` computing full sizes, keeping ``target_depth`` levels.

        A file root yields a leaf node. Root-level failures raise
        ``InvalidPathError`` or ``RootAccessError``; failures below the root are
        tallied and the entry is left out.
        """
        if target_depth < 0:
            raise ValueError("target_depth must be >= 0")
        root_path = normalize_path(root)
        info = classify_path(root_path)
        if info.error is not None:
            if info.kind is EntryKind.NOT_FOUND:
                raise InvalidPathError(root_path, "path does not exist") from info.error
            raise RootAccessError(root_path, info.error) from info.error
        if info.kind is EntryKind.FILE:
            leaf = Node(
                name=node_name(root_path),
                path=root_path,
                size=info.size,
                is_directory=False,
                inode=info.inode,
            )
            return WalkResult(root=leaf, errors=ErrorStats(), target_depth=target_depth)

        try:
            entries = list_directory(root_path)
        except OSError as exc:
            raise RootAccessError(root_path, exc) from exc

        run = _WalkRun(self.tally, target_depth, self.max_workers)
        node = run.run(info, entries)
        return WalkResult(root=node, errors=run.errors, target_depth=target_depth)


__all__ = [
    "WalkResult",
    "DirectoryWalker",
    "default_max_workers",
    "list_directory",
]
