"""Domain model for scanned size trees.

This package contains the non-caching scan primitives:
- node/entry datatypes and path normalization
- single-entry classification
- the parallel directory walker and its error tally
- depth projection and path lookup over built trees
"""

from __future__ import annotations

from .types import EntryInfo, EntryKind, Node, absolute_path, node_name, normalize_path
from .classify import classify_dir_entry, classify_path, error_kind
from .tally import ErrorStats, ErrorTally
from .walk import DirectoryWalker, WalkResult, default_max_workers, list_directory
from .projection import find_node, find_node_chain, iter_nodes, project_tree, relative_parts

__all__ = [
    "EntryInfo",
    "EntryKind",
    "Node",
    "node_name",
    "absolute_path",
    "normalize_path",
    "classify_path",
    "classify_dir_entry",
    "error_kind",
    "ErrorStats",
    "ErrorTally",
    "DirectoryWalker",
    "WalkResult",
    "default_max_workers",
    "list_directory",
    "project_tree",
    "relative_parts",
    "find_node",
    "find_node_chain",
    "iter_nodes",
]
