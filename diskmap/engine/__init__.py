"""Caching scan engine: scan cache, deletion coordinator, and service context."""

from __future__ import annotations

from .cache import CacheEntry, ScanCache
from .deletion import DeletionFailure, DeletionReport, delete_paths, detach_node, remove_path
from .service import ScanService, ScanSettings

__all__ = [
    "CacheEntry",
    "ScanCache",
    "DeletionFailure",
    "DeletionReport",
    "delete_paths",
    "detach_node",
    "remove_path",
    "ScanService",
    "ScanSettings",
]
