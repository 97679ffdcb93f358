"""Command surface consumed by the presentation layer.

Each handler takes the application ``ScanService`` and returns JSON-ready
values, mirroring the command table the UI invokes. Root-level failures raise
``DiskMapError`` subclasses; deletion failures are reported per path.
"""

from __future__ import annotations

from pathlib import Path

from . import system
from .engine import ScanService, ScanSettings

BUILD_CACHE_OK = "Cache built successfully"


def create_context(settings: ScanSettings | None = None) -> ScanService:
    """Construct the process-wide scan context (settings default to user config)."""
    return ScanService(settings if settings is not None else ScanSettings.from_config())


def build_cache(context: ScanService, path: Path | str, depth: int | None = None) -> str:
    context.build_cache(path, depth)
    return BUILD_CACHE_OK


def get_result_with_depth(context: ScanService, path: Path | str, max_depth: int) -> dict[str, object]:
    return context.get_result_with_depth(path, max_depth).to_dict()


def get_directory_children_with_depth(
    context: ScanService,
    path: Path | str,
    max_depth: int,
) -> list[dict[str, object]]:
    return [child.to_dict() for child in context.get_directory_children_with_depth(path, max_depth)]


def get_error_stats(context: ScanService) -> tuple[int, int]:
    """Return ``(permission_errors, not_found_errors)`` accumulated so far."""
    return context.get_error_stats().as_pair()


def reset_error_stats(context: ScanService) -> None:
    context.reset_error_stats()


def delete_items(context: ScanService, paths: list[Path | str]) -> dict[str, object]:
    """Delete ``paths`` permanently; returns ``{"deleted": [...], "failed": [...]}``."""
    return context.delete_items(paths).to_dict()


def get_system_drives() -> list[str]:
    return system.get_system_drives()


def request_disk_access() -> bool:
    return system.request_disk_access()


__all__ = [
    "BUILD_CACHE_OK",
    "create_context",
    "build_cache",
    "get_result_with_depth",
    "get_directory_children_with_depth",
    "get_error_stats",
    "reset_error_stats",
    "delete_items",
    "get_system_drives",
    "request_disk_access",
]
