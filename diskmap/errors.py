"""Exception types raised by the scan engine and command surface.

Entry-level faults inside a walk never raise; they are tallied instead.
Only root-level failures and control signals surface as exceptions.
"""

from __future__ import annotations

from pathlib import Path


class DiskMapError(Exception):
    """Base class for every error surfaced to diskmap callers."""


class InvalidPathError(DiskMapError):
    """Requested root does not exist or is not a directory."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class RootAccessError(DiskMapError):
    """Root exists but could not be read (permission denied or IO fault)."""

    def __init__(self, path: Path | str, cause: OSError) -> None:
        self.path = Path(path)
        self.cause = cause
        reason = "permission denied" if isinstance(cause, PermissionError) else "cannot read"
        super().__init__(f"{reason}: {path} ({cause.strerror or cause})")

    @property
    def permission_denied(self) -> bool:
        return isinstance(self.cause, PermissionError)


class InsufficientDepthError(DiskMapError):
    """Cached tree is shallower than the requested projection depth."""

    def __init__(self, built_depth: int, requested_depth: int) -> None:
        self.built_depth = built_depth
        self.requested_depth = requested_depth
        super().__init__(f"tree built to depth {built_depth}, requested {requested_depth}")


class ScanFailedError(DiskMapError):
    """A walk worker failed unexpectedly and the scan was abandoned."""


__all__ = [
    "DiskMapError",
    "InvalidPathError",
    "RootAccessError",
    "InsufficientDepthError",
    "ScanFailedError",
]
