"""Public package surface for diskmap.

Exports the scan context and ``main`` for programmatic CLI invocation.
Most implementation lives in submodules under ``diskmap``.
"""

from __future__ import annotations

from .engine import ScanService, ScanSettings
from .errors import DiskMapError, InsufficientDepthError, InvalidPathError, RootAccessError, ScanFailedError
from .scan_model import Node


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = [
    "main",
    "Node",
    "ScanService",
    "ScanSettings",
    "DiskMapError",
    "InvalidPathError",
    "RootAccessError",
    "InsufficientDepthError",
    "ScanFailedError",
]
