"""OS integration helpers: mounted drives and disk-access probing.

These sit outside the scan engine; the presentation layer calls them to offer
scan roots and to warn when the process lacks full disk access.
"""

from __future__ import annotations

import os
import shutil
import string
import subprocess
import sys
from pathlib import Path

# Readable only with Full Disk Access granted on macOS.
MACOS_PROTECTED_PATHS = (
    Path("/Library/Application Support/com.apple.TCC"),
    Path.home() / "Library" / "Mail",
    Path.home() / "Library" / "Safari",
)


def _parse_df_mounts(output: str) -> list[str]:
    """Extract mount points from POSIX ``df -P`` output."""
    mounts: list[str] = []
    for line in output.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 6:
            continue
        # mount points may contain spaces; everything after capacity belongs to it
        mount = " ".join(parts[5:])
        if mount not in mounts:
            mounts.append(mount)
    return mounts


def get_system_drives() -> list[str]:
    """Return mount points / drive roots a user would want to scan."""
    if sys.platform == "darwin":
        return ["/"]
    if sys.platform.startswith("win"):
        return [f"{letter}:\\" for letter in string.ascii_uppercase if os.path.exists(f"{letter}:\\")]
    if shutil.which("df") is None:
        return ["/"]
    try:
        proc = subprocess.run(
            ["df", "-P", "-x", "tmpfs", "-x", "devtmpfs"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return ["/"]
    return _parse_df_mounts(proc.stdout) or ["/"]


def request_disk_access() -> bool:
    """Return whether protected locations are readable.

    Only macOS gates reads behind a privacy permission; other platforms
    report ``True``. Granting access is left to the user via System Settings.
    """
    if sys.platform != "darwin":
        return True
    for path in MACOS_PROTECTED_PATHS:
        try:
            with os.scandir(path):
                return True
        except OSError:
            continue
    return False


__all__ = [
    "get_system_drives",
    "request_disk_access",
]
