"""Shared error counters accumulated across walks."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from .types import EntryKind


@dataclass(frozen=True)
class ErrorStats:
    """Point-in-time copy of the error counters."""

    permission_errors: int = 0
    not_found_errors: int = 0
    other_errors: int = 0

    def as_pair(self) -> tuple[int, int]:
        """Return ``(permission_errors, not_found_errors)``."""
        return self.permission_errors, self.not_found_errors

    def to_dict(self) -> dict[str, int]:
        return {
            "permission_errors": self.permission_errors,
            "not_found_errors": self.not_found_errors,
            "other_errors": self.other_errors,
        }


class ErrorTally:
    """Thread-safe permission/not-found/other counters.

    A ``reset`` that races an in-flight walk may drop some of that walk's
    increments; callers reset before starting a fresh scan.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._permission_errors = 0
        self._not_found_errors = 0
        self._other_errors = 0

    def increment(self, kind: EntryKind) -> None:
        """Count one failed entry of ``kind``; non-error kinds are ignored."""
        with self._lock:
            if kind is EntryKind.PERMISSION_DENIED:
                self._permission_errors += 1
            elif kind is EntryKind.NOT_FOUND:
                self._not_found_errors += 1
            elif kind is EntryKind.OTHER_ERROR:
                self._other_errors += 1

    def snapshot(self) -> ErrorStats:
        with self._lock:
            return ErrorStats(
                permission_errors=self._permission_errors,
                not_found_errors=self._not_found_errors,
                other_errors=self._other_errors,
            )

    def reset(self) -> None:
        with self._lock:
            self._permission_errors = 0
            self._not_found_errors = 0
            self._other_errors = 0


__all__ = [
    "ErrorStats",
    "ErrorTally",
]
