"""Persistent JSON config helpers.

Stores scan defaults (materialized depth, worker count, cache cap) and the
log level used by the CLI. Missing or malformed values fall back to the
built-in defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "diskmap"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_DEPTH = 3
DEFAULT_CACHE_MAX_ENTRIES = 32
DEFAULT_LOG_LEVEL = "WARNING"


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are ignored so an unwritable config directory never
    breaks a scan.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError:
        pass


def _coerce_int(value: object, minimum: int) -> int | None:
    """Accept JSON integers ``>= minimum``; booleans and floats are rejected."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value < minimum:
        return None
    return value


def load_default_depth() -> int:
    """Materialized depth used by ``build_cache`` when none is given."""
    value = _coerce_int(load_config().get("default_depth"), 0)
    return DEFAULT_DEPTH if value is None else value


def save_default_depth(depth: int) -> None:
    if isinstance(depth, bool) or depth < 0:
        return
    config = load_config()
    config["default_depth"] = int(depth)
    save_config(config)


def load_max_workers() -> int | None:
    """Configured walker pool size, or ``None`` for the host default."""
    return _coerce_int(load_config().get("max_workers"), 1)


def load_cache_max_entries() -> int:
    """Cap on cached roots; ``0`` means unbounded."""
    value = _coerce_int(load_config().get("cache_max_entries"), 0)
    return DEFAULT_CACHE_MAX_ENTRIES if value is None else value


def load_log_level() -> int:
    """Return the configured logging level, defaulting to ``WARNING``.

    Unknown level names fall back to the default.
    """
    value = load_config().get("log_level")
    name = value.strip().upper() if isinstance(value, str) else DEFAULT_LOG_LEVEL
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        return logging.getLevelName(DEFAULT_LOG_LEVEL)
    return level


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_DEPTH",
    "DEFAULT_CACHE_MAX_ENTRIES",
    "load_config",
    "save_config",
    "load_default_depth",
    "save_default_depth",
    "load_max_workers",
    "load_cache_max_entries",
    "load_log_level",
]
