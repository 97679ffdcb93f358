"""Terminal rendering of size trees and JSON payloads.

Tree rows are sorted largest-first and may hide entries under a byte
threshold; both are display choices only, the engine always reports true
sizes. JSON output is highlighted with Pygments when color is wanted.
"""

from __future__ import annotations

import json
import os

from pygments import highlight as pygments_highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import JsonLexer
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .scan_model import Node

DEFAULT_STYLE = "monokai"
SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")

DIR_COLOR = "\033[1;34m"
FILE_COLOR = "\033[38;5;252m"
BRANCH_COLOR = "\033[2;38;5;245m"
NOTE_COLOR = "\033[2;38;5;250m"
SIZE_COLOR = "\033[38;5;109m"
RESET = "\033[0m"

_FORMATTERS: dict[str, TerminalFormatter] = {}


def format_size(size_bytes: int) -> str:
    """Human-readable byte count using binary (1024) units."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    value = float(size_bytes)
    for unit in SIZE_UNITS[1:]:
        value /= 1024.0
        if value < 1024.0 or unit == SIZE_UNITS[-1]:
            return f"{value:.1f} {unit}"
    return f"{value:.1f} {SIZE_UNITS[-1]}"


def display_text(text: str) -> str:
    """Make undecodable (surrogate-escaped) file names printable."""
    return os.fsencode(text).decode("utf-8", errors="replace")


def _formatter_for_style(style: str) -> TerminalFormatter:
    formatter = _FORMATTERS.get(style)
    if formatter is not None:
        return formatter
    try:
        get_style_by_name(style)
    except ClassNotFound:
        style = DEFAULT_STYLE
    formatter = TerminalFormatter(style=style)
    _FORMATTERS[style] = formatter
    return formatter


def render_json(payload: object, *, color: bool, style: str = DEFAULT_STYLE) -> str:
    """Serialize ``payload`` as indented JSON, highlighted when ``color``."""
    text = json.dumps(payload, indent=2)
    if not color:
        return text + "\n"
    return pygments_highlight(text, JsonLexer(), _formatter_for_style(style))


def render_tree(node: Node, *, color: bool = False, min_size: int = 0) -> str:
    """Render ``node`` as a branch-drawn tree annotated with sizes.

    Children smaller than ``min_size`` are collapsed into one summary row per
    directory.
    """
    dir_color = DIR_COLOR if color else ""
    file_color = FILE_COLOR if color else ""
    branch_color = BRANCH_COLOR if color else ""
    note_color = NOTE_COLOR if color else ""
    size_color = SIZE_COLOR if color else ""
    reset = RESET if color else ""

    def label(item: Node, name: str | None = None) -> str:
        name = display_text(item.name if name is None else name)
        name_color = dir_color if item.is_directory else file_color
        suffix = "/" if item.is_directory and not name.endswith("/") else ""
        count = ""
        if item.is_directory and item.children_count and not item.children:
            count = f" {note_color}({item.children_count} items){reset}"
        return f"{name_color}{name}{suffix}{reset} {size_color}[{format_size(item.size)}]{reset}{count}"

    lines_out = [label(node, str(node.path))]

    def walk(directory: Node, prefix: str) -> None:
        """Emit rows for ``directory``'s materialized children depth-first."""
        ordered = sorted(directory.children, key=lambda item: (-item.size, item.name.lower()))
        shown = [child for child in ordered if child.size >= min_size]
        hidden = [child for child in ordered if child.size < min_size]
        rows: list[Node | None] = list(shown)
        if hidden:
            rows.append(None)

        for idx, child in enumerate(rows):
            last = idx == len(rows) - 1
            branch = "└─ " if last else "├─ "
            if child is None:
                hidden_bytes = sum(item.size for item in hidden)
                text = f"{note_color}... {len(hidden)} smaller entries [{format_size(hidden_bytes)}]{reset}"
            else:
                text = label(child)
            lines_out.append(f"{branch_color}{prefix}{branch}{reset}{text}")
            if child is not None and child.children:
                walk(child, prefix + ("   " if last else "│  "))

    walk(node, "")
    return "\n".join(lines_out) + "\n"


__all__ = [
    "display_text",
    "format_size",
    "render_json",
    "render_tree",
]
