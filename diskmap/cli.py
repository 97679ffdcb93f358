"""Command-line front door for diskmap.

Parses CLI options, builds the scan context, and runs the requested
commands against it. Prints a size tree or JSON for the target directory.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import commands
from .errors import DiskMapError
from .render import render_json, render_tree
from .runtime import config


def _nonnegative_int(value: str) -> int:
    """argparse type for non-negative integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else config.load_log_level()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scan a directory tree and report exact cumulative sizes."
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory to scan. Defaults to current directory.")
    parser.add_argument(
        "--depth",
        type=_nonnegative_int,
        default=None,
        help="Levels of children to show (default: configured default_depth).",
    )
    parser.add_argument("--children", action="store_true", help="Show only the immediate children of PATH.")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of a tree.")
    parser.add_argument("--style", default="monokai", help="Pygments style name for JSON highlighting.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument(
        "--min-size",
        type=_nonnegative_int,
        default=0,
        help="Collapse tree rows smaller than this many bytes (display only).",
    )
    parser.add_argument(
        "--delete",
        metavar="PATH",
        nargs="+",
        default=None,
        help="Permanently delete these paths after scanning, then print the updated tree.",
    )
    parser.add_argument("--stats", action="store_true", help="Print scan error counts to stderr.")
    parser.add_argument("--drives", action="store_true", help="List mounted drives and exit.")
    parser.add_argument(
        "--set-default-depth",
        type=_nonnegative_int,
        default=None,
        metavar="N",
        help="Persist N as the default depth and exit.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr.")
    return parser


def main(default_path: Path | None = None) -> None:
    """Parse CLI arguments and scan a directory.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is scanned.
    """
    args = _build_parser().parse_args()
    _configure_logging(args.verbose)
    color = not args.no_color and sys.stdout.isatty()

    if args.set_default_depth is not None:
        config.save_default_depth(args.set_default_depth)
        sys.stdout.write(f"default depth set to {args.set_default_depth}\n")
        return

    if args.drives:
        drives = commands.get_system_drives()
        if args.json:
            sys.stdout.write(render_json(drives, color=color, style=args.style))
        else:
            sys.stdout.write("".join(f"{drive}\n" for drive in drives))
        return

    if default_path is None:
        default_path = Path.cwd()
    path = Path(args.path or default_path)
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")

    context = commands.create_context()
    depth = args.depth if args.depth is not None else context.settings.default_depth
    deletion: dict[str, object] | None = None
    try:
        commands.build_cache(context, path, depth)
        if args.delete:
            deletion = commands.delete_items(context, args.delete)
        if args.children:
            nodes = context.get_directory_children_with_depth(path, depth)
        else:
            nodes = [context.get_result_with_depth(path, depth)]
    except DiskMapError as exc:
        raise SystemExit(f"diskmap: {exc}") from exc

    if deletion is not None:
        for failure in deletion["failed"]:
            sys.stderr.write(f"failed to delete {failure['path']}: {failure['message']}\n")

    if args.json:
        payload: object = [node.to_dict() for node in nodes] if args.children else nodes[0].to_dict()
        if deletion is not None:
            payload = {"result": payload, "deletion": deletion}
        sys.stdout.write(render_json(payload, color=color, style=args.style))
    else:
        for node in sorted(nodes, key=lambda item: (-item.size, item.name.lower())):
            sys.stdout.write(render_tree(node, color=color, min_size=args.min_size))

    if args.stats:
        permission_errors, not_found_errors = commands.get_error_stats(context)
        sys.stderr.write(f"permission errors: {permission_errors}, not found errors: {not_found_errors}\n")

    if deletion is not None and deletion["failed"]:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
