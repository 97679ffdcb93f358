"""Depth-limited views over already built trees.

Nothing here touches the filesystem: projections copy in-memory nodes and
keep every ``size``/``children_count`` exactly as the walk computed it.
"""

from __future__ import annotations

from pathlib import Path

from ..errors import InsufficientDepthError
from .types import Node


def project_tree(tree: Node, built_depth: int, depth: int) -> Node:
    """Return a copy of ``tree`` with ``children`` truncated at ``depth``.

    Nodes at ``depth`` keep their sizes and counts but have no children.
    Raises ``InsufficientDepthError`` when ``depth`` exceeds ``built_depth``.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth > built_depth:
        raise InsufficientDepthError(built_depth, depth)

    root_copy = tree.shallow_copy()
    stack: list[tuple[Node, Node, int]] = [(tree, root_copy, 0)]
    while stack:
        source, target, level = stack.pop()
        if level >= depth:
            continue
        for child in source.children:
            child_copy = child.shallow_copy()
            target.children.append(child_copy)
            if child.children:
                stack.append((child, child_copy, level + 1))
    return root_copy


def relative_parts(root: Path, path: Path) -> tuple[str, ...] | None:
    """Return the components of ``path`` below ``root``, or ``None`` if outside."""
    try:
        return path.relative_to(root).parts
    except ValueError:
        return None


def find_node_chain(tree: Node, path: Path) -> list[Node] | None:
    """Return ``[tree, ..., node]`` for the node at ``path``.

    ``None`` when ``path`` is outside the tree or not materialized in it.
    """
    parts = relative_parts(tree.path, path)
    if parts is None:
        return None
    chain = [tree]
    current = tree
    for part in parts:
        match = next((child for child in current.children if child.name == part), None)
        if match is None:
            return None
        chain.append(match)
        current = match
    return chain


def find_node(tree: Node, path: Path) -> tuple[Node, int] | None:
    """Locate ``path`` in ``tree`` and return ``(node, depth_below_root)``."""
    chain = find_node_chain(tree, path)
    if chain is None:
        return None
    return chain[-1], len(chain) - 1


def iter_nodes(tree: Node):
    """Yield every materialized node, parents before children."""
    stack = [tree]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


__all__ = [
    "project_tree",
    "relative_parts",
    "find_node_chain",
    "find_node",
    "iter_nodes",
]
