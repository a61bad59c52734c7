"""Structural flattening — collect every node below a set of roots.

Only the structural ``AST`` relationship is followed. Semantic edges may
point back up the tree or across units; ignoring them keeps the walk
finite on any graph shape. The walk is iterative so deep syntax trees
never hit the recursion limit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from graphpush.domain.graph import GraphNode


def flatten_tree(root: GraphNode, *, into: set[GraphNode] | None = None) -> set[GraphNode]:
    """Return *root* and all its structural descendants.

    When *into* is given, nodes already in it are treated as visited and
    are neither revisited nor descended into again; new nodes are added
    to it and it is returned.
    """
    visited: set[GraphNode] = set() if into is None else into
    if root in visited:
        return visited

    visited.add(root)
    stack = [root]
    while stack:
        node = stack.pop()
        for child in node.children:
            if child not in visited:
                visited.add(child)
                stack.append(child)
    return visited


def flatten(roots: Iterable[GraphNode]) -> set[GraphNode]:
    """Deduplicate *roots* by identity and flatten them into one node set.

    A subtree shared by several roots is walked once and appears once in
    the result.
    """
    unique_roots = set(roots)
    result: set[GraphNode] = set()
    for root in unique_roots:
        flatten_tree(root, into=result)
    return result
