"""SavePlan — depth-capped expansion of a node set into writable records.

Mirrors how an OGM save with a depth limit behaves: every node handed in
is written, and its relationships (of every kind) are followed for at most
``depth`` hops. Nodes reached that way are written as well. ``-1`` follows
relationships until nothing new is reachable.

The expansion is a multi-source breadth-first search, so each node is
expanded once, at its shortest distance from the input set.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, TypeAlias

import networkx as nx

from graphpush.domain.graph import GraphNode

UNBOUNDED = -1

_Graph: TypeAlias = nx.MultiDiGraph


@dataclass(frozen=True)
class PlannedRelationship:
    """One relationship row to write."""

    source_id: str
    target_id: str
    kind: str
    properties: dict[str, Any]


class SavePlan:
    """Node records and relationships selected for one save call.

    Backed by a :class:`networkx.MultiDiGraph` keyed by node id; each edge
    is keyed by its relationship kind and carries its properties.
    """

    def __init__(self, graph: _Graph, depth: int) -> None:
        self._graph = graph
        self.depth = depth

    @property
    def graph(self) -> _Graph:
        return self._graph

    @property
    def nodes(self) -> list[GraphNode]:
        return [data["node"] for _, data in self._graph.nodes(data=True)]

    @property
    def relationships(self) -> list[PlannedRelationship]:
        return list(self.iter_relationships())

    def iter_relationships(self) -> Iterator[PlannedRelationship]:
        for source, target, kind, data in self._graph.edges(keys=True, data=True):
            yield PlannedRelationship(
                source_id=source,
                target_id=target,
                kind=kind,
                properties=data.get("properties", {}),
            )

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def relationship_count(self) -> int:
        return self._graph.number_of_edges()


def build_save_plan(nodes: Iterable[GraphNode], depth: int = UNBOUNDED) -> SavePlan:
    """Expand *nodes* by up to *depth* relationship hops.

    Args:
        nodes: The nodes to save. All of them become node records.
        depth: Hop limit; ``0`` writes bare node records, ``-1`` is unbounded.

    Raises:
        ValueError: If *depth* is below -1.
    """
    if depth < UNBOUNDED:
        msg = f"depth must be -1 or greater, got {depth}"
        raise ValueError(msg)

    g: _Graph = nx.MultiDiGraph()
    queue: deque[tuple[GraphNode, int]] = deque()
    for node in nodes:
        if node.id not in g:
            g.add_node(node.id, node=node)
            queue.append((node, 0))

    while queue:
        node, distance = queue.popleft()
        if depth != UNBOUNDED and distance >= depth:
            continue
        for rel in node.relationships:
            target = rel.target
            if target.id not in g:
                g.add_node(target.id, node=target)
                queue.append((target, distance + 1))
            if not g.has_edge(node.id, target.id, key=rel.kind):
                g.add_edge(node.id, target.id, key=rel.kind, properties=rel.properties)

    return SavePlan(g, depth)
