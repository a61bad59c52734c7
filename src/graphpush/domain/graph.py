"""Graph node model shared by the analyzer, the flattener, and the backends.

A :class:`GraphNode` owns its outgoing relationships. The ``AST``
relationship is the structural (parent -> child) edge; every other kind is
semantic and may form cycles.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class RelationshipKind(StrEnum):
    """Relationship kinds produced by the bundled analyzer."""

    AST = "AST"
    REFERS_TO = "REFERS_TO"
    IMPORTS = "IMPORTS"


STRUCTURAL = RelationshipKind.AST


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, eq=False)
class Relationship:
    """A labeled outgoing edge from one node to another."""

    kind: str
    target: GraphNode
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class GraphNode:
    """One element of an analyzed program.

    Equality and hashing use ``id`` only, so two handles on the same
    element collapse in a set even if the analyzer produced them twice.
    """

    label: str
    name: str = ""
    properties: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)
    relationships: list[Relationship] = field(default_factory=list, repr=False)
    _child_count: int = field(default=0, init=False, repr=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphNode):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def relate(self, kind: str, target: GraphNode, **properties: Any) -> Relationship:
        """Append an outgoing relationship and return it."""
        rel = Relationship(kind=kind, target=target, properties=properties)
        self.relationships.append(rel)
        if kind == STRUCTURAL:
            self._child_count += 1
        return rel

    def add_child(self, child: GraphNode) -> GraphNode:
        """Attach *child* under this node via the structural relationship."""
        self.relate(STRUCTURAL, child, index=self._child_count)
        return child

    @property
    def children(self) -> list[GraphNode]:
        """Direct structural children, in insertion order."""
        return [r.target for r in self.relationships if r.kind == STRUCTURAL]

    def outgoing(self, kind: str | None = None) -> list[Relationship]:
        """Outgoing relationships, optionally filtered by *kind*."""
        if kind is None:
            return list(self.relationships)
        return [r for r in self.relationships if r.kind == kind]
