"""SQLAlchemy Core table definitions for the SQLite graph store.

Node properties and relationship properties are stored as JSON text;
nothing in graphpush queries inside them.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, MetaData, Table, Text, UniqueConstraint

metadata = MetaData()

nodes = Table(
    "nodes",
    metadata,
    Column("id", Text, primary_key=True),
    Column("label", Text, nullable=False),
    Column("name", Text, nullable=False, default="", server_default=""),
    Column("properties", Text, nullable=False, default="{}", server_default="{}"),  # JSON object
)

edges = Table(
    "edges",
    metadata,
    Column("source_id", Text, ForeignKey("nodes.id"), nullable=False),
    Column("target_id", Text, ForeignKey("nodes.id"), nullable=False),
    Column("kind", Text, nullable=False),
    Column("properties", Text, nullable=False, default="{}", server_default="{}"),  # JSON object
    UniqueConstraint("source_id", "target_id", "kind"),
)

Index("ix_nodes_label", nodes.c.label)
Index("ix_edges_source", edges.c.source_id)
Index("ix_edges_target", edges.c.target_id)
Index("ix_edges_kind", edges.c.kind)
