"""Graph database backends behind one session/transaction boundary."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from graphpush.infrastructure.database.base import (
    GraphSession,
    GraphTransaction,
    SaveSummary,
    SessionFactory,
)

if TYPE_CHECKING:
    from graphpush.config.models import DatabaseConfig

NEO4J_SCHEMES = frozenset({"bolt", "bolt+s", "bolt+ssc", "neo4j", "neo4j+s", "neo4j+ssc"})
SQLITE_SCHEMES = frozenset({"sqlite"})


def open_session_factory(config: DatabaseConfig) -> SessionFactory:
    """Create the session factory matching the scheme of ``config.uri``.

    Backend modules are imported lazily so the SQLite path never loads the
    Neo4j driver and vice versa.

    Raises:
        ValueError: The URI scheme is not supported.
    """
    scheme = urlsplit(config.uri).scheme.lower()
    if scheme in NEO4J_SCHEMES:
        from graphpush.infrastructure.database.neo4j_store import Neo4jSessionFactory

        return Neo4jSessionFactory(config)
    if scheme in SQLITE_SCHEMES:
        from graphpush.infrastructure.database.sqlite_store import SQLiteSessionFactory

        return SQLiteSessionFactory(config)
    msg = f"Unsupported database URI scheme {scheme!r} in {config.uri!r}"
    raise ValueError(msg)


__all__ = [
    "NEO4J_SCHEMES",
    "SQLITE_SCHEMES",
    "GraphSession",
    "GraphTransaction",
    "SaveSummary",
    "SessionFactory",
    "open_session_factory",
]
