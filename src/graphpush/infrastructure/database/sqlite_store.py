"""SQLite graph store via SQLAlchemy Core.

A local, server-less target for ``sqlite:///`` URIs: nodes and
relationships land in two tables (see :mod:`.schema`). Credentials and the
auto-index mode do not apply and are ignored.

SQLAlchemy Core (not ORM) is used because graphpush writes each run's rows
once and never reads them back.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Collection
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, delete, event
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from graphpush.domain.errors import DatabaseUnavailable, PersistenceFailure
from graphpush.infrastructure.database.base import SaveSummary, chunked
from graphpush.infrastructure.database.schema import edges, metadata, nodes
from graphpush.infrastructure.graph.plan import build_save_plan

if TYPE_CHECKING:
    from sqlalchemy import Connection, RootTransaction
    from sqlalchemy.engine import Engine

    from graphpush.config.models import DatabaseConfig
    from graphpush.domain.graph import GraphNode

logger = logging.getLogger(__name__)


def create_db_engine(uri: str) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(uri, echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


_TRANSIENT_MESSAGES = ("database is locked", "database is busy")


def is_transient(exc: OperationalError) -> bool:
    """True when *exc* is a lock/busy condition worth retrying."""
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in _TRANSIENT_MESSAGES)


def _dumps(value: dict[str, Any]) -> str:
    return json.dumps(value, sort_keys=True, default=str)


class SQLiteTransaction:
    """Explicit transaction on the session's connection."""

    def __init__(self, tx: RootTransaction) -> None:
        self._tx = tx

    def commit(self) -> None:
        try:
            self._tx.commit()
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        if self._tx.is_active:
            self._tx.rollback()

    def close(self) -> None:
        self._tx.close()


class SQLiteSession:
    """One connection to the store, owned by a single persistence run."""

    def __init__(self, conn: Connection, *, batch_size: int) -> None:
        self._conn: Connection | None = conn
        self._batch_size = batch_size

    @property
    def conn(self) -> Connection:
        if self._conn is None:
            raise PersistenceFailure("Session already cleared")
        return self._conn

    def purge(self) -> None:
        """Delete every relationship and node."""
        try:
            with self.conn.begin():
                self.conn.execute(delete(edges))
                self.conn.execute(delete(nodes))
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Purge failed: {exc}") from exc

    def begin_transaction(self) -> SQLiteTransaction:
        return SQLiteTransaction(self.conn.begin())

    def save(self, nodes_to_save: Collection[GraphNode], depth: int) -> SaveSummary:
        """Upsert node records and insert relationships within *depth* hops.

        Runs inside the open transaction if there is one, otherwise in a
        transaction of its own.
        """
        plan = build_save_plan(nodes_to_save, depth)
        node_rows = [
            {
                "id": node.id,
                "label": node.label,
                "name": node.name,
                "properties": _dumps(node.properties),
            }
            for node in plan.nodes
        ]
        edge_rows = [
            {
                "source_id": rel.source_id,
                "target_id": rel.target_id,
                "kind": rel.kind,
                "properties": _dumps(rel.properties),
            }
            for rel in plan.iter_relationships()
        ]

        node_stmt = sqlite_insert(nodes)
        node_stmt = node_stmt.on_conflict_do_update(
            index_elements=[nodes.c.id],
            set_={
                "label": node_stmt.excluded.label,
                "name": node_stmt.excluded.name,
                "properties": node_stmt.excluded.properties,
            },
        )
        edge_stmt = sqlite_insert(edges).on_conflict_do_nothing(
            index_elements=[edges.c.source_id, edges.c.target_id, edges.c.kind]
        )

        try:
            if self.conn.in_transaction():
                self._write(node_stmt, node_rows, edge_stmt, edge_rows)
            else:
                with self.conn.begin():
                    self._write(node_stmt, node_rows, edge_stmt, edge_rows)
        except SQLAlchemyError as exc:
            raise PersistenceFailure(f"Save failed: {exc}") from exc

        return SaveSummary(nodes=len(node_rows), relationships=len(edge_rows))

    def _write(
        self,
        node_stmt: Any,
        node_rows: list[dict[str, Any]],
        edge_stmt: Any,
        edge_rows: list[dict[str, Any]],
    ) -> None:
        for batch in chunked(node_rows, self._batch_size):
            self.conn.execute(node_stmt, batch)
        for batch in chunked(edge_rows, self._batch_size):
            self.conn.execute(edge_stmt, batch)

    def clear(self) -> None:
        """Close the connection; an uncommitted transaction is rolled back."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None


class SQLiteSessionFactory:
    """Engine holder for ``sqlite:///`` URIs."""

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine = create_db_engine(config.uri)

    @property
    def engine(self) -> Engine:
        return self._engine

    def open_session(self) -> SQLiteSession:
        """Connect and make sure the tables exist.

        Only a locked or busy database file is reported as unavailable (and
        so retried); any other failure, such as a missing parent directory,
        propagates unchanged.
        """
        try:
            conn = self._engine.connect()
        except OperationalError as exc:
            if is_transient(exc):
                raise DatabaseUnavailable(str(exc)) from exc
            raise
        try:
            metadata.create_all(conn)
            conn.commit()
        except OperationalError as exc:
            conn.close()
            if is_transient(exc):
                raise DatabaseUnavailable(str(exc)) from exc
            raise
        except SQLAlchemyError:
            conn.close()
            raise
        logger.debug("Opened SQLite session on %s", self._config.uri)
        return SQLiteSession(conn, batch_size=self._config.batch_size)

    def close(self) -> None:
        self._engine.dispose()
