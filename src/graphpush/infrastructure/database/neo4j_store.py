"""Neo4j backend via the official ``neo4j`` Python driver.

Nodes are merged on ``id`` under a shared ``Node`` label plus their own
label; relationships are merged per kind. Writes are batched with
``UNWIND`` and run inside the session's explicit transaction when one is
open.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Collection
from typing import TYPE_CHECKING, Any

from neo4j import GraphDatabase
from neo4j.exceptions import (
    AuthError,
    DriverError,
    Neo4jError,
    ServiceUnavailable,
    SessionExpired,
)

from graphpush.domain.errors import (
    AuthenticationFailure,
    DatabaseUnavailable,
    PersistenceFailure,
)
from graphpush.infrastructure.database.base import SaveSummary, chunked
from graphpush.infrastructure.graph.plan import build_save_plan

if TYPE_CHECKING:
    from neo4j import Driver, Session, Transaction

    from graphpush.config.models import DatabaseConfig
    from graphpush.domain.graph import GraphNode

logger = logging.getLogger(__name__)

NODE_LABEL = "Node"
ID_CONSTRAINT = "graphpush_node_id"

_PURGE_QUERY = "MATCH (n) DETACH DELETE n"
_CREATE_CONSTRAINT = (
    f"CREATE CONSTRAINT {ID_CONSTRAINT} IF NOT EXISTS "
    f"FOR (n:{NODE_LABEL}) REQUIRE n.id IS UNIQUE"
)
_DROP_CONSTRAINT = f"DROP CONSTRAINT {ID_CONSTRAINT} IF EXISTS"
ID_INDEX = "graphpush_node_id_idx"
_CREATE_INDEX = f"CREATE INDEX {ID_INDEX} IF NOT EXISTS FOR (n:{NODE_LABEL}) ON (n.id)"
_DROP_INDEX = f"DROP INDEX {ID_INDEX} IF EXISTS"
_SHOW_CONSTRAINT = "SHOW CONSTRAINTS YIELD name WHERE name = $name RETURN count(*) AS found"

_PRIMITIVES = (bool, int, float, str)


def escape_name(name: str) -> str:
    """Backtick-quote a label or relationship type for Cypher."""
    return "`" + name.replace("`", "``") + "`"


def to_property(value: Any) -> Any:
    """Coerce *value* into something Neo4j can store as a property.

    Lists must hold a single primitive type (``bool`` is not ``int`` here);
    anything else is stored as its string form.
    """
    if value is None or isinstance(value, _PRIMITIVES):
        return value
    if isinstance(value, (list, tuple)) and _homogeneous(value):
        return list(value)
    return str(value)


def _homogeneous(values: list[Any] | tuple[Any, ...]) -> bool:
    kinds = {type(v) for v in values}
    return len(kinds) <= 1 and kinds <= set(_PRIMITIVES)


def to_properties(values: dict[str, Any]) -> dict[str, Any]:
    return {k: to_property(v) for k, v in values.items() if v is not None}


def _node_query(label: str) -> str:
    return (
        "UNWIND $rows AS row "
        f"MERGE (n:{NODE_LABEL} {{id: row.id}}) "
        f"SET n += row.properties, n:{escape_name(label)}"
    )


def _relationship_query(kind: str) -> str:
    return (
        "UNWIND $rows AS row "
        f"MATCH (a:{NODE_LABEL} {{id: row.source_id}}) "
        f"MATCH (b:{NODE_LABEL} {{id: row.target_id}}) "
        f"MERGE (a)-[r:{escape_name(kind)}]->(b) "
        "SET r += row.properties"
    )


class Neo4jTransaction:
    """Explicit transaction; forgets itself on the session when closed."""

    def __init__(self, session: Neo4jSession, tx: Transaction) -> None:
        self._session = session
        self._tx = tx

    @property
    def runner(self) -> Transaction:
        return self._tx

    def commit(self) -> None:
        try:
            self._tx.commit()
        except (Neo4jError, DriverError) as exc:
            raise PersistenceFailure(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        if not self._tx.closed():
            self._tx.rollback()

    def close(self) -> None:
        try:
            self._tx.close()
        finally:
            self._session._forget(self)


class Neo4jSession:
    """Wraps one driver session for the lifetime of a persistence run."""

    def __init__(self, session: Session, *, batch_size: int) -> None:
        self._session: Session | None = session
        self._tx: Neo4jTransaction | None = None
        self._batch_size = batch_size

    @property
    def session(self) -> Session:
        if self._session is None:
            raise PersistenceFailure("Session already cleared")
        return self._session

    def _run(self, query: str, **params: Any) -> None:
        runner = self._tx.runner if self._tx is not None else self.session
        runner.run(query, **params).consume()

    def _forget(self, tx: Neo4jTransaction) -> None:
        if self._tx is tx:
            self._tx = None

    def purge(self) -> None:
        """Detach-delete every node in the database."""
        try:
            self._run(_PURGE_QUERY)
        except (Neo4jError, DriverError) as exc:
            raise PersistenceFailure(f"Purge failed: {exc}") from exc

    def begin_transaction(self) -> Neo4jTransaction:
        self._tx = Neo4jTransaction(self, self.session.begin_transaction())
        return self._tx

    def save(self, nodes: Collection[GraphNode], depth: int) -> SaveSummary:
        """Merge node records, then relationships within *depth* hops."""
        plan = build_save_plan(nodes, depth)

        nodes_by_label: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for node in plan.nodes:
            props = to_properties({**node.properties, "name": node.name})
            nodes_by_label[node.label].append({"id": node.id, "properties": props})

        rels_by_kind: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for rel in plan.iter_relationships():
            rels_by_kind[rel.kind].append(
                {
                    "source_id": rel.source_id,
                    "target_id": rel.target_id,
                    "properties": to_properties(rel.properties),
                }
            )

        try:
            for label, rows in nodes_by_label.items():
                query = _node_query(label)
                for batch in chunked(rows, self._batch_size):
                    self._run(query, rows=batch)
            for kind, rows in rels_by_kind.items():
                query = _relationship_query(kind)
                for batch in chunked(rows, self._batch_size):
                    self._run(query, rows=batch)
        except (Neo4jError, DriverError) as exc:
            raise PersistenceFailure(f"Save failed: {exc}") from exc

        return SaveSummary(nodes=plan.node_count, relationships=plan.relationship_count)

    def clear(self) -> None:
        """Drop any open transaction and close the driver session."""
        if self._tx is not None:
            self._tx.close()
        if self._session is not None:
            self._session.close()
            self._session = None


class Neo4jSessionFactory:
    """Owns the driver; opens verified sessions and applies auto-indexing."""

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._driver: Driver = GraphDatabase.driver(
            config.uri, auth=(config.username, config.password)
        )

    @property
    def driver(self) -> Driver:
        return self._driver

    def open_session(self) -> Neo4jSession:
        """Verify connectivity (if configured) and open a session.

        Raises:
            AuthenticationFailure: Credentials rejected.
            DatabaseUnavailable: Server unreachable or not ready yet.
        """
        try:
            if self._config.verify_connection:
                self._driver.verify_connectivity()
            session = self._driver.session(database=self._config.database)
        except AuthError as exc:
            raise AuthenticationFailure(str(exc)) from exc
        except (ServiceUnavailable, SessionExpired, OSError) as exc:
            raise DatabaseUnavailable(str(exc)) from exc

        try:
            self._apply_auto_index(session)
        except BaseException:
            session.close()
            raise
        return Neo4jSession(session, batch_size=self._config.batch_size)

    def _apply_auto_index(self, session: Session) -> None:
        """Make sure ``:Node(id)`` lookups are indexed, then apply the mode.

        ``none`` keeps a plain range index on the id. The constraint modes
        replace it with the uniqueness constraint, whose backing index
        serves the same lookups; Neo4j refuses the constraint while a plain
        index covers the property.
        """
        mode = self._config.auto_index
        try:
            if mode == "none":
                session.run(_CREATE_INDEX).consume()
                return
            if mode == "validate":
                record = session.run(_SHOW_CONSTRAINT, name=ID_CONSTRAINT).single()
                if record is None or record["found"] == 0:
                    msg = f"Constraint {ID_CONSTRAINT} is missing (auto_index=validate)"
                    raise PersistenceFailure(msg)
                return
            if mode == "assert":
                session.run(_DROP_CONSTRAINT).consume()
            session.run(_DROP_INDEX).consume()
            session.run(_CREATE_CONSTRAINT).consume()
        except (Neo4jError, DriverError) as exc:
            raise PersistenceFailure(f"auto_index={mode} failed: {exc}") from exc
        logger.debug("Applied auto_index=%s", mode)

    def close(self) -> None:
        self._driver.close()
