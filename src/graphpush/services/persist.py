"""PersistService — push translation-unit graphs into the database.

Pipeline: CONNECT → PURGE → FLATTEN → BEGIN → SAVE → COMMIT → RELEASE

The connection is a context manager, so RELEASE (session clear + factory
close) runs on every exit path. The transaction commits only when SAVE
returns normally. A purge that already ran is not undone when a later
step fails; the database may be left empty.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from graphpush.domain.errors import ConnectionFailure
from graphpush.infrastructure.connection import ConnectionManager
from graphpush.infrastructure.database import open_session_factory
from graphpush.infrastructure.graph.flatten import flatten
from graphpush.services.base import BaseService
from graphpush.services.result import ServiceResult
from graphpush.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from graphpush.config.settings import GraphpushSettings
    from graphpush.domain.graph import GraphNode
    from graphpush.infrastructure.connection import Connector

logger = logging.getLogger(__name__)


class PersistService(BaseService):
    """Persist a root set with the configured depth cap and purge policy."""

    def __init__(
        self,
        settings: GraphpushSettings,
        *,
        connector: Connector = open_session_factory,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(settings)
        self._connector = connector
        self._sleep = sleep

    def connection_manager(self) -> ConnectionManager:
        return ConnectionManager(
            self._settings.database,
            self._settings.retry,
            connector=self._connector,
            sleep=self._sleep,
        )

    @traced
    def persist(self, roots: Sequence[GraphNode]) -> ServiceResult:
        """Write every node reachable from *roots* in one transaction.

        Returns a result whose ``data["nodes_pushed"]`` is the size of the
        flattened node set.
        """
        op = "persist"
        depth = self._settings.persist.depth
        purge = self._settings.persist.purge_before_write

        try:
            with self.connection_manager().connect() as conn:
                if purge:
                    logger.warning("Purging all existing content in %s", self._settings.database.uri)
                    conn.session.purge()

                unique_roots = set(roots)
                logger.info("Using save depth: %d", depth)
                logger.info("Count translation units: %d", len(unique_roots))
                with trace_span("flatten") as span:
                    nodes = flatten(unique_roots)
                    if span:
                        span.annotate("nodes", len(nodes))
                logger.info("Count nodes to save: %d", len(nodes))

                with conn.transaction():
                    start = time.perf_counter()
                    with trace_span("save") as span:
                        summary = conn.session.save(nodes, depth)
                        if span:
                            span.annotate("records", summary.nodes)
                            span.annotate("relationships", summary.relationships)
                    save_seconds = time.perf_counter() - start
                logger.info("Benchmark: pure push time: %.3f s", save_seconds)
        except ConnectionFailure as exc:
            logger.error("%s", exc)
            return ServiceResult.failure(
                op,
                "CONNECTION_FAILED",
                str(exc),
                uri=exc.uri,
                attempts=exc.attempts,
            )
        except Exception as exc:
            logger.exception("Persisting the graph failed")
            return ServiceResult.failure(
                op,
                "PERSIST_FAILED",
                f"{type(exc).__name__}: {exc}",
                purge_before_write=purge,
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "translation_units": len(unique_roots),
                "nodes_pushed": len(nodes),
                "records_written": summary.nodes,
                "relationships_pushed": summary.relationships,
                "depth": depth,
                "purged": purge,
                "save_seconds": round(save_seconds, 3),
            },
        )
