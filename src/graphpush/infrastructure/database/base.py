"""Database-client boundary shared by every backend.

A backend supplies a :class:`SessionFactory`. The connection manager opens
one :class:`GraphSession` from it per run; the persistence service drives
purge, transaction, and save through the session and releases both at the
end. Backends raise the domain errors:

- ``DatabaseUnavailable`` / ``AuthenticationFailure`` from ``open_session``
- ``PersistenceFailure`` from purge, save, and commit
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Protocol, TypeVar

from graphpush.domain.graph import GraphNode


@dataclass(frozen=True)
class SaveSummary:
    """What a save call wrote."""

    nodes: int
    relationships: int


class GraphTransaction(Protocol):
    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


class GraphSession(Protocol):
    def purge(self) -> None: ...

    def begin_transaction(self) -> GraphTransaction: ...

    def save(self, nodes: Collection[GraphNode], depth: int) -> SaveSummary: ...

    def clear(self) -> None: ...


class SessionFactory(Protocol):
    def open_session(self) -> GraphSession: ...

    def close(self) -> None: ...


T = TypeVar("T")


def chunked(items: list[T], size: int) -> list[list[T]]:
    """Split *items* into consecutive chunks of at most *size* elements."""
    return [items[i : i + size] for i in range(0, len(items), size)]
