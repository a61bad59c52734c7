"""ConnectionManager — bounded-retry session acquisition.

State machine::

    ATTEMPTING --DatabaseUnavailable, attempts < max--> (sleep) ATTEMPTING
    ATTEMPTING --DatabaseUnavailable, attempts == max--> EXHAUSTED_RETRIES
    ATTEMPTING --AuthenticationFailure--> AUTH_FAILED (process exit)
    ATTEMPTING --session opened--> CONNECTED

A database that is still starting up is worth waiting for; wrong
credentials are not, so the authentication path exits the process instead
of returning to the caller. The connector and the sleep function are
injectable so the transitions can be exercised without a server or real
delays.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import StrEnum
from typing import TYPE_CHECKING

from graphpush.domain.errors import AuthenticationFailure, ConnectionFailure, DatabaseUnavailable
from graphpush.infrastructure.database import open_session_factory

if TYPE_CHECKING:
    from types import TracebackType

    from graphpush.config.models import DatabaseConfig, RetryConfig
    from graphpush.infrastructure.database import GraphSession, GraphTransaction, SessionFactory

logger = logging.getLogger(__name__)

EXIT_AUTH_FAILURE = 1

Connector = Callable[["DatabaseConfig"], "SessionFactory"]


class ConnectionState(StrEnum):
    ATTEMPTING = "attempting"
    CONNECTED = "connected"
    AUTH_FAILED = "auth_failed"
    EXHAUSTED_RETRIES = "exhausted_retries"


class DatabaseConnection:
    """A live session plus the factory that opened it.

    Use as a context manager: leaving the block clears the session and
    closes the factory, once, whatever happened inside.
    """

    def __init__(self, session: GraphSession, factory: SessionFactory) -> None:
        self.session = session
        self.factory = factory
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @contextmanager
    def transaction(self) -> Iterator[GraphTransaction]:
        """Begin a transaction; commit on success, roll back on error, always close."""
        tx = self.session.begin_transaction()
        try:
            yield tx
        except BaseException:
            tx.rollback()
            raise
        else:
            tx.commit()
        finally:
            tx.close()

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self.session.clear()
        finally:
            self.factory.close()

    def __enter__(self) -> DatabaseConnection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


class ConnectionManager:
    """Open a session, retrying transient failures up to ``max_attempts``."""

    def __init__(
        self,
        database: DatabaseConfig,
        retry: RetryConfig,
        *,
        connector: Connector = open_session_factory,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._database = database
        self._retry = retry
        self._connector = connector
        self._sleep = sleep
        self.state = ConnectionState.ATTEMPTING
        self.attempts = 0

    def connect(self) -> DatabaseConnection:
        """Run the state machine to a terminal state.

        Raises:
            ConnectionFailure: Every attempt hit a transient failure.
            SystemExit: The database rejected the credentials.
        """
        connection: DatabaseConnection | None = None
        while self.state is ConnectionState.ATTEMPTING:
            connection = self._attempt()

        if self.state is ConnectionState.EXHAUSTED_RETRIES:
            raise ConnectionFailure(self._database.uri, self.attempts)
        assert connection is not None
        return connection

    def _attempt(self) -> DatabaseConnection | None:
        factory: SessionFactory | None = None
        try:
            factory = self._connector(self._database)
            session = factory.open_session()
        except DatabaseUnavailable as exc:
            self._discard(factory)
            self._on_unavailable(exc)
            return None
        except AuthenticationFailure as exc:
            self._discard(factory)
            self.state = ConnectionState.AUTH_FAILED
            logger.error(
                "Unable to connect to %s, wrong username/password! (%s)",
                self._database.uri,
                exc,
            )
            raise SystemExit(EXIT_AUTH_FAILURE) from exc
        except BaseException:
            self._discard(factory)
            raise

        self.state = ConnectionState.CONNECTED
        logger.info("Connected to %s after %d attempt(s)", self._database.uri, self.attempts + 1)
        return DatabaseConnection(session, factory)

    def _on_unavailable(self, exc: DatabaseUnavailable) -> None:
        self.attempts += 1
        logger.error(
            "Unable to connect to %s (attempt %d/%d), ensure the database is running "
            "and that there is a working network connection to it: %s",
            self._database.uri,
            self.attempts,
            self._retry.max_attempts,
            exc,
        )
        if self.attempts >= self._retry.max_attempts:
            self.state = ConnectionState.EXHAUSTED_RETRIES
            return
        self._sleep(self._retry.delay_seconds)

    @staticmethod
    def _discard(factory: SessionFactory | None) -> None:
        if factory is None:
            return
        try:
            factory.close()
        except Exception:
            logger.debug("Closing a failed session factory raised", exc_info=True)
