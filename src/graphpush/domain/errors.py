"""Exception taxonomy for graphpush.

Transient connectivity problems (:class:`DatabaseUnavailable`) are retried
by the connection manager and escalate to :class:`ConnectionFailure` once
the retry budget is spent. :class:`AuthenticationFailure` is never retried.
Services translate everything else into a failed ``ServiceResult``.
"""

from __future__ import annotations


class GraphpushError(Exception):
    """Base class for all graphpush errors."""


class InputValidationError(GraphpushError, ValueError):
    """Input paths or include file rejected before any work starts."""


class DatabaseUnavailable(GraphpushError):
    """A single connection attempt failed; the database may come up later."""


class ConnectionFailure(GraphpushError):
    """No session could be opened within the configured number of attempts."""

    def __init__(self, uri: str, attempts: int) -> None:
        super().__init__(f"Unable to connect to {uri} after {attempts} attempt(s)")
        self.uri = uri
        self.attempts = attempts


class AuthenticationFailure(GraphpushError):
    """The database rejected the configured credentials."""


class PersistenceFailure(GraphpushError):
    """Purge, save, or commit failed inside the database client."""
