"""BaseService — shared foundation for graphpush services.

Every service receives the resolved :class:`GraphpushSettings` at
construction time and owns its own error boundary: exceptions raised by
infrastructure are turned into failed ``ServiceResult`` values.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from graphpush.config.settings import GraphpushSettings


class BaseService:
    """Base for service-layer classes.

    Usage::

        class PersistService(BaseService):
            def persist(self, roots) -> ServiceResult:
                depth = self._settings.persist.depth
                ...
    """

    def __init__(self, settings: GraphpushSettings) -> None:
        self._settings = settings

    @property
    def settings(self) -> GraphpushSettings:
        return self._settings
