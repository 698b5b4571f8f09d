"""Composition root

Builds the store and its reaper from settings. The caller owns the returned
runtime: keep it for the life of the process and close it at teardown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType

from result_store.config import Settings
from result_store.domain.services.result_reaper import ResultReaper
from result_store.infrastructure.database.connection_provider import ConnectionProvider
from result_store.infrastructure.database.repositories.result_store import SQLAlchemyResultStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResultStoreRuntime:
    store: SQLAlchemyResultStore
    reaper: ResultReaper | None = None

    def close(self) -> None:
        """Stop the reaper first so no firing races the connection close."""
        if self.reaper is not None:
            self.reaper.stop()
        self.store.shutdown()

    def __enter__(self) -> ResultStoreRuntime:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def create_result_store(settings: Settings | None = None) -> ResultStoreRuntime:
    """Open a store and start its reaper when enabled.

    Raises:
        StoreConnectionError / SchemaError: startup failed
    """
    if settings is None:
        from result_store.config import settings as default_settings

        settings = default_settings

    provider = ConnectionProvider.from_settings(settings)
    store = SQLAlchemyResultStore(provider, settings).open()

    reaper = None
    if settings.wipe_enabled:
        reaper = ResultReaper.from_settings(store, settings)
        reaper.start()
    else:
        logger.info("Result reaper disabled; records are never evicted automatically")

    return ResultStoreRuntime(store=store, reaper=reaper)
