"""Connection provider - acquires the store's backing connection

Two strategies, chosen once from configuration:
- DirectoryLookup: a pooled Engine registered under a name in the process
  wide data source directory (the hosting application binds it at startup)
- DirectDriver: an Engine created from driver/host/path/database name and
  credentials; the database is created when it does not exist yet

Connections are returned in manual-commit mode: SQLAlchemy 2.0 connections
autobegin a transaction and never commit on their own.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import Connection, Engine, create_engine, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from result_store.config import Settings
from result_store.domain.exceptions import StoreConnectionError

logger = logging.getLogger(__name__)


class DataSourceDirectory:
    """Process wide registry of named, pooled data sources."""

    _sources: dict[str, Engine] = {}
    _lock = threading.Lock()

    @classmethod
    def bind(cls, name: str, engine: Engine) -> None:
        with cls._lock:
            cls._sources[name] = engine
        logger.info("Bound data source %s", name)

    @classmethod
    def unbind(cls, name: str) -> Engine | None:
        with cls._lock:
            return cls._sources.pop(name, None)

    @classmethod
    def lookup(cls, name: str) -> Engine:
        with cls._lock:
            engine = cls._sources.get(name)
        if engine is None:
            raise LookupError(f"No data source bound under name {name!r}")
        return engine


@dataclass(frozen=True, slots=True)
class DirectoryLookup:
    """Resolve a registered data source by name."""

    name: str


@dataclass(frozen=True, slots=True)
class DirectDriver:
    """Connect straight to a database URL."""

    url: URL


ConnectionStrategy = DirectoryLookup | DirectDriver


def build_database_url(settings: Settings) -> URL:
    """Build the direct connection URL from settings.

    sqlite databases live under ``settings.path`` as ``<name>.db``; other
    drivers use host, user and password.
    """
    if settings.database_driver.startswith("sqlite"):
        database = str(settings.path / f"{settings.database_name}.db")
        return URL.create(drivername=settings.database_driver, database=database)

    return URL.create(
        drivername=settings.database_driver,
        username=settings.username,
        password=settings.password,
        host=settings.database_host,
        database=settings.database_name,
    )


def select_strategy(settings: Settings) -> ConnectionStrategy:
    if settings.jndi_name:
        return DirectoryLookup(settings.jndi_name)
    return DirectDriver(build_database_url(settings))


def _create_database_if_missing(url: URL) -> None:
    backend = url.get_backend_name()
    if backend == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return

    if backend != "postgresql":
        logger.debug("Database auto-creation not supported for %s", backend)
        return

    maintenance = create_engine(
        url.set(database="postgres"), isolation_level="AUTOCOMMIT", poolclass=NullPool
    )
    try:
        with maintenance.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": url.database},
            ).scalar()
            if not exists:
                logger.info("Creating database %s", url.database)
                conn.execute(text(f'CREATE DATABASE "{url.database}"'))
    finally:
        maintenance.dispose()


class ConnectionProvider:
    """Hands out connections according to one ConnectionStrategy.

    The rest of the store never inspects which strategy is active.
    """

    def __init__(self, strategy: ConnectionStrategy):
        self.strategy = strategy
        self._engine: Engine | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> ConnectionProvider:
        return cls(select_strategy(settings))

    @property
    def connection_url(self) -> str:
        """Rendered URL of the backing database, password masked."""
        if isinstance(self.strategy, DirectDriver):
            return self.strategy.url.render_as_string(hide_password=True)
        try:
            return self._resolve_engine().url.render_as_string(hide_password=True)
        except StoreConnectionError:
            return f"directory:{self.strategy.name}"

    def acquire(self) -> Connection:
        """Open a new manual-commit connection.

        Raises:
            StoreConnectionError: the store is unreachable or the lookup failed
        """
        engine = self._resolve_engine()
        try:
            connection = engine.connect()
        except SQLAlchemyError as e:
            raise StoreConnectionError(f"Unable to connect to {self.connection_url}: {e}") from e
        logger.debug("Acquired connection to %s", self.connection_url)
        return connection

    def dispose(self) -> None:
        """Release the engine owned by a direct strategy."""
        if isinstance(self.strategy, DirectDriver) and self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def _resolve_engine(self) -> Engine:
        if isinstance(self.strategy, DirectoryLookup):
            try:
                return DataSourceDirectory.lookup(self.strategy.name)
            except LookupError as e:
                raise StoreConnectionError(str(e)) from e

        if self._engine is None:
            url = make_url(self.strategy.url)
            try:
                _create_database_if_missing(url)
                self._engine = create_engine(url, pool_pre_ping=True)
            except (SQLAlchemyError, OSError) as e:
                raise StoreConnectionError(f"Unable to open database {url!r}: {e}") from e
            logger.debug("Database connection URL is: %s", self.connection_url)
        return self._engine
