"""Pytest configuration - shared fixtures"""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import create_engine, select

from result_store.config import Settings
from result_store.infrastructure.database.connection_provider import ConnectionProvider
from result_store.infrastructure.database.models import results_table
from result_store.infrastructure.database.repositories.result_store import SQLAlchemyResultStore


class FakeClock:
    """Controllable clock injected into the store"""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_settings(tmp_path):
    """Settings rooted in a temporary directory, reaper off, no .env"""

    def _make(**overrides) -> Settings:
        values = {"path": tmp_path / "results", "wipe_enabled": False}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_store(make_settings):
    """Open stores and shut them down after the test"""
    stores: list[SQLAlchemyResultStore] = []

    def _make(clock=None, **overrides) -> SQLAlchemyResultStore:
        settings = make_settings(**overrides)
        store = SQLAlchemyResultStore(
            ConnectionProvider.from_settings(settings), settings, clock=clock
        ).open()
        stores.append(store)
        return store

    yield _make

    for store in stores:
        store.shutdown()


@pytest.fixture
def read_row():
    """Read a results row through a separate engine"""
    engines = []

    def _read(store: SQLAlchemyResultStore, record_id: str):
        engine = create_engine(store.connection_url)
        engines.append(engine)
        with engine.connect() as conn:
            return conn.execute(
                select(results_table).where(results_table.c.request_id == record_id)
            ).first()

    yield _read

    for engine in engines:
        engine.dispose()
