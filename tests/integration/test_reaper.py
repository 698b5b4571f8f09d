"""Age-based eviction against a sqlite file database"""

from datetime import timedelta

from sqlalchemy import create_engine

from result_store.domain.services.result_reaper import ResultReaper
from result_store.infrastructure.database.connection_provider import (
    ConnectionProvider,
    DataSourceDirectory,
    DirectoryLookup,
)
from result_store.infrastructure.database.repositories.result_store import SQLAlchemyResultStore

SEVEN_DAYS = timedelta(days=7)


class TestReapExpired:
    def test_eight_day_old_record_is_reaped(self, make_store, clock, read_row):
        store = make_store(clock=clock)
        clock.advance(-timedelta(days=8))
        store.insert_response("job80", b"old")
        clock.advance(timedelta(days=8))

        deleted = store.reap_expired(SEVEN_DAYS)

        assert deleted == 1
        assert read_row(store, "job80") is None
        assert store.lookup_response("job80") is None

    def test_younger_records_survive(self, make_store, clock, read_row):
        store = make_store(clock=clock)
        clock.advance(-timedelta(days=6, hours=23))
        store.insert_response("job81", b"almost old")
        clock.advance(timedelta(days=6, hours=23))
        store.insert_response("job82", b"fresh")

        assert store.reap_expired(SEVEN_DAYS) == 0
        assert read_row(store, "job81") is not None
        assert read_row(store, "job82") is not None

    def test_spilled_file_is_removed_with_its_record(self, make_store, clock):
        store = make_store(clock=clock)
        clock.advance(-timedelta(days=8))
        store.insert_response("job83_output", b"old output")
        spilled = store.lookup_response_as_file("job83_output")
        clock.advance(timedelta(days=8))

        store.reap_expired(SEVEN_DAYS)

        assert not spilled.exists()
        assert store.lookup_response_as_file("job83_output") is None

    def test_missing_spilled_file_does_not_block_delete(self, make_store, clock, read_row):
        store = make_store(clock=clock)
        clock.advance(-timedelta(days=8))
        store.insert_response("job84_output", b"old output")
        store.lookup_response_as_file("job84_output").unlink()
        clock.advance(timedelta(days=8))

        assert store.reap_expired(SEVEN_DAYS) == 1
        assert read_row(store, "job84_output") is None

    def test_many_records_deleted_in_one_pass(self, make_store, clock):
        store = make_store(clock=clock)
        clock.advance(-timedelta(days=30))
        for i in range(25):
            store.insert_response(f"job_old_{i}", b"x")
        clock.advance(timedelta(days=30))
        store.insert_response("job_new", b"y")

        assert store.reap_expired(SEVEN_DAYS) == 25
        assert store.lookup_response("job_new").read() == b"y"

    def test_reaper_firing_uses_store(self, make_store, clock):
        store = make_store(clock=clock)
        clock.advance(-timedelta(days=8))
        store.insert_response("job85", b"old")
        clock.advance(timedelta(days=8))

        reaper = ResultReaper(store, period=timedelta(hours=1), threshold=SEVEN_DAYS)

        assert reaper.run_once() == 1
        assert store.lookup_response("job85") is None


class TestReaperRecovers:
    def test_lost_connection_skips_one_firing(self, make_settings, clock, tmp_path):
        settings = make_settings(jndi_name="reaper-source")
        engine = create_engine(f"sqlite:///{tmp_path / 'directory.db'}")
        DataSourceDirectory.bind("reaper-source", engine)
        store = SQLAlchemyResultStore(
            ConnectionProvider(DirectoryLookup("reaper-source")), settings, clock=clock
        ).open()
        try:
            clock.advance(-timedelta(days=8))
            store.insert_response("job90", b"old")
            clock.advance(timedelta(days=8))

            DataSourceDirectory.unbind("reaper-source")
            store._connection.invalidate()

            assert store.reap_expired(SEVEN_DAYS) == 0

            DataSourceDirectory.bind("reaper-source", engine)

            assert store.reap_expired(SEVEN_DAYS) == 1
            assert store.lookup_response("job90") is None
        finally:
            store.shutdown()
            DataSourceDirectory.unbind("reaper-source")
            engine.dispose()

    def test_firing_after_shutdown_is_harmless(self, make_store):
        store = make_store()
        reaper = ResultReaper(store, period=timedelta(hours=1), threshold=SEVEN_DAYS)
        store.shutdown()

        assert reaper.run_once() == 0
