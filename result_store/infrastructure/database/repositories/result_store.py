"""SQLAlchemy result store

Owns one connection and the statement set built on it. Every use of the
connection (inserts, updates, table reads of lookups, reaping, reconnect and
shutdown) happens under a single re-entrant lock; DB-API connections are not
safe for concurrent use. Reading a spilled file happens outside the lock.

Persistence failures on insert/update are logged and swallowed: insert still
returns the retrieval URL, so callers cannot tell a saved record from an
unsaved one. Callers relying on the non-blocking insert path depend on this.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import BinaryIO

from sqlalchemy import (
    Connection,
    Delete,
    Insert,
    Select,
    Update,
    bindparam,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError

from result_store.config import Settings
from result_store.domain.entities.result_record import (
    EXECUTE_REQUEST,
    EXECUTE_RESPONSE,
    MIME_TEXT,
    MIME_XML,
    ResultRecord,
)
from result_store.domain.exceptions import (
    NotFoundError,
    PersistenceError,
    SpillError,
    StoreClosedError,
    StoreConnectionError,
    StoreError,
)
from result_store.domain.ports.result_store import Payload
from result_store.domain.services.storage_policy import StorageLocation, StoragePolicy
from result_store.domain.value_objects.record_category import RecordCategory, request_record_id
from result_store.domain.value_objects.store_state import StoreState
from result_store.infrastructure.database.connection_provider import ConnectionProvider
from result_store.infrastructure.database.models import results_table
from result_store.infrastructure.database.schema import ensure_schema
from result_store.infrastructure.database.transaction_manager import SQLAlchemyTransactionManager
from result_store.infrastructure.storage.spill_storage import SpillStorage

logger = logging.getLogger(__name__)


def read_payload(stream: Payload) -> bytes:
    """Drain a payload argument into bytes."""
    if isinstance(stream, bytes | bytearray | memoryview):
        return bytes(stream)
    if isinstance(stream, str):
        return stream.encode("utf-8")
    data = stream.read()
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


@dataclass(slots=True)
class PreparedStatements:
    """Statements built once per connection."""

    insert: Insert
    select: Select
    update: Update

    @classmethod
    def build(cls) -> PreparedStatements:
        table = results_table
        return cls(
            insert=insert(table),
            select=select(table.c.response).where(table.c.request_id == bindparam("lookup_id")),
            update=(
                update(table)
                .where(table.c.request_id == bindparam("target_id"))
                .values(response=bindparam("new_response"))
            ),
        )


class SQLAlchemyResultStore:
    """Result store backed by one SQLAlchemy connection

    Lifecycle: construct, ``open()``, use, ``shutdown()``. A closed store may
    be opened again.

    Example:
        >>> store = SQLAlchemyResultStore(ConnectionProvider.from_settings(settings), settings)
        >>> store.open()
        >>> url = store.insert_response("job42", b"<result/>")
        >>> store.lookup_response("job42").read()
        b'<result/>'
    """

    def __init__(
        self,
        provider: ConnectionProvider,
        settings: Settings,
        spill_storage: SpillStorage | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._provider = provider
        self._settings = settings
        self._policy = StoragePolicy(save_results_to_db=settings.save_results_to_db)
        self._spill = spill_storage or SpillStorage(settings.path)
        self._base_result_url = settings.base_result_url
        self._clock = clock or (lambda: datetime.now(UTC))

        self._lock = threading.RLock()
        self._state = StoreState.UNINITIALIZED
        self._connection: Connection | None = None
        self._statements: PreparedStatements | None = None

    # ==================== Lifecycle ====================

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def policy(self) -> StoragePolicy:
        return self._policy

    @property
    def connection_url(self) -> str:
        return self._provider.connection_url

    def open(self) -> SQLAlchemyResultStore:
        """Acquire the connection, bootstrap the schema and build statements.

        Raises:
            StoreClosedError: the store is shutting down
            StoreConnectionError: no connection could be acquired
            SchemaError: the results table could not be created
        """
        with self._lock:
            self._transition(StoreState.INITIALIZING)
            try:
                self._spill.ensure_directory()
                self._connection = self._provider.acquire()
                ensure_schema(self._connection)
                self._statements = PreparedStatements.build()
            except OSError as e:
                self._abort_open()
                raise StoreError(
                    f"Unable to create base directory {self._spill.base_directory}: {e}"
                ) from e
            except BaseException:
                self._abort_open()
                raise
            self._transition(StoreState.READY)
        logger.info("Result store ready on %s", self.connection_url)
        return self

    def reconnect(self) -> None:
        """Replace the connection with a fresh one from the provider.

        Raises:
            StoreConnectionError: no connection could be acquired
        """
        with self._lock:
            self._ensure_ready()
            self._reconnect_locked()

    def shutdown(self) -> None:
        """Close statements, then the connection. No data is deleted."""
        with self._lock:
            if self._state in {StoreState.UNINITIALIZED, StoreState.CLOSED}:
                return
            self._state = StoreState.SHUTTING_DOWN

            connection_closed = False
            try:
                # Core statements hold no driver resources; dropping them is enough
                self._statements = None
                if self._connection is not None:
                    if self._connection.in_transaction():
                        self._connection.rollback()
                    self._connection.close()
                    self._connection = None
                    connection_closed = True
            except SQLAlchemyError:
                logger.error("Error occurred while closing database connection", exc_info=True)
            finally:
                if self._connection is not None:
                    try:
                        self._connection.close()
                    except SQLAlchemyError:
                        logger.warning(
                            "Database connection was not closed successfully during shutdown",
                            exc_info=True,
                        )
                    self._connection = None
                self._provider.dispose()
                self._state = StoreState.CLOSED

            if connection_closed:
                logger.info("Database connection is closed successfully")

    # ==================== Inserts / updates ====================

    def generate_retrieve_result_url(self, record_id: str) -> str:
        return f"{self._base_result_url}{record_id}"

    def insert_request(self, job_id: str, stream: Payload, is_xml: bool = True) -> None:
        self.insert_result_entity(
            stream,
            request_record_id(job_id),
            EXECUTE_REQUEST,
            MIME_XML if is_xml else MIME_TEXT,
        )

    def insert_response(self, record_id: str, stream: Payload) -> str:
        return self.insert_result_entity(stream, record_id, EXECUTE_RESPONSE, MIME_XML)

    def insert_result_entity(
        self, stream: Payload, record_id: str, response_type: str, mime_type: str
    ) -> str:
        """Store a new record and return its retrieval URL.

        Output payloads are spilled to disk when the policy says so; a failed
        spill falls back to storing the payload inline. A failed insert is
        logged, and the URL is returned regardless.
        """
        url = self.generate_retrieve_result_url(record_id)
        payload = read_payload(stream)

        with self._lock:
            self._ensure_ready()
            if not record_id or not record_id.strip():
                logger.error(
                    "Failed to insert result data into the database: %s",
                    PersistenceError("insert", record_id),
                )
                return url

            stored = payload
            spilled = False
            if self._policy.location_for(record_id) is StorageLocation.SPILLED:
                try:
                    stored = self._spill.write(record_id, payload)
                    spilled = True
                except SpillError:
                    logger.error("Failed to write output data to disk", exc_info=True)

            record = ResultRecord.create(
                record_id, response_type, mime_type, stored, request_date=self._clock()
            )
            try:
                with self._transactions().scope() as conn:
                    conn.execute(self._require_statements().insert, self._to_params(record))
            except SQLAlchemyError as e:
                logger.error(
                    "Failed to insert result data into the database: %s",
                    PersistenceError("insert", record_id, e),
                    exc_info=True,
                )
                if spilled:
                    self._remove_spilled_files([record_id])
                return url

        logger.debug("inserted request %s into database", record_id)
        return url

    def update_response(self, record_id: str, stream: Payload) -> None:
        """Replace the payload of an existing record.

        A spilled record gets its file rewritten and keeps its marker; an
        inline record gets its column rewritten. The request date is kept.
        """
        payload = read_payload(stream)

        with self._lock:
            self._ensure_ready()
            statements = self._require_statements()
            try:
                with self._transactions().scope() as conn:
                    row = conn.execute(statements.select, {"lookup_id": record_id}).first()
                    if row is None:
                        logger.warning("Could not update response, %s", NotFoundError(record_id))
                        return

                    spilled_path = None
                    if self._policy.may_be_spilled(record_id):
                        spilled_path = self._spill.path_from_marker(row.response)

                    if spilled_path is not None:
                        self._spill.overwrite(spilled_path, payload)
                    else:
                        conn.execute(
                            statements.update,
                            {"target_id": record_id, "new_response": payload},
                        )
            except SQLAlchemyError as e:
                logger.error(
                    "Could not update response in database: %s",
                    PersistenceError("update", record_id, e),
                    exc_info=True,
                )
            except SpillError:
                logger.error("Could not update spilled response for id %s", record_id, exc_info=True)

    # ==================== Lookups ====================

    def lookup_response(self, record_id: str | None) -> BinaryIO | None:
        """Return a readable stream of the stored payload, or None."""
        if record_id is None:
            logger.warning("tried to look up response for null id, returned null")
            return None

        row = self._fetch_row(record_id)
        if row is None:
            logger.debug("%s", NotFoundError(record_id))
            return None

        stored: bytes = row.response or b""
        if self._policy.may_be_spilled(record_id):
            logger.debug("ID %s is output and saved to disk instead of database", record_id)
            path = self._spill.resolve(stored)
            if path is not None:
                try:
                    return self._spill.open(path)
                except SpillError:
                    logger.warning("Error processing response for id %s", record_id, exc_info=True)
            else:
                logger.warning("Response file not found for id %s, returning stored value", record_id)
        return io.BytesIO(stored)

    def lookup_response_as_file(self, record_id: str | None) -> Path | None:
        """Return the path of a spilled payload, or None for inline records."""
        if record_id is not None and self._policy.may_be_spilled(record_id):
            row = self._fetch_row(record_id)
            path = self._spill.resolve(row.response) if row is not None else None
            if path is not None:
                return path
            logger.warning("Could not get file location for response file for id %s", record_id)
            return None

        logger.warning("requested response as file for a response stored in the database, returning null")
        return None

    # ==================== Reaping ====================

    def reap_expired(self, threshold: timedelta, now: datetime | None = None) -> int:
        """Delete records whose request date is older than ``now - threshold``.

        Spilled files of deleted outputs are removed first. Failures are
        logged and reported as zero deletions; the next call starts over.

        Returns:
            number of deleted rows
        """
        cutoff = (now or self._clock()) - threshold
        table = results_table

        with self._lock:
            self._ensure_ready()
            try:
                self._ensure_connection()
                with self._transactions().scope() as conn:
                    expired = list(
                        conn.execute(
                            select(table.c.request_id).where(table.c.request_date < cutoff)
                        ).scalars()
                    )
                    if not expired:
                        return 0

                    if not self._policy.save_results_to_db:
                        self._remove_spilled_files(expired)

                    statement: Delete = delete(table).where(table.c.request_id.in_(expired))
                    deleted = conn.execute(statement).rowcount
            except (StoreConnectionError, SQLAlchemyError):
                logger.warning("Failed to delete old records.", exc_info=True)
                return 0

        logger.info("Cleaned %d records from database", deleted)
        return deleted

    # ==================== Internals ====================

    def _remove_spilled_files(self, record_ids: list[str]) -> None:
        for record_id in record_ids:
            if not RecordCategory.of(record_id).is_output:
                continue
            try:
                self._spill.remove(record_id)
            except OSError:
                logger.warning("Could not remove spilled file of %s", record_id, exc_info=True)

    def _fetch_row(self, record_id: str) -> Row | None:
        with self._lock:
            self._ensure_ready()
            try:
                with self._transactions().scope() as conn:
                    return conn.execute(
                        self._require_statements().select, {"lookup_id": record_id}
                    ).first()
            except SQLAlchemyError:
                logger.error("Failed to look up record %s", record_id, exc_info=True)
                return None

    def _to_params(self, record: ResultRecord) -> dict:
        return {
            "request_id": record.id,
            "request_date": record.request_date,
            "response_type": record.response_type,
            "response": record.payload,
            "response_mimetype": record.mime_type,
        }

    def _transactions(self) -> SQLAlchemyTransactionManager:
        if self._connection is None:
            raise StoreClosedError(self._state.value)
        return SQLAlchemyTransactionManager(self._connection)

    def _require_statements(self) -> PreparedStatements:
        if self._statements is None:
            raise StoreClosedError(self._state.value)
        return self._statements

    def _ensure_ready(self) -> None:
        if self._state is not StoreState.READY:
            raise StoreClosedError(self._state.value)

    def _ensure_connection(self) -> None:
        if self._connection is None or self._connection.closed or self._connection.invalidated:
            logger.info("Database connection lost, reconnecting")
            self._reconnect_locked()

    def _reconnect_locked(self) -> None:
        fresh = self._provider.acquire()
        previous = self._connection
        self._connection = fresh
        self._statements = PreparedStatements.build()
        if previous is not None:
            try:
                previous.close()
            except SQLAlchemyError:
                logger.warning("Previous database connection did not close cleanly", exc_info=True)

    def _abort_open(self) -> None:
        if self._connection is not None:
            try:
                self._connection.close()
            except SQLAlchemyError:
                logger.warning("Could not close connection after failed startup", exc_info=True)
            self._connection = None
        self._statements = None
        self._state = StoreState.CLOSED

    def _transition(self, target: StoreState) -> None:
        if not self._state.can_transition_to(target):
            raise StoreError(f"Result store cannot move from {self._state.value} to {target.value}")
        self._state = target

