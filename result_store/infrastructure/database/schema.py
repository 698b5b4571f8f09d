"""Results table bootstrap

Runs on every start. The catalog is checked case-insensitively because some
backends report unquoted identifiers upper-case and others lower-case.
"""

from __future__ import annotations

import logging

from sqlalchemy import Connection, inspect
from sqlalchemy.exc import SQLAlchemyError

from result_store.domain.exceptions import SchemaError
from result_store.infrastructure.database.models import RESULTS_TABLE_NAME, results_table
from result_store.infrastructure.database.transaction_manager import SQLAlchemyTransactionManager

logger = logging.getLogger(__name__)


def has_results_table(connection: Connection) -> bool:
    names = inspect(connection).get_table_names()
    return any(name.lower() == RESULTS_TABLE_NAME for name in names)


def ensure_schema(connection: Connection) -> None:
    """Create the results table if it does not exist yet.

    Raises:
        SchemaError: the table is still missing after the create attempt
    """
    transactions = SQLAlchemyTransactionManager(connection)
    try:
        with transactions.scope():
            if has_results_table(connection):
                return
            logger.info("Table RESULTS does not yet exist.")
            results_table.create(connection)

        with transactions.scope():
            created = has_results_table(connection)
    except SQLAlchemyError as e:
        logger.error("Could not create table RESULTS.", exc_info=True)
        raise SchemaError(f"Could not create table {RESULTS_TABLE_NAME}: {e}") from e

    if not created:
        logger.error("Could not create table RESULTS.")
        raise SchemaError(f"Could not create table {RESULTS_TABLE_NAME}")
    logger.info("Successfully created table RESULTS.")
