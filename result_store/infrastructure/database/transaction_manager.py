"""SQLAlchemyTransactionManager - scoped transactions on one Connection"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Connection

from result_store.application.ports.transaction_manager import TransactionManager


class SQLAlchemyTransactionManager(TransactionManager):
    """Transaction control over one SQLAlchemy Connection

    The connection autobegins on first use and never commits on its own, so
    every change becomes durable only through commit() or a scope() exit.
    """

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    def commit(self) -> None:
        self._connection.commit()

    def rollback(self) -> None:
        self._connection.rollback()

    @contextmanager
    def scope(self) -> Iterator[Connection]:
        # drop anything left open by autobegin so every scope starts clean
        if self._connection.in_transaction():
            self._connection.rollback()
        try:
            yield self._connection
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()


__all__ = ["SQLAlchemyTransactionManager"]
