"""TransactionManager Port - transaction control abstraction

Goals:
- the store depends on an abstract transaction boundary, not on a driver
- the infrastructure layer provides the SQLAlchemy implementation

Usage:
    with transactions.scope() as conn:
        conn.execute(...)

- normal exit: commit
- exception inside the block: rollback, then re-raise
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol


class TransactionManager(Protocol):
    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def scope(self) -> AbstractContextManager[Any]: ...
