"""Database infrastructure - results table, connections and the store

Exports:
- Base / ResultModel: table metadata
- ConnectionProvider and its two strategies
- ensure_schema: idempotent table bootstrap
"""

from result_store.infrastructure.database.base import Base
from result_store.infrastructure.database.connection_provider import (
    ConnectionProvider,
    DataSourceDirectory,
    DirectDriver,
    DirectoryLookup,
)
from result_store.infrastructure.database.models import ResultModel
from result_store.infrastructure.database.schema import ensure_schema

__all__ = [
    "Base",
    "ResultModel",
    "ConnectionProvider",
    "DataSourceDirectory",
    "DirectDriver",
    "DirectoryLookup",
    "ensure_schema",
]
