from result_store.infrastructure.database.repositories.result_store import SQLAlchemyResultStore

__all__ = ["SQLAlchemyResultStore"]
