from result_store.infrastructure.storage.spill_storage import SpillStorage

__all__ = ["SpillStorage"]
