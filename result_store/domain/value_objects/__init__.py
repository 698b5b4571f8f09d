"""Domain value objects"""

from result_store.domain.value_objects.record_category import RecordCategory
from result_store.domain.value_objects.store_state import StoreState

__all__ = ["RecordCategory", "StoreState"]
