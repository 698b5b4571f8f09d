"""Storage policy - decides where a record's payload lives

Write rule:
- requests and plain responses are always stored inline
- outputs are spilled to disk unless ``save_results_to_db`` is set

Read rule mirrors it: only an output id under a spilling policy can carry a
file marker, so only those values are ever resolved against the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from result_store.domain.value_objects.record_category import RecordCategory


class StorageLocation(str, Enum):
    INLINE = "inline"
    SPILLED = "spilled"


@dataclass(frozen=True, slots=True)
class StoragePolicy:
    save_results_to_db: bool = False

    def location_for(self, record_id: str) -> StorageLocation:
        if RecordCategory.of(record_id).is_output and not self.save_results_to_db:
            return StorageLocation.SPILLED
        return StorageLocation.INLINE

    def may_be_spilled(self, record_id: str) -> bool:
        """True when a stored value for ``record_id`` may be a file marker."""
        return self.location_for(record_id) is StorageLocation.SPILLED
