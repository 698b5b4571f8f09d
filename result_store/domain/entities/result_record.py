"""ResultRecord entity - one persisted request or response

A record is created at insert time, may have its payload replaced by an
update, and is removed only by the reaper. ``request_date`` never changes
after creation; it is the basis of age-based eviction.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from result_store.domain.exceptions import StoreError
from result_store.domain.value_objects.record_category import RecordCategory

EXECUTE_REQUEST = "ExecuteRequest"
EXECUTE_RESPONSE = "ExecuteResponse"

MIME_XML = "text/xml"
MIME_TEXT = "text/plain"


@dataclass
class ResultRecord:
    """Result record entity

    ``payload`` holds the value written to the table: either the raw bytes or,
    for a spilled output, the ASCII-encoded file URI.
    """

    id: str
    response_type: str
    mime_type: str
    payload: bytes
    request_date: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def create(
        record_id: str,
        response_type: str,
        mime_type: str,
        payload: bytes,
        request_date: datetime | None = None,
    ) -> "ResultRecord":
        """Create a new record stamped with the current time.

        Raises:
            StoreError: if the id is empty
        """
        if not record_id or not record_id.strip():
            raise StoreError("record id must not be empty")

        return ResultRecord(
            id=record_id,
            response_type=response_type,
            mime_type=mime_type,
            payload=payload,
            request_date=request_date or datetime.now(UTC),
        )

    @property
    def category(self) -> RecordCategory:
        return RecordCategory.of(self.id)
