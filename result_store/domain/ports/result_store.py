"""ResultStore Port - what upstream callers and the reaper depend on

Callers:
- the job engine: insert_request, insert_response, update_response
- the retrieval front end: lookup_response, lookup_response_as_file
- ResultReaper: reap_expired

Implementations:
- SQLAlchemyResultStore (infrastructure.database.repositories)
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import BinaryIO, Protocol

from result_store.domain.value_objects.store_state import StoreState

Payload = bytes | bytearray | str | BinaryIO


class ResultStore(Protocol):
    @property
    def state(self) -> StoreState: ...

    def insert_request(self, job_id: str, stream: Payload, is_xml: bool = True) -> None: ...

    def insert_response(self, record_id: str, stream: Payload) -> str: ...

    def insert_result_entity(
        self, stream: Payload, record_id: str, response_type: str, mime_type: str
    ) -> str: ...

    def update_response(self, record_id: str, stream: Payload) -> None: ...

    def lookup_response(self, record_id: str | None) -> BinaryIO | None: ...

    def lookup_response_as_file(self, record_id: str | None) -> Path | None: ...

    def generate_retrieve_result_url(self, record_id: str) -> str: ...

    def reap_expired(self, threshold: timedelta, now: datetime | None = None) -> int: ...

    def shutdown(self) -> None: ...
