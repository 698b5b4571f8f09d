"""RecordCategory enum - classification of a stored entry

The category drives the storage policy. It is derived from the record id
alone so that the insert, lookup, update and reap paths always agree:
- ids carrying the request prefix are requests, whatever else they contain
- other ids containing "output" (any case) are outputs
- everything else is a plain response
"""

from __future__ import annotations

from enum import Enum

REQUEST_ID_PREFIX = "REQ_"
OUTPUT_MARKER = "output"


class RecordCategory(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"
    OUTPUT = "output"

    @classmethod
    def of(cls, record_id: str) -> RecordCategory:
        if record_id.startswith(REQUEST_ID_PREFIX):
            return cls.REQUEST
        if OUTPUT_MARKER in record_id.lower():
            return cls.OUTPUT
        return cls.RESPONSE

    @property
    def is_output(self) -> bool:
        return self is RecordCategory.OUTPUT


def request_record_id(job_id: str) -> str:
    """Return the id under which the request of ``job_id`` is stored."""
    if job_id.startswith(REQUEST_ID_PREFIX):
        return job_id
    return f"{REQUEST_ID_PREFIX}{job_id}"
