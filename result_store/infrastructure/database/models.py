"""Results table ORM model

Table: results

Columns:
- request_id: primary key, caller supplied (REQ_ prefix for requests)
- request_date: insert timestamp, basis of eviction
- response_type: ExecuteRequest / ExecuteResponse
- response: raw payload bytes, or the file URI of a spilled output
- response_mimetype: payload content type

ORM model vs domain entity:
- ResultModel: table mapping, persistence concerns (Infrastructure layer)
- ResultRecord: one record and its category rules (Domain layer)
- the store converts ResultRecord into insert parameters (_to_params)

Design notes:
- SQLAlchemy 2.0 style (Mapped, mapped_column)
- identifiers are at most 100 characters, as in the existing deployments
- response is binary so inline payloads round-trip byte for byte
- request_date is indexed; the reaper scans it on every firing
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from result_store.infrastructure.database.base import Base

RESULTS_TABLE_NAME = "results"


class ResultModel(Base):
    __tablename__ = RESULTS_TABLE_NAME

    request_id: Mapped[str] = mapped_column(String(100), primary_key=True, comment="Record id")
    request_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Insert time"
    )
    response_type: Mapped[str | None] = mapped_column(
        String(100), nullable=True, comment="Request or response tag"
    )
    response: Mapped[bytes | None] = mapped_column(
        LargeBinary, nullable=True, comment="Payload or spilled file URI"
    )
    response_mimetype: Mapped[str | None] = mapped_column(
        String(100), nullable=True, comment="Payload content type"
    )

    __table_args__ = (Index("idx_results_request_date", "request_date"),)


results_table = ResultModel.__table__
