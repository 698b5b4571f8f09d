"""Declarative base of the results table

Why a declarative base at all?
- ResultModel declares columns, comments and indexes in one place
- ResultModel.__table__ is the table the schema bootstrap creates
- the store reads and writes through Core statements built on
  ResultModel.__table__, never through an ORM Session

There is no session factory here: the store owns exactly one Connection,
handed out by ConnectionProvider.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class of result store ORM models

    Subclasses:
    - class ResultModel(Base): ...
    """

    pass
