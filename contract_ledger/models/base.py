"""Declarative base shared by the world state and transaction log tables."""

from datetime import datetime

from sqlalchemy import DateTime, LargeBinary, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Constraint names stay stable across SQLite and PostgreSQL
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """Base class for all ledger tables."""

    metadata = metadata

    type_annotation_map = {
        datetime: DateTime(timezone=True),
        bytes: LargeBinary,
    }


class RecordedAtMixin:
    """Wall-clock time a row was committed. Not part of any validation."""

    recorded_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )
