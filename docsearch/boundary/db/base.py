"""
Declarative base and column mixins for the docsearch tables.

Dependencies: sqlalchemy
System role: Shared ORM building blocks
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Aware UTC now; every timestamp column is written with this."""
    return datetime.now(timezone.utc)


def enum_values(enum_cls: type) -> list[str]:
    """Store enum members by value ("pending"), matching the external schema."""
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    """Registry for every docsearch table; create_all_tables() uses its metadata."""


class UUIDMixin:
    """
    UUID v4 primary key named ``id``.

    Uuid maps to native UUID on PostgreSQL and CHAR(32) on SQLite.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


class TimestampMixin:
    """created_at set on insert, updated_at refreshed on every ORM update."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
