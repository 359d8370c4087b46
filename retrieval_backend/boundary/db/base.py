"""
SQLAlchemy declarative base and common mixins.

Provides base class for all ORM models and reusable mixins
for common fields (timestamps, UUIDs, insertion sequence).

Dependencies: sqlalchemy
System role: Foundation for all database models
"""

import threading
import time
import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes read back from backends without tz support.

    Args:
        value: Datetime loaded from the database

    Returns:
        datetime | None: Timezone-aware datetime (or None)
    """
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


_sequence_lock = threading.Lock()
_last_sequence = 0


def next_sequence() -> int:
    """
    Strictly increasing insertion counter for FIFO tie-breaking.

    Wall-clock nanoseconds, bumped past the previous value so rows created
    within the same clock tick keep their insertion order in this process.
    """
    global _last_sequence
    with _sequence_lock:
        candidate = time.time_ns()
        if candidate <= _last_sequence:
            candidate = _last_sequence + 1
        _last_sequence = candidate
        return candidate


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for ORM model registration.

    All database models inherit from this class to ensure they're
    registered with the metadata and included in table creation.
    """

    pass


class UUIDMixin:
    """
    Mixin providing UUID primary key to all models.

    Generates UUID v4 automatically on row creation. PostgreSQL stores
    as native UUID type; other backends fall back to CHAR(32).

    Attributes:
        id: UUID v4 primary key, auto-generated on insert
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )


class TimestampMixin:
    """
    Mixin providing automatic timestamp tracking to all models.

    created_at is set once on row creation and never changes.
    updated_at is refreshed on every update via onupdate hook.
    Both use UTC timezone for consistency across deployments.

    Attributes:
        created_at: Row creation timestamp (UTC, immutable)
        updated_at: Last modification timestamp (UTC, auto-updated)
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class SequenceMixin:
    """
    Mixin providing an insertion-order column.

    Used as the tie-breaker after created_at wherever rows are read in
    insertion order (job FIFO, event log).

    Attributes:
        sequence: Strictly increasing per-process insertion counter
    """

    sequence: Mapped[int] = mapped_column(
        BigInteger,
        default=next_sequence,
        nullable=False,
        index=True,
    )
