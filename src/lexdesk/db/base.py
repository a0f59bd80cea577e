"""
lexdesk.db.base

SQLAlchemy declarative base.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def parse_id(value: str | uuid.UUID) -> uuid.UUID | None:
    """Route ids arrive as strings; anything that is not a UUID matches no row."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def utcnow_naive() -> datetime:
    # Naive UTC is what the DB stores; `db.auth_store` re-attaches tzinfo on the way out.
    return datetime.now(tz=UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
