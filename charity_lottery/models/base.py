"""SQLAlchemy declarative base and shared column types."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class TokenAmount(TypeDecorator):
    """Non-negative integer amount in the smallest currency unit.

    Stored as a decimal string so values beyond 64 bits survive every backend.
    """

    impl = String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):  # type: ignore[no-untyped-def]
        if value is None:
            return None
        amount = int(value)
        if amount < 0:
            raise ValueError("Token amounts cannot be negative")
        return str(amount)

    def process_result_value(self, value, dialect):  # type: ignore[no-untyped-def]
        if value is None:
            return None
        return int(value)


class Base(DeclarativeBase):
    """Declarative base for ORM models."""

    pass
