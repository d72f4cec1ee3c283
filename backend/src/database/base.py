from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Timestamp factory shared by model defaults and services."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all database models."""
