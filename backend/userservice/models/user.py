"""User ORM — one row per user record, keyed by the service-generated id.

Invariants:
    - id is a String(36) primary key assigned by the service (never server-default)
    - created_at / updated_at have no ORM defaults: the service owns them
    - Timestamps round-trip as timezone-aware UTC regardless of backend
    - country is indexed for list_by_country

Design Decisions:
    - UTCDateTime stores naive UTC: SQLite drops tzinfo on DateTime(timezone=True),
      which would make equality checks on updated_at fail across backends
    - __tablename__ is "user", a reserved word on PostgreSQL; SQLAlchemy quotes it
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from userservice.db.base import Base


class UTCDateTime(TypeDecorator):
    """Aware UTC in Python, naive UTC in the database."""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class UserRow(Base):
    """Persisted user record."""
    __tablename__ = "user"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, default="",
    )
    password_salt: Mapped[str] = mapped_column(
        String(32), nullable=False, default="",
    )
    country: Mapped[str] = mapped_column(
        String(2), nullable=False, index=True,
    )
