"""SQL User Repository — SQLAlchemy implementation of the UserRepository protocol.

Invariants:
    - create() detects id collisions from the engine's unique-violation error, never
      by pre-checking; any other integrity failure (NOT NULL, length) is a DatabaseError
    - update() is one transaction: lock row (FOR UPDATE) -> compare timestamps -> conditional write
    - update() writes with WHERE id AND updated_at = prev, so engines without row locks
      (SQLite) still get an atomic compare-and-swap
    - delete() detects absence from rowcount == 0, never by pre-checking
    - list_* results ordered by id ascending; empty list when nothing matches
    - Any failure inside a transaction rolls it back (session.begin() context), including
      the cancellation raised when a mutation's timeout expires
    - No retries: the caller decides

Design Decisions:
    - One session per call: each operation is its own atomic unit, there is no
      multi-call transaction API (ADR: request-scoped work only)
    - created_at is part of the compare: an id re-created after delete must not
      accept an update aimed at its previous incarnation
    - Duplicate keys recognised by SQLSTATE 23505 where the driver reports one
      (asyncpg), by SQLite's "UNIQUE constraint failed" message otherwise
"""

import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError

from userservice.core.domain_types import User
from userservice.core.repository_protocols import (
    RecordConflictError, RecordNotFoundError,
)
from userservice.infrastructure.database import (
    DatabaseSessionManager, as_database_error,
)
from userservice.models.user import UserRow

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_SQLSTATE = "23505"
_SQLITE_UNIQUE_VIOLATION = "UNIQUE constraint failed"

# Stored by value; everything except the identity columns.
_MUTABLE_COLUMNS = (
    "updated_at", "first_name", "last_name", "name", "email",
    "password_hash", "password_salt", "country",
)


def is_duplicate_key(error: IntegrityError) -> bool:
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    return _SQLITE_UNIQUE_VIOLATION in str(orig)


class SqlUserRepository:
    """UserRepository backed by a relational database."""

    timestamp_resolution = timedelta(microseconds=1)

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create(self, user: User, timeout: float | None = None) -> None:
        await asyncio.wait_for(self._insert(user), timeout=timeout)

    async def update(
        self, user: User, prev_updated_at: datetime, timeout: float | None = None,
    ) -> None:
        await asyncio.wait_for(
            self._compare_and_write(user, prev_updated_at), timeout=timeout,
        )

    async def delete(self, user_id: str, timeout: float | None = None) -> None:
        await asyncio.wait_for(self._delete(user_id), timeout=timeout)

    async def _insert(self, user: User) -> None:
        async with self._db.session() as session:
            try:
                async with session.begin():
                    session.add(_to_row(user))
                    await session.flush()
            except IntegrityError as e:
                if not is_duplicate_key(e):
                    error = as_database_error(e)
                    logger.error(
                        f"Integrity failure on insert: {e.orig}",
                        extra={"user_id": user.id, "error_code": error.code},
                    )
                    raise error from e
                logger.info(
                    f"Duplicate id on insert: {e.orig}",
                    extra={"user_id": user.id},
                )
                raise RecordConflictError(user.id, "id already exists") from e

    async def _compare_and_write(
        self, user: User, prev_updated_at: datetime,
    ) -> None:
        async with self._db.session() as session:
            async with session.begin():
                result = await session.execute(
                    select(UserRow.created_at, UserRow.updated_at)
                    .where(UserRow.id == user.id)
                    .with_for_update(),
                )
                current = result.one_or_none()
                if current is None:
                    raise RecordNotFoundError(user.id)

                if (
                    current.created_at != user.created_at
                    or current.updated_at != prev_updated_at
                ):
                    raise RecordConflictError(
                        user.id, "stored timestamps differ from the ones provided",
                    )

                written = await session.execute(
                    update(UserRow)
                    .where(UserRow.id == user.id)
                    .where(UserRow.updated_at == prev_updated_at)
                    .values(**{col: getattr(user, col) for col in _MUTABLE_COLUMNS})
                    .execution_options(synchronize_session=False),
                )
                if written.rowcount == 0:
                    raise RecordConflictError(
                        user.id, "row changed while updating",
                    )

    async def get(self, user_id: str) -> User:
        async with self._db.session() as session:
            row = await session.get(UserRow, user_id)
            if row is None:
                raise RecordNotFoundError(user_id)
            return _to_user(row)

    async def _delete(self, user_id: str) -> None:
        async with self._db.session() as session:
            async with session.begin():
                result = await session.execute(
                    delete(UserRow).where(UserRow.id == user_id)
                    .execution_options(synchronize_session=False),
                )
                if result.rowcount == 0:
                    raise RecordNotFoundError(user_id)

    async def list_all(self) -> list[User]:
        return await self._list(select(UserRow))

    async def list_by_country(self, country: str) -> list[User]:
        return await self._list(
            select(UserRow).where(UserRow.country == country),
        )

    async def _list(self, query) -> list[User]:
        async with self._db.session() as session:
            result = await session.execute(query.order_by(UserRow.id.asc()))
            return [_to_user(row) for row in result.scalars().all()]


def _to_row(user: User) -> UserRow:
    return UserRow(
        id=user.id,
        created_at=user.created_at,
        updated_at=user.updated_at,
        first_name=user.first_name,
        last_name=user.last_name,
        name=user.name,
        email=user.email,
        password_hash=user.password_hash,
        password_salt=user.password_salt,
        country=user.country,
    )


def _to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        first_name=row.first_name,
        last_name=row.last_name,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        password_salt=row.password_salt,
        country=row.country,
    )
