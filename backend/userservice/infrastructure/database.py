"""Database Session Manager — async engine, session factory and readiness probe for the user store.

Invariants:
    - A session that exits with an exception is rolled back before it is closed
    - SQLAlchemy exceptions that escape a repository surface as DatabaseError (core/errors.py),
      with the driver message kept in the log only
    - Exceptions a repository already translated (RecordNotFoundError, ...) pass through untouched
    - Pool sizing and pre-ping only on server databases; SQLite gets dialect defaults

Design Decisions:
    - Singleton db_manager assigned by init_db() in the lifespan, read by the readiness
      probe (ADR: no global import side effects)
    - expire_on_commit=False: a User built from a row stays readable after commit
    - One mapping table for driver failures instead of an except ladder, ordered
      subclass-first so the most specific entry wins
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from userservice.core.errors import DatabaseError

logger = logging.getLogger(__name__)

# (exception class, client-safe message, operation)
_FAILURE_KINDS: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "integrity constraint violated", "write"),
    (OperationalError, "database unreachable or busy", "connect"),
    (DBAPIError, "database driver rejected the statement", "execute"),
)


def engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict:
    """Engine kwargs appropriate for the backend behind `database_url`."""
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


def as_database_error(exc: SQLAlchemyError) -> DatabaseError:
    for kind, message, operation in _FAILURE_KINDS:
        if isinstance(exc, kind):
            return DatabaseError(message, operation)
    return DatabaseError("database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the engine for one database URL and hands out short-lived sessions."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url,
            **engine_options(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                error = as_database_error(e)
                logger.error(
                    f"{type(e).__name__} during {error.operation}: {e}",
                    extra={"error_code": error.code},
                )
                raise error from e

    async def health_check(self) -> bool:
        """True if a trivial query round-trips (readiness probe)."""
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Readiness query failed: {e!r}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager
