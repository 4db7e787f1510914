"""Alembic environment — applies user table migrations through the async driver.

Design Decisions:
    - DATABASE_URL wins over alembic.ini so migrations hit the same database the
      service is configured for; both go through config.to_async_url
    - NullPool: a migration run is one connection, then the process exits
    - userservice.models imported for its side effect of filling Base.metadata
"""

import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context

from userservice.config import to_async_url
from userservice.db.base import Base
import userservice.models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _target_url() -> str:
    return to_async_url(
        os.environ.get("DATABASE_URL") or config.get_main_option("sqlalchemy.url"),
    )


def _configure_and_run(**options) -> None:
    context.configure(target_metadata=Base.metadata, **options)
    with context.begin_transaction():
        context.run_migrations()


async def _run_online() -> None:
    engine = create_async_engine(_target_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_with_connection)
    finally:
        await engine.dispose()


def _run_with_connection(connection: Connection) -> None:
    _configure_and_run(connection=connection)


if context.is_offline_mode():
    _configure_and_run(
        url=_target_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    asyncio.run(_run_online())
