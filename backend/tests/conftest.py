"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Tests never reach a real nsqd or PostgreSQL
    - Every test that needs a database gets a fresh SQLite file under tmp_path

Design Decisions:
    - File-backed SQLite over :memory: — the in-memory pool shares one connection
      across sessions, which would hide the per-transaction isolation the
      concurrency tests rely on
"""

import os

import pytest

# Ensure tests don't accidentally talk to real infrastructure
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("NOTIFY_ENABLED", "false")
os.environ.setdefault("NSQD_HTTP_ADDRESS", "nsqd.invalid:4151")

from userservice.db.session import create_schema  # noqa: E402
from userservice.infrastructure.database import DatabaseSessionManager  # noqa: E402


@pytest.fixture
async def db_manager(tmp_path):
    """Session manager over a fresh, schema-initialized SQLite file."""
    manager = DatabaseSessionManager(
        f"sqlite+aiosqlite:///{tmp_path / 'users.db'}",
    )
    await create_schema(manager.engine)
    yield manager
    await manager.dispose()
