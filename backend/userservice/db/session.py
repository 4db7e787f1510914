"""Schema Helpers — create tables directly, outside of Alembic.

Invariants:
    - Meant for scripts and test fixtures
    - Production schema is owned by Alembic migrations (alembic/versions/)

Design Decisions:
    - Separate from infrastructure/database.py: the session manager never touches DDL
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from userservice.db.base import Base
import userservice.models  # noqa: F401


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table registered on Base.metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
