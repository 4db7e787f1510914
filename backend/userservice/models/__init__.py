"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Models are persistence shapes only; the domain record is core.domain_types.User

Design Decisions:
    - One file per entity for locality (ADR: ExMA max 3-4 files to understand a feature)
    - All models imported here so Base.metadata is populated before create_all
      or an Alembic autogenerate runs (ADR: standard SQLAlchemy pattern)
"""

from userservice.models.user import UserRow  # noqa: F401
