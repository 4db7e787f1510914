"""Domain Types — the User record and the vocabulary around it.

Invariants:
    - UserId is an opaque string, immutable once assigned
    - Timestamps on User are timezone-aware UTC (or None before the service assigns them)
    - ChangeKind enumerates exactly the mutations that trigger notifications
    - User carries no persistence or transport concerns

Design Decisions:
    - NewType over wrapper classes: zero runtime cost, full type-checker support
    - Mutable dataclass: the service fills id/timestamps/hash on the instance it was given,
      then hands the same instance to the repository (ADR: mirrors the request lifecycle)
    - str Enums: serialize to JSON and topic names without custom encoders
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
CountryCode = NewType("CountryCode", str)   # ISO-3166 alpha-2


# ─── Enums ───────────────────────────────────────────────────────

class ChangeKind(str, Enum):
    """Mutations that are announced to observers after they commit."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


# ─── Records ─────────────────────────────────────────────────────

@dataclass
class User:
    """A user record. Business fields are opaque to the persistence core."""
    id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    first_name: str = ""
    last_name: str = ""
    name: str = ""
    email: str = ""
    password: str = ""
    password_hash: str = ""
    password_salt: str = ""
    country: str = ""
