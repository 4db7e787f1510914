"""Boundary Protocols — contracts between the service and the persistence shell.

Invariants:
    - The service NEVER imports a concrete repository — only these Protocol types
    - A UserRepository raises exactly RecordNotFoundError, RecordConflictError,
      or an opaque infrastructure error; it never retries internally
    - ChangeObserver.notify raises on failure; callers decide whether that matters
    - Implementations provided by shell via dependency injection (main.py lifespan)

Design Decisions:
    - Protocol over ABC: structural subtyping, lets decorators stack without
      inheriting from the thing they wrap (ADR: ExMA anti-pattern)
    - Store-level errors are plain exceptions, not UserServiceError: they are
      an internal vocabulary the service must translate, never an HTTP outcome
"""

from datetime import datetime, timedelta
from typing import Protocol

from userservice.core.domain_types import ChangeKind, CountryCode, User, UserId


class RecordNotFoundError(Exception):
    """No record stored under the requested id."""

    def __init__(self, user_id: str):
        super().__init__(f"user {user_id!r} not found")
        self.user_id = user_id


class RecordConflictError(Exception):
    """Primary key collision on create, or stale timestamps on update."""

    def __init__(self, user_id: str, reason: str):
        super().__init__(f"conflict on user {user_id!r}: {reason}")
        self.user_id = user_id
        self.reason = reason


class UserRepository(Protocol):
    """Contract for user persistence — implemented by shell.

    Mutations take an optional `timeout` (seconds) that bounds the storage
    transaction only. On expiry the transaction is rolled back and
    asyncio.TimeoutError is raised; anything a decorator does after the
    wrapped store returned (notifying, caching) is outside that deadline.
    """

    timestamp_resolution: timedelta

    async def create(self, user: User, timeout: float | None = None) -> None:
        """Insert a user that already carries id, created_at and updated_at.

        Raises RecordConflictError if the id is taken.
        """
        ...

    async def update(
        self, user: User, prev_updated_at: datetime, timeout: float | None = None,
    ) -> None:
        """Overwrite the stored user iff its timestamps match what the caller saw.

        Raises RecordNotFoundError if absent, RecordConflictError if
        created_at or the stored updated_at differ from the ones presented.
        """
        ...

    async def get(self, user_id: UserId) -> User: ...
    async def delete(self, user_id: UserId, timeout: float | None = None) -> None: ...
    async def list_all(self) -> list[User]: ...
    async def list_by_country(self, country: CountryCode) -> list[User]: ...


class ChangeObserver(Protocol):
    """Contract for change notification — implemented by shell."""

    async def notify(
        self, kind: ChangeKind, user_id: UserId, user: User | None = None,
    ) -> None: ...
