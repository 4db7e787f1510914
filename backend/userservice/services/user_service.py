"""User Service — record lifecycle, derivation, and error reclassification.

Invariants:
    - Validation runs before any repository call
    - The service assigns id, created_at and updated_at; the repository never does
    - Timestamps are truncated to repository.timestamp_resolution before they are stored
    - update() always produces an updated_at strictly greater than the one presented
    - RecordConflictError on create -> InternalServiceError (our id generator broke)
    - RecordConflictError on update -> ConcurrencyError (someone else wrote first)
    - RecordNotFoundError -> ResourceNotFoundError
    - Anything else propagates unchanged
    - An expired per-call timeout -> RequestCancelledError; the open transaction
      is rolled back. For mutations the timeout bounds the storage call only:
      once the write committed, a slow observer cannot turn it into a cancellation

Design Decisions:
    - Clock, id and salt generators injected through the constructor: tests pin them
      without patching module globals (ADR: explicit dependencies)
    - uuid1 ids: collisions are treated as a generator defect, not something to retry.
      That is a policy choice tied to the generator, revisit it if the generator changes
    - Password kept on update when none is supplied: we read the stored hash first;
      the compare-and-swap in the repository still rejects the write if the row moved
"""

import asyncio
import logging
import secrets
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from userservice.core.domain_types import User
from userservice.core.errors import (
    ConcurrencyError,
    ErrorContext,
    InternalServiceError,
    RequestCancelledError,
    ResourceNotFoundError,
)
from userservice.core.passwords import hash_password
from userservice.core.repository_protocols import (
    RecordConflictError, RecordNotFoundError, UserRepository,
)
from userservice.core.timestamps import next_updated_at, truncate
from userservice.core.validate_user import validate_for_create, validate_for_update

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def uuid1_str() -> str:
    return str(uuid.uuid1())


def random_salt() -> str:
    return secrets.token_hex(16)


class UserService:
    """Business operations over users, independent of transport and storage."""

    def __init__(
        self,
        repository: UserRepository,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = uuid1_str,
        salt_factory: Callable[[], str] = random_salt,
    ):
        self._repository = repository
        self._clock = clock
        self._id_factory = id_factory
        self._salt_factory = salt_factory

    async def create(self, user: User, timeout: float | None = None) -> User:
        """Validate, derive service-owned fields, and persist a new user.

        Mutates and returns `user`: the plaintext password is replaced by
        hash and salt, id and both timestamps are filled.
        """
        validate_for_create(user)
        self._replace_password_by_hash(user)

        now = truncate(self._clock(), self._repository.timestamp_resolution)
        user.id = self._id_factory()
        user.created_at = now
        user.updated_at = now

        try:
            await self._bounded(
                "create", self._repository.create(user, timeout=timeout),
            )
        except RecordConflictError:
            logger.error(
                "Generated a duplicated user id", extra={"user_id": user.id},
            )
            raise InternalServiceError(
                "we've generated a duplicated id",
                ErrorContext(user_id=user.id, operation="create"),
            )
        return user

    async def update(
        self, user_id: str, user: User, timeout: float | None = None,
    ) -> User:
        """Persist `user` under `user_id` if nobody wrote it since `user.updated_at`.

        `user.updated_at` is the version the caller last observed; on success it
        is replaced by the new version.
        """
        validate_for_update(user)
        user.id = user_id
        deadline = _deadline(timeout)

        try:
            if user.password:
                self._replace_password_by_hash(user)
            else:
                stored = await self._bounded(
                    "update", self._repository.get(user_id), _remaining(deadline),
                )
                user.password_hash = stored.password_hash
                user.password_salt = stored.password_salt

            expected_prior = user.updated_at
            user.updated_at = next_updated_at(
                self._clock(), expected_prior,
                self._repository.timestamp_resolution,
            )
            await self._bounded(
                "update",
                self._repository.update(
                    user, expected_prior, timeout=_remaining(deadline),
                ),
            )
        except RecordNotFoundError:
            raise ResourceNotFoundError(
                "User", user_id, ErrorContext(user_id=user_id, operation="update"),
            )
        except RecordConflictError:
            raise ConcurrencyError(
                f"User '{user_id}' was modified concurrently, re-read it and retry",
                ErrorContext(user_id=user_id, operation="update"),
            )
        return user

    async def get(self, user_id: str, timeout: float | None = None) -> User:
        try:
            return await self._bounded(
                "get", self._repository.get(user_id), timeout,
            )
        except RecordNotFoundError:
            raise ResourceNotFoundError(
                "User", user_id, ErrorContext(user_id=user_id, operation="get"),
            )

    async def delete(self, user_id: str, timeout: float | None = None) -> None:
        try:
            await self._bounded(
                "delete", self._repository.delete(user_id, timeout=timeout),
            )
        except RecordNotFoundError:
            raise ResourceNotFoundError(
                "User", user_id, ErrorContext(user_id=user_id, operation="delete"),
            )

    async def list_all(self, timeout: float | None = None) -> list[User]:
        users = await self._bounded(
            "list_all", self._repository.list_all(), timeout,
        )
        return _without_passwords(users)

    async def list_by_country(
        self, country: str, timeout: float | None = None,
    ) -> list[User]:
        users = await self._bounded(
            "list_by_country", self._repository.list_by_country(country), timeout,
        )
        return _without_passwords(users)

    def _replace_password_by_hash(self, user: User) -> None:
        user.password_salt = self._salt_factory()
        user.password_hash = hash_password(user.password, user.password_salt)
        user.password = ""

    @staticmethod
    async def _bounded(
        operation: str, call: Awaitable[T], timeout: float | None = None,
    ) -> T:
        """Await `call`; a timeout expiring here or inside the repository -> RequestCancelledError.

        Mutations hand their timeout to the repository rather than passing it
        here, so that observers notified after commit are not under the deadline.
        """
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError:
            raise RequestCancelledError(operation)


def _deadline(timeout: float | None) -> float | None:
    if timeout is None:
        return None
    return asyncio.get_running_loop().time() + timeout


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(deadline - asyncio.get_running_loop().time(), 0.0)


def _without_passwords(users: list[User]) -> list[User]:
    return [replace(u, password_hash="", password_salt="") for u in users]
