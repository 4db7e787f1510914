"""Observed User Repository — decorates a UserRepository with change notifications.

Invariants:
    - The wrapped repository call runs first; if it raises, the error propagates and
      NO observer is called
    - After a successful create/update/delete, every observer is called once, in
      registration order
    - An observer failure (including its timeout) is logged as a WARNING and swallowed:
      it never changes the result, never stops the remaining observers, never retries
    - Reads (get, list_*) pass through and never notify
    - Observers run after the wrapped call returned, i.e. after commit, outside any lock
    - A mutation timeout is handed to the wrapped store and bounds only its
      transaction; notification time never turns a committed write into a timeout

Design Decisions:
    - Same Protocol as the wrapped repository: decorators stack (metrics, caching, ...)
      without the service or the SQL repository knowing (ADR: composition over inheritance)
    - Best-effort delivery: a crash between commit and notify drops the notification;
      the store is the source of truth, notifications are a convenience signal
    - asyncio.CancelledError is NOT swallowed: the mutation is already committed,
      but the caller asked to stop
"""

import asyncio
import logging
from datetime import datetime, timedelta

from userservice.core.domain_types import ChangeKind, User
from userservice.core.repository_protocols import ChangeObserver, UserRepository

logger = logging.getLogger(__name__)


class ObservedUserRepository:
    """UserRepository that announces committed mutations to observers."""

    def __init__(
        self,
        repository: UserRepository,
        *observers: ChangeObserver,
        notify_timeout_seconds: float | None = None,
    ):
        self._repository = repository
        self._observers = tuple(observers)
        self._notify_timeout = notify_timeout_seconds

    @property
    def timestamp_resolution(self) -> timedelta:
        return self._repository.timestamp_resolution

    async def create(self, user: User, timeout: float | None = None) -> None:
        await self._repository.create(user, timeout=timeout)
        await self._notify_all(ChangeKind.CREATED, user.id, user)

    async def update(
        self, user: User, prev_updated_at: datetime, timeout: float | None = None,
    ) -> None:
        await self._repository.update(user, prev_updated_at, timeout=timeout)
        await self._notify_all(ChangeKind.UPDATED, user.id, user)

    async def delete(self, user_id: str, timeout: float | None = None) -> None:
        await self._repository.delete(user_id, timeout=timeout)
        await self._notify_all(ChangeKind.DELETED, user_id, None)

    async def get(self, user_id: str) -> User:
        return await self._repository.get(user_id)

    async def list_all(self) -> list[User]:
        return await self._repository.list_all()

    async def list_by_country(self, country: str) -> list[User]:
        return await self._repository.list_by_country(country)

    async def _notify_all(
        self, kind: ChangeKind, user_id: str, user: User | None,
    ) -> None:
        for observer in self._observers:
            try:
                await asyncio.wait_for(
                    observer.notify(kind, user_id, user),
                    timeout=self._notify_timeout,
                )
            except Exception as e:
                observer_name = type(observer).__name__
                logger.warning(
                    f"Can't notify observer {observer_name} on {kind.value}: "
                    f"{e!r}",
                    extra={
                        "user_id": user_id,
                        "observer": observer_name,
                        "change_kind": kind.value,
                    },
                )
