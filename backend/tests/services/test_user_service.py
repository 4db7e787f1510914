"""User Service — derivation, lifecycle contract, and error reclassification.

Invariants:
    - create assigns id and truncated timestamps, replaces password by hash+salt
    - create conflict (duplicate generated id) -> InternalServiceError, never ConcurrencyError
    - update with a stale version -> ConcurrencyError; missing -> ResourceNotFoundError
    - update produces strictly increasing updated_at even with a frozen clock
    - update without password keeps the stored hash and salt
    - lists never carry hash or salt
    - expired timeout -> RequestCancelledError; on mutations it covers storage only

Design Decisions:
    - Clock, id and salt generators injected: no module globals patched
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from userservice.core.domain_types import ChangeKind, User
from userservice.core.errors import (
    ConcurrencyError,
    DatabaseError,
    InternalServiceError,
    InvalidParamsError,
    RequestCancelledError,
    ResourceNotFoundError,
)
from userservice.core.passwords import hash_password
from userservice.infrastructure.observed_repository import ObservedUserRepository
from userservice.services.user_service import UserService

from tests.fakes import FailingUserRepository, InMemoryUserRepository

MOCKED_NOW = datetime(2020, 1, 2, 3, 4, 5, 1_002, tzinfo=timezone.utc)
MOCKED_UUID = "123e4567-e89b-12d3-a456-426614174000"
MOCKED_SALT = "0123456789abcdef0123456789abcdef"


class _MillisecondRepository(InMemoryUserRepository):
    timestamp_resolution = timedelta(milliseconds=1)


class _TickingClock:
    """Advances one second per reading."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class _SlowRepository(InMemoryUserRepository):
    async def get(self, user_id):
        await asyncio.sleep(3600)


def _service(repo, clock=lambda: MOCKED_NOW, ids=None) -> UserService:
    ids = ids or (lambda: MOCKED_UUID)
    return UserService(
        repo, clock=clock, id_factory=ids, salt_factory=lambda: MOCKED_SALT,
    )


def _new_user(**overrides) -> User:
    fields = dict(
        first_name="Jane", last_name="Doe", name="j",
        email="jane@example.com", password="s3cretpass", country="es",
    )
    fields.update(overrides)
    return User(**fields)


def _edit(user: User, **changes) -> User:
    """What a client sends back on PUT: the read record with edits, no hash/salt."""
    return replace(user, password_hash="", password_salt="", **changes)


# ─── create ──────────────────────────────────────────────────────

async def test_create_fills_service_owned_fields():
    repo = InMemoryUserRepository()

    got = await _service(repo).create(_new_user())

    assert got.id == MOCKED_UUID
    assert got.created_at == MOCKED_NOW
    assert got.updated_at == MOCKED_NOW
    assert got.password == ""
    assert got.password_salt == MOCKED_SALT
    assert got.password_hash == hash_password("s3cretpass", MOCKED_SALT)
    assert repo.rows[MOCKED_UUID] == got


async def test_create_truncates_to_store_resolution():
    repo = _MillisecondRepository()

    got = await _service(repo).create(_new_user())

    assert got.created_at == MOCKED_NOW.replace(microsecond=1_000)
    assert got.updated_at == got.created_at


async def test_create_validates_before_touching_store():
    repo = InMemoryUserRepository()

    with pytest.raises(InvalidParamsError):
        await _service(repo).create(_new_user(country="esp"))

    assert repo.calls == []


async def test_create_duplicate_generated_id_is_internal_error():
    repo = InMemoryUserRepository()
    svc = _service(repo)
    await svc.create(_new_user())

    with pytest.raises(InternalServiceError) as exc:
        await svc.create(_new_user(name="other"))

    assert not isinstance(exc.value, ConcurrencyError)
    assert exc.value.http_status == 500
    assert repo.rows[MOCKED_UUID].name == "j"


async def test_create_propagates_infrastructure_errors_unchanged():
    error = DatabaseError("down", "execute")
    with pytest.raises(DatabaseError) as exc:
        await _service(FailingUserRepository(error)).create(_new_user())
    assert exc.value is error


# ─── update ──────────────────────────────────────────────────────

async def test_create_update_delete_scenario():
    repo = InMemoryUserRepository()
    svc = _service(repo, clock=_TickingClock(MOCKED_NOW))

    created = await svc.create(_new_user(name="j"))
    t0 = created.updated_at
    assert created.created_at == t0

    edit = _edit(created, name="k")
    updated = await svc.update(created.id, replace(edit))
    t1 = updated.updated_at
    assert t1 > t0
    assert updated.created_at == t0
    assert (await svc.get(created.id)).updated_at == t1

    with pytest.raises(ConcurrencyError):
        await svc.update(created.id, replace(edit))

    await svc.delete(created.id)
    with pytest.raises(ResourceNotFoundError):
        await svc.get(created.id)
    with pytest.raises(ResourceNotFoundError):
        await svc.delete(created.id)


async def test_update_is_strictly_monotonic_with_frozen_clock():
    repo = InMemoryUserRepository()
    svc = _service(repo)
    current = await svc.create(_new_user())

    seen = [current.updated_at]
    for i in range(3):
        current = await svc.update(current.id, _edit(current, name=f"n{i}"))
        seen.append(current.updated_at)

    assert all(a < b for a, b in zip(seen, seen[1:]))


async def test_update_sets_id_from_path():
    repo = InMemoryUserRepository()
    svc = _service(repo)
    created = await svc.create(_new_user())

    got = await svc.update(created.id, _edit(created, id="ignored"))

    assert got.id == MOCKED_UUID
    assert "ignored" not in repo.rows


async def test_update_without_password_keeps_stored_hash():
    repo = InMemoryUserRepository()
    svc = _service(repo)
    created = await svc.create(_new_user())

    got = await svc.update(created.id, _edit(created, first_name="Other"))

    assert got.password_hash == created.password_hash
    assert got.password_salt == created.password_salt
    assert repo.rows[created.id].password_hash == created.password_hash


async def test_update_with_password_rehashes():
    repo = InMemoryUserRepository()
    svc = UserService(
        repo, clock=lambda: MOCKED_NOW, id_factory=lambda: MOCKED_UUID,
        salt_factory=iter(["salt-one", "salt-two"]).__next__,
    )
    created = await svc.create(_new_user())

    got = await svc.update(created.id, _edit(created, password="brandnewpass"))

    assert got.password == ""
    assert got.password_salt == "salt-two"
    assert got.password_hash == hash_password("brandnewpass", "salt-two")


async def test_update_missing_user_is_not_found():
    svc = _service(InMemoryUserRepository())
    stale = _new_user(
        password="", created_at=MOCKED_NOW, updated_at=MOCKED_NOW,
    )

    with pytest.raises(ResourceNotFoundError):
        await svc.update("ghost", stale)


async def test_update_with_wrong_created_at_is_conflict():
    repo = InMemoryUserRepository()
    svc = _service(repo)
    created = await svc.create(_new_user())

    with pytest.raises(ConcurrencyError):
        await svc.update(
            created.id,
            _edit(created, created_at=created.created_at - timedelta(days=1)),
        )


async def test_update_validates_before_touching_store():
    repo = InMemoryUserRepository()
    with pytest.raises(InvalidParamsError):
        await _service(repo).update("u1", _new_user(password=""))
    assert repo.calls == []


# ─── reads ───────────────────────────────────────────────────────

async def test_get_returns_hash_and_salt():
    repo = InMemoryUserRepository()
    svc = _service(repo)
    created = await svc.create(_new_user())

    got = await svc.get(created.id)

    assert got.password_hash == created.password_hash


async def test_lists_strip_hash_and_salt_without_touching_store():
    repo = InMemoryUserRepository()
    ids = iter(["b", "a", "c"])
    svc = _service(repo, ids=lambda: next(ids))
    await svc.create(_new_user(country="es"))
    await svc.create(_new_user(country="es"))
    await svc.create(_new_user(country="fr"))

    all_users = await svc.list_all()
    spanish = await svc.list_by_country("es")

    assert [u.id for u in all_users] == ["a", "b", "c"]
    assert [u.id for u in spanish] == ["a", "b"]
    assert all(u.password_hash == "" and u.password_salt == "" for u in all_users)
    assert repo.rows["a"].password_hash != ""


async def test_list_empty():
    assert await _service(InMemoryUserRepository()).list_all() == []


# ─── cancellation ────────────────────────────────────────────────

async def test_expired_timeout_is_request_cancelled():
    svc = _service(_SlowRepository())

    with pytest.raises(RequestCancelledError) as exc:
        await svc.get("u1", timeout=0.01)

    assert exc.value.http_status == 499
    assert exc.value.operation == "get"


class _SlowWriteRepository(InMemoryUserRepository):
    """Writes that only finish if the caller's timeout allows an hour."""

    async def create(self, user, timeout=None):
        await asyncio.wait_for(asyncio.sleep(3600), timeout)
        await super().create(user)


class _SlowNotifier:
    def __init__(self):
        self.calls = []

    async def notify(self, kind, user_id, user=None):
        await asyncio.sleep(0.2)
        self.calls.append(kind)


async def test_expired_storage_timeout_on_create_is_request_cancelled():
    repo = _SlowWriteRepository()

    with pytest.raises(RequestCancelledError) as exc:
        await _service(repo).create(_new_user(), timeout=0.01)

    assert exc.value.operation == "create"
    assert repo.rows == {}


async def test_committed_create_is_not_cancelled_by_slow_notifier():
    repo, notifier = InMemoryUserRepository(), _SlowNotifier()
    observed = ObservedUserRepository(repo, notifier, notify_timeout_seconds=2.0)

    got = await _service(observed).create(_new_user(), timeout=0.05)

    assert got.id == MOCKED_UUID
    assert list(repo.rows) == [MOCKED_UUID]
    assert notifier.calls == [ChangeKind.CREATED]
