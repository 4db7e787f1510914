"""API test fixtures — ASGI client over the real app with a test service stack.

Invariants:
    - app.state.user_service replaced per test (the lifespan does not run under ASGITransport)
    - db_manager singleton patched for the readiness probe
    - Observers are in-process recorders; no nsqd involved
"""

import pytest
from httpx import ASGITransport, AsyncClient

import userservice.infrastructure.database as db_module
from userservice.config import get_settings
from userservice.main import app, build_user_service

from tests.fakes import RecordingObserver


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
async def client(db_manager, observer):
    """FastAPI test client wired to a fresh database."""
    original_manager = db_module.db_manager
    db_module.db_manager = db_manager
    app.state.user_service = build_user_service(
        db_manager, get_settings(), observer,
    )

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    db_module.db_manager = original_manager
    del app.state.user_service
