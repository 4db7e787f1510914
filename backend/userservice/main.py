"""User Service API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery — ExMA anti-pattern)
    - Global error handlers map UserServiceError → structured JSON responses
    - Database, repository stack and service built on startup via lifespan;
      the observer list is fixed from then on
    - Notifier client closed and engine disposed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Repository stack is SqlUserRepository wrapped by ObservedUserRepository: the
      service only sees the UserRepository Protocol
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from userservice.api.error_handlers import register_error_handlers
from userservice.api.request_context import register_request_context
from userservice.api.routes import health, users
from userservice.config import Settings, get_settings
from userservice.infrastructure.database import DatabaseSessionManager, init_db
from userservice.infrastructure.nsq_publisher import NSQPublisher
from userservice.infrastructure.observability import setup_logging
from userservice.infrastructure.observed_repository import ObservedUserRepository
from userservice.infrastructure.sql_user_repository import SqlUserRepository
from userservice.services.user_service import UserService

logger = logging.getLogger(__name__)


def build_user_service(
    db: DatabaseSessionManager, settings: Settings, *observers,
) -> UserService:
    """Compose SQL store → observed store → service."""
    repository = ObservedUserRepository(
        SqlUserRepository(db),
        *observers,
        notify_timeout_seconds=settings.notify_timeout_seconds,
    )
    return UserService(repository)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    observers = []
    if settings.notify_enabled:
        observers.append(NSQPublisher.for_address(
            settings.nsqd_http_address, settings.notify_timeout_seconds,
        ))
    app.state.user_service = build_user_service(db, settings, *observers)
    logger.info("User service API started")
    yield
    logger.info("User service API shutting down")
    for observer in observers:
        await observer.aclose()
    await db.dispose()


app = FastAPI(
    title="User Service API", version="1.0.0", lifespan=lifespan,
)

register_request_context(app)
register_error_handlers(app)

# Routes — explicit registration (ExMA: no convention-over-config)
app.include_router(health.status_router)
app.include_router(health.router)
app.include_router(users.router)
