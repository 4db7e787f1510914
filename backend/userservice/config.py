"""Service Configuration — every tunable of the user service, read from the environment.

Invariants:
    - One Settings instance per process (get_settings is lru_cached); tests set env vars
      before the first call
    - Field names map 1:1 to upper-case env vars (DATABASE_URL, NSQD_HTTP_ADDRESS, ...)
    - database_url is always an async driver URL once validated

Design Decisions:
    - pydantic-settings over os.environ lookups: typed coercion of bools/floats and .env support
    - Defaults run the service locally with no infrastructure: SQLite file on disk,
      nsqd expected at the docker-compose hostname
    - request_timeout_seconds=None disables the per-call deadline entirely
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SYNC_TO_ASYNC_SCHEMES = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def to_async_url(url: str) -> str:
    """Swap a plain driver scheme for its async counterpart; other URLs unchanged."""
    for sync_prefix, async_prefix in _SYNC_TO_ASYNC_SCHEMES.items():
        if url.startswith(sync_prefix):
            return async_prefix + url[len(sync_prefix):]
    return url


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Storage
    database_url: str = "sqlite+aiosqlite:///./userservice.db"
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Change notifications (nsqd HTTP publish endpoint)
    nsqd_http_address: str = "nsqd:4151"
    notify_enabled: bool = True
    notify_timeout_seconds: float = 2.0

    # Per-call deadline applied by the HTTP layer
    request_timeout_seconds: float | None = 10.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def _async_driver(cls, v):
        return to_async_url(v) if isinstance(v, str) else v


@lru_cache
def get_settings() -> Settings:
    return Settings()
