"""User Schemas — Pydantic models for the /v1/users wire format.

Invariants:
    - UserPayload accepts every field the service may reject, so the service (not
      Pydantic) owns the business rules and reports them as INVALID_PARAMS
    - Timestamps are RFC 3339; naive inputs are read as UTC
    - UserResponse renders timestamps with microsecond precision, the precision
      a client must present back on update

Design Decisions:
    - Mapping helpers live beside the schemas: routes stay thin (ADR: ExMA impureim sandwich)
"""

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator

from userservice.core.domain_types import User


class UserPayload(BaseModel):
    """Create / update request body."""
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

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_user(self) -> User:
        return User(**self.model_dump())


class UserResponse(BaseModel):
    """User as returned to clients."""
    id: str
    created_at: str
    updated_at: str
    first_name: str
    last_name: str
    name: str
    email: str
    password: str = ""
    password_hash: str = ""
    password_salt: str = ""
    country: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            created_at=_rfc3339(user.created_at),
            updated_at=_rfc3339(user.updated_at),
            first_name=user.first_name,
            last_name=user.last_name,
            name=user.name,
            email=user.email,
            password=user.password,
            password_hash=user.password_hash,
            password_salt=user.password_salt,
            country=user.country,
        )


def _rfc3339(moment: datetime | None) -> str:
    if moment is None:
        return ""
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")
