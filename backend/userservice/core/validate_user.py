"""User Validation — pure field checks run before any repository call.

Invariants:
    - validate_for_create / validate_for_update are PURE: raise or return None, never mutate
    - Service-owned fields (id, timestamps on create; hash/salt always) must arrive empty
    - MIN_PASSWORD_LENGTH (8) and MAX_FIELD_LENGTH (255) are single source of truth

Design Decisions:
    - Raise InvalidParamsError instead of returning a status dict: the service has no
      partial-success path, the first bad field aborts the request
    - Length bounds mirror the column sizes in models/user.py
"""

from userservice.core.domain_types import User
from userservice.core.errors import InvalidParamsError


MAX_FIELD_LENGTH: int = 255
MIN_PASSWORD_LENGTH: int = 8
COUNTRY_CODE_LENGTH: int = 2

_BOUNDED_FIELDS = ("first_name", "last_name", "name", "email")


def validate_for_create(user: User) -> None:
    """Reject a new user that is malformed or pre-fills service-owned fields."""
    _validate_common(user)
    if user.id:
        raise InvalidParamsError(
            "id is filled by the service and shouldn't be filled", "id",
        )
    if user.created_at is not None:
        raise InvalidParamsError(
            "created_at is filled by the service and shouldn't be filled",
            "created_at",
        )
    if user.updated_at is not None:
        raise InvalidParamsError(
            "updated_at is filled by the service and shouldn't be filled",
            "updated_at",
        )
    if len(user.password) < MIN_PASSWORD_LENGTH:
        raise InvalidParamsError(
            f"password should be set and have at least {MIN_PASSWORD_LENGTH} "
            f"characters, {len(user.password)} provided",
            "password",
        )


def validate_for_update(user: User) -> None:
    """Reject an update that is malformed or lacks the timestamps it was read with."""
    _validate_common(user)
    if user.created_at is None:
        raise InvalidParamsError("created_at should be provided", "created_at")
    if user.updated_at is None:
        raise InvalidParamsError("updated_at should be provided", "updated_at")
    if user.password and len(user.password) < MIN_PASSWORD_LENGTH:
        raise InvalidParamsError(
            f"if provided, password should have at least {MIN_PASSWORD_LENGTH} "
            f"characters, {len(user.password)} provided",
            "password",
        )


def _validate_common(user: User) -> None:
    for field_name in _BOUNDED_FIELDS:
        length = len(getattr(user, field_name))
        if length == 0 or length > MAX_FIELD_LENGTH:
            raise InvalidParamsError(
                f"{field_name} should have between 1 and {MAX_FIELD_LENGTH} "
                f"characters, provided {length}",
                field_name,
            )
    if len(user.country) != COUNTRY_CODE_LENGTH:
        raise InvalidParamsError(
            f"country should have exactly {COUNTRY_CODE_LENGTH} characters, "
            f"got {len(user.country)}",
            "country",
        )
    if user.password_hash or user.password_salt:
        raise InvalidParamsError(
            "password_hash and password_salt should be empty as they're set "
            "by the service",
            "password_hash",
        )
