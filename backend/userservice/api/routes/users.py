"""Users Resource — CRUD over /v1/users, delegating to UserService.

Invariants:
    - Routes never contain business logic: bind, call the service, render
    - Service errors are raised, not caught: api/error_handlers.py maps them to status codes
    - Every call is bounded by settings.request_timeout_seconds
    - user_id (and country for filtered lists) bound to the log context of the request

Design Decisions:
    - UserService read from app.state: built once in the lifespan, shared by all
      requests (ADR: stateless service object, pool owned by the repository)
    - DELETE returns 204: the deletion is synchronous and committed when we answer
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status

from userservice.config import get_settings
from userservice.infrastructure.observability import bind_log_context
from userservice.schemas.user import UserPayload, UserResponse
from userservice.services.user_service import UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/users", tags=["users"])


def get_user_service(request: Request) -> UserService:
    """FastAPI dependency for the process-wide UserService."""
    return request.app.state.user_service


def _timeout() -> float | None:
    return get_settings().request_timeout_seconds


@router.post(
    "", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserPayload, svc: UserService = Depends(get_user_service),
):
    """Create a user. id, timestamps and password hash are assigned by the service."""
    user = await svc.create(body.to_user(), timeout=_timeout())
    with bind_log_context(user_id=user.id):
        logger.info("Successfully created user")
    return UserResponse.from_user(user)


@router.get("", response_model=list[UserResponse])
async def list_users(
    country: str | None = Query(None),
    svc: UserService = Depends(get_user_service),
):
    """List all users ordered by id, optionally restricted to one country."""
    if country:
        with bind_log_context(country=country):
            users = await svc.list_by_country(country, timeout=_timeout())
    else:
        users = await svc.list_all(timeout=_timeout())
    return [UserResponse.from_user(u) for u in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str, svc: UserService = Depends(get_user_service),
):
    with bind_log_context(user_id=user_id):
        user = await svc.get(user_id, timeout=_timeout())
    return UserResponse.from_user(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserPayload,
    svc: UserService = Depends(get_user_service),
):
    """Update a user. body.updated_at must be the version last read by the client."""
    with bind_log_context(user_id=user_id):
        user = await svc.update(user_id, body.to_user(), timeout=_timeout())
        logger.info("Successfully updated user")
    return UserResponse.from_user(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str, svc: UserService = Depends(get_user_service),
):
    with bind_log_context(user_id=user_id):
        await svc.delete(user_id, timeout=_timeout())
    return Response(status_code=status.HTTP_204_NO_CONTENT)
