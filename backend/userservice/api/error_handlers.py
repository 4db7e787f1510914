"""Error Handlers — map exceptions escaping a route to the JSON error envelope.

Invariants:
    - UserServiceError → its own http_status and to_response() body
    - 4xx outcomes (including REQUEST_CANCELLED 499) logged at INFO, 5xx at ERROR
    - Every failure log carries user_id when the error or the route path names one;
      route-level log context is already released when these handlers run
    - RequestValidationError (unparseable body, bad datetime) → 400 with per-field details
    - Any other exception → 500 INTERNAL_ERROR, driver or stack details never leak

Design Decisions:
    - Three layers registered separately: domain, validation, catch-all (ADR: ExMA import fan-out < 10)
    - Malformed bodies share the 400 status with service-side INVALID_PARAMS but keep
      their own code, so clients can tell a parse failure from a rule violation
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from userservice.core.errors import ErrorCategory, ErrorSeverity, UserServiceError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UserServiceError, _on_service_error)
    app.add_exception_handler(RequestValidationError, _on_invalid_body)
    app.add_exception_handler(Exception, _on_unexpected_error)


async def _on_service_error(request: Request, exc: UserServiceError):
    level = logging.ERROR if exc.http_status >= 500 else logging.INFO
    logger.log(
        level, f"{request.method} {request.url.path} failed: {exc.message}",
        extra={
            "error_code": exc.code,
            "user_id": exc.context.user_id or _path_user_id(request),
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def _on_invalid_body(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.info(
        f"Rejected body on {request.url.path}: {details}",
        extra={
            "error_code": "VALIDATION_ERROR",
            "user_id": _path_user_id(request),
        },
    )
    return _envelope(
        status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", "Invalid request data",
        ErrorCategory.VALIDATION, ErrorSeverity.ERROR, details=details,
    )


async def _on_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}",
        exc_info=exc,
        extra={
            "error_code": "INTERNAL_ERROR",
            "user_id": _path_user_id(request),
        },
    )
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR",
        "An unexpected error occurred",
        ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
    )


def _path_user_id(request: Request) -> str | None:
    return request.path_params.get("user_id")


def _envelope(
    http_status: int,
    code: str,
    message: str,
    category: ErrorCategory,
    severity: ErrorSeverity,
    details: list[dict] | None = None,
) -> JSONResponse:
    body = {
        "code": code,
        "message": message,
        "category": category.value,
        "severity": severity.value,
    }
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=http_status, content={"error": body})
