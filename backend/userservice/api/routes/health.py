"""Probes — process liveness and database readiness for load balancers and orchestrators.

Invariants:
    - GET /status: empty 200 whenever the process serves HTTP
    - GET /api/v1/health/: 200 with service identity (liveness)
    - GET /api/v1/health/ready: 200 only if the database answers, else 503 (readiness)
    - Probes never touch the user table or the notifier

Design Decisions:
    - /status kept bare for load balancers configured against the old path
    - db_manager read at call time from the module, not imported by value: it is
      assigned in the lifespan after this module loads
"""

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

import userservice.infrastructure.database as db_module

SERVICE_NAME = "userservice"
SERVICE_VERSION = "1.0.0"

status_router = APIRouter(tags=["health"])
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@status_router.get("/status")
async def status_probe():
    return Response(status_code=status.HTTP_200_OK)


@router.get("/")
async def liveness():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
    }


@router.get("/ready")
async def readiness():
    """503 until a database round-trip succeeds."""
    manager = db_module.db_manager
    if manager is None or not await manager.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
