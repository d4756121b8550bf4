from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check() -> dict:
    """Liveness probe: the process is up and serving requests."""

    return {"status": "ok"}


@router.get("/ready")
def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe: the in-memory stores exist and their sweepers run.

    Returns 503 until the application lifespan has started.
    """

    sweepers = getattr(request.app.state, "sweepers", [])
    checks = {sweeper.name: sweeper.running for sweeper in sweepers}
    ready = bool(checks) and all(checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if ready else "unavailable", "sweepers": checks},
    )
