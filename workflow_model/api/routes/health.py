"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database or the workflow engine is unreachable
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from workflow_model.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "workflow-model-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe: database and workflow engine connectivity."""
    db_ok = await database.db_manager.health_check() if database.db_manager else False
    workflow = getattr(request.app.state, "workflow", None)
    engine_ok = await workflow.health_check() if workflow is not None else False

    checks = {
        "database": "healthy" if db_ok else "unavailable",
        "workflow_engine": "healthy" if engine_ok else "unavailable",
    }
    if not (db_ok and engine_ok):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
