import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from tenure.db.redis import get_redis

logger = structlog.get_logger(__name__)

router = APIRouter()

SERVICE = "tenure-discover"


@router.get("/health")
async def health_check(request: Request):
    """Liveness: the process is up and the coordinator finished loading."""
    coordinator = getattr(request.app.state, "coordinator", None)
    loaded = bool(coordinator is not None and coordinator.loaded)
    return {"status": "healthy", "service": SERVICE, "loaded": loaded}


@router.get("/ready")
async def readiness_check():
    """Readiness check - verifies Redis is reachable."""
    checks = {"redis": False}

    try:
        await get_redis().ping()
        checks["redis"] = True
    except Exception as e:
        logger.error("redis_health_check_failed", error=str(e), error_type=type(e).__name__)

    all_healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={"status": "ready" if all_healthy else "degraded", "checks": checks},
    )
