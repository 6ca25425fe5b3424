"""Liveness and readiness checks.

/health answers 200 whenever the process can respond and reports
dependency status in the body. /ready answers 503 while a configured
backing store is unreachable, so the load balancer stops routing here.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from progression.db.engine import engine
from progression.db.redis import redis_pool

router = APIRouter(tags=["health"])


async def _checks() -> dict[str, str]:
    checks: dict[str, str] = {}

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except (RedisError, OSError):
            checks["redis"] = "degraded"
    else:
        checks["redis"] = "not_configured"

    if engine is not None:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except (SQLAlchemyError, OSError):
            checks["database"] = "degraded"
    else:
        checks["database"] = "not_configured"

    return checks


@router.get("/health")
async def health() -> dict:
    checks = await _checks()
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    checks = await _checks()
    if "degraded" in checks.values():
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
