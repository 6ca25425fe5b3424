from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from progression.api.activity import router as activity_router
from progression.api.career import router as career_router
from progression.api.dashboard import router as dashboard_router
from progression.api.errors import engine_error_handler
from progression.api.health import router as health_router
from progression.api.metrics_endpoint import router as metrics_router
from progression.api.problems import router as problems_router
from progression.api.progress import router as progress_router
from progression.api.streak import router as streak_router
from progression.core.config import SETTINGS
from progression.core.errors import EngineError
from progression.core.logging import setup_logging
from progression.db.engine import lifespan_db
from progression.db.redis import lifespan_redis
from progression.middleware.metrics import MetricsMiddleware
from progression.middleware.request_context import (
    RequestContextMiddleware,
    install_context_filter,
)

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
install_context_filter()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_db():
        async with lifespan_redis():
            yield


app = FastAPI(
    title="progression-engine",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_exception_handler(EngineError, engine_error_handler)

# Last added runs first: RequestContext -> Metrics -> route handler
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(dashboard_router)
app.include_router(progress_router)
app.include_router(activity_router)
app.include_router(streak_router)
app.include_router(career_router)
app.include_router(problems_router)

logger.info(
    "progression-engine started  env=%s reference_tz=%s port=%d",
    SETTINGS.app_env,
    SETTINGS.reference_tz,
    SETTINGS.port,
)
