"""Translation of engine errors into HTTP responses.

Body shape: ``{"detail": <message>, "code": <stable error code>}``.
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from progression.core.errors import EngineError

logger = logging.getLogger(__name__)

STATUS_BY_CODE: dict[str, int] = {
    "storage_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "timeout": status.HTTP_503_SERVICE_UNAVAILABLE,
    "grader_unavailable": status.HTTP_503_SERVICE_UNAVAILABLE,
    "not_found": status.HTTP_404_NOT_FOUND,
    "already_frozen_today": status.HTTP_409_CONFLICT,
    "no_freezes_available": status.HTTP_409_CONFLICT,
    "problem_not_published": status.HTTP_403_FORBIDDEN,
    "reveal_not_allowed": status.HTTP_403_FORBIDDEN,
    "reveal_not_yet_allowed": status.HTTP_403_FORBIDDEN,
    "invalid_input": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "invalid_output_type": status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def status_for(exc: EngineError) -> int:
    return STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)
    headers = {"Retry-After": "1"} if status_code == 503 else None
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )
