"""Request context middleware: request id, learner id, timing.

Both ids live in ContextVars so any log line emitted while serving a
request carries them, whichever module logs it. The learner id is set by
the auth dependency once the bearer token has been verified.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
learner_id_var: ContextVar[str] = ContextVar("learner_id", default="-")


class _RequestContextFilter(logging.Filter):
    """Attach request_id and learner_id to every record.

    An explicit ``extra={"learner_id": ...}`` wins over the context value.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        if not hasattr(record, "learner_id"):
            record.learner_id = learner_id_var.get("-")  # type: ignore[attr-defined]
        return True


def install_context_filter() -> None:
    """Add the filter to every root handler (filters on the root logger
    itself do not see records propagated from child loggers)."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if not any(isinstance(f, _RequestContextFilter) for f in handler.filters):
            handler.addFilter(_RequestContextFilter())


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)
        learner_id_var.set("-")

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        response.headers["X-Request-ID"] = req_id
        return response
