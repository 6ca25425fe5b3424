"""FastAPI dependencies: engine wiring and learner identity.

With DATABASE_URL set, each request gets an engine over a request-scoped
session (committed on success, rolled back on error). Without it, every
request shares the module-level in-memory stores, which is how dev and
the test suite run.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from progression.core.clock import Clock, SystemClock
from progression.core.config import SETTINGS
from progression.db.engine import async_session_factory
from progression.middleware.request_context import learner_id_var
from progression.models.learner import Learner
from progression.repos.content_repo import InMemoryContentRepo
from progression.repos.event_store import InMemoryEventStore
from progression.repos.pg_content_repo import PgContentRepo
from progression.repos.pg_event_store import PgEventStore
from progression.services import token_service
from progression.services.engine import Engine, build_engine
from progression.services.grader import GraderClient, HttpGraderClient
from progression.services.learner_lock import learner_lock

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

event_store = InMemoryEventStore()
content_repo = InMemoryContentRepo()
grader: GraderClient | None = (
    HttpGraderClient(SETTINGS.grader_url) if SETTINGS.grader_url else None
)
_system_clock = SystemClock()


def get_clock() -> Clock:
    """Overridden in tests with a FixedClock."""
    return _system_clock


def _engine(events, content, clock: Clock) -> Engine:
    return build_engine(
        events,
        content,
        clock=clock,
        zone=SETTINGS.reference_tz,
        timeout_seconds=SETTINGS.gateway_timeout_seconds,
        lock=learner_lock,
        grader=grader,
    )


async def get_engine(
    clock: Annotated[Clock, Depends(get_clock)],
) -> AsyncGenerator[Engine, None]:
    if async_session_factory is None:
        yield _engine(event_store, content_repo, clock)
        return
    async with async_session_factory() as session:
        try:
            yield _engine(PgEventStore(session), PgContentRepo(session), clock)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_learner(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    engine: Annotated[Engine, Depends(get_engine)],
) -> str:
    """Verify the bearer token and return its subject as the learner id.

    The learner record is created on first sight (first sign-in).
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        claims = token_service.decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    learner_id = str(claims["sub"])
    learner_id_var.set(learner_id)
    await engine.gateway.ensure_learner(
        Learner(id=learner_id, display_name=str(claims.get("name", "")))
    )
    return learner_id


LearnerId = Annotated[str, Depends(require_learner)]
EngineDep = Annotated[Engine, Depends(get_engine)]
