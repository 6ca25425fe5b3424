"""Per-learner lock around read-modify-write of learner state.

A recompute and a freeze for the same learner must not interleave their
read and write halves, and neither may two problem submissions that
derive XP and the attempt index from the same history. The streak engine
and the problem evaluator hold this lock for those sections.

InMemoryLearnerLock serializes coroutines inside one process. Behind a
load balancer with several API processes, RedisLearnerLock extends the
same guarantee across processes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

import redis.asyncio as aioredis
from redis.exceptions import LockError, RedisError

from progression.core.errors import GatewayTimeout, StorageUnavailable
from progression.db.redis import redis_pool

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 5


class LearnerLock(Protocol):
    def hold(self, learner_id: str) -> AbstractAsyncContextManager[None]: ...


class InMemoryLearnerLock:
    """asyncio.Lock per learner, dropped once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, learner_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(learner_id, asyncio.Lock())
        self._users[learner_id] = self._users.get(learner_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users.get(learner_id, 1) - 1
            if remaining:
                self._users[learner_id] = remaining
            else:
                self._users.pop(learner_id, None)
                self._locks.pop(learner_id, None)

    def reset(self) -> None:
        self._locks.clear()
        self._users.clear()


class RedisLearnerLock:
    """Redis lock with a short lease; a crashed holder frees it on expiry."""

    _PREFIX = "lock:learner:"

    def __init__(self, redis: aioredis.Redis) -> None:  # type: ignore[type-arg]
        self._redis = redis

    @asynccontextmanager
    async def hold(self, learner_id: str) -> AsyncIterator[None]:
        lock = self._redis.lock(
            f"{self._PREFIX}{learner_id}",
            timeout=LOCK_TIMEOUT_SECONDS,
            blocking_timeout=LOCK_TIMEOUT_SECONDS,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            raise StorageUnavailable("lock backend unavailable") from exc
        if not acquired:
            raise GatewayTimeout("timed out waiting for learner lock", learner_id=learner_id)
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Lease expired while we held it; someone else may own it now.
                logger.warning(
                    "Learner lock expired before release",
                    extra={"learner_id": learner_id},
                )


if redis_pool is not None:
    learner_lock: LearnerLock = RedisLearnerLock(redis_pool)
else:
    learner_lock = InMemoryLearnerLock()
