from __future__ import annotations

import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from progression.core.errors import (
    GatewayTimeout,
    InvalidInput,
    NotFound,
    StorageUnavailable,
)
from progression.models.learner import Learner
from progression.repos.content_repo import InMemoryContentRepo
from progression.repos.event_store import InMemoryEventStore
from progression.repos.gateway import Gateway


class SlowEventStore(InMemoryEventStore):
    async def get_learner(self, learner_id: str) -> Learner | None:
        await asyncio.sleep(1)
        return None


class BrokenEventStore(InMemoryEventStore):
    def __init__(self, exc: Exception) -> None:
        super().__init__()
        self.exc = exc

    async def list_time(self, learner_id: str, from_day: str, to_day: str):
        raise self.exc


def test_slow_backend_times_out() -> None:
    gateway = Gateway(SlowEventStore(), InMemoryContentRepo(), timeout_seconds=0.01)
    with pytest.raises(GatewayTimeout):
        asyncio.run(gateway.read_learner("learner-1"))


def test_timeout_is_a_storage_error() -> None:
    assert issubclass(GatewayTimeout, StorageUnavailable)


@pytest.mark.parametrize(
    "exc",
    [
        OSError("connection reset"),
        OperationalError("SELECT 1", {}, Exception("db down")),
        RedisConnectionError("redis down"),
    ],
)
def test_backend_failures_become_storage_unavailable(exc: Exception) -> None:
    gateway = Gateway(BrokenEventStore(exc), InMemoryContentRepo())
    with pytest.raises(StorageUnavailable) as excinfo:
        asyncio.run(gateway.list_time("learner-1", "2026-03-01", "2026-03-11"))
    assert not isinstance(excinfo.value, GatewayTimeout)
    assert excinfo.value.context == {"operation": "list_time"}


def test_engine_errors_pass_through() -> None:
    gateway = Gateway(InMemoryEventStore(), InMemoryContentRepo())
    with pytest.raises(NotFound):
        asyncio.run(gateway.read_streak_state("missing"))


def test_unknown_lesson_is_not_found(content: InMemoryContentRepo) -> None:
    gateway = Gateway(InMemoryEventStore(), content)
    with pytest.raises(NotFound):
        asyncio.run(gateway.get_lesson_course("nope"))


def test_lesson_resolves_to_its_course(content: InMemoryContentRepo) -> None:
    gateway = Gateway(InMemoryEventStore(), content)
    course = asyncio.run(gateway.get_lesson_course("ds-3"))
    assert course.slug == "data-structures"


def test_read_career_content(content: InMemoryContentRepo) -> None:
    gateway = Gateway(InMemoryEventStore(), content)
    career = asyncio.run(gateway.read_career_content("car-be"))
    assert [s.skill_name for s in career.skills] == ["Programming", "APIs"]
    with pytest.raises(NotFound):
        asyncio.run(gateway.read_career_content("car-none"))


def test_append_time_never_merges() -> None:
    events = InMemoryEventStore()
    gateway = Gateway(events, InMemoryContentRepo())

    async def _run():
        a = await gateway.append_time("learner-1", "2026-03-11", 10)
        b = await gateway.append_time("learner-1", "2026-03-11", 20)
        return a, b, await gateway.list_time("learner-1", "2026-03-11", "2026-03-11")

    a, b, rows = asyncio.run(_run())
    assert a.id != b.id
    assert rows == [("2026-03-11", 10), ("2026-03-11", 20)]


def test_write_streak_state_validates_patch() -> None:
    events = InMemoryEventStore()
    gateway = Gateway(events, InMemoryContentRepo())

    async def _run():
        await gateway.ensure_learner(Learner(id="learner-1"))
        await gateway.write_streak_state("learner-1", {"max_streak": 3, "current_streak": 3})
        return await gateway.read_streak_state("learner-1")

    state = asyncio.run(_run())
    assert (state.current_streak, state.max_streak) == (3, 3)

    with pytest.raises(InvalidInput):
        asyncio.run(gateway.write_streak_state("learner-1", {"current_streak": 9}))
