from __future__ import annotations

import asyncio

import pytest

from progression.core.clock import FixedClock, shift_day
from progression.core.errors import AlreadyFrozenToday, InvalidInput, NoFreezesAvailable
from progression.models.learner import Learner
from progression.services.engine import Engine
from progression.services.streak import MAX_STREAK_DAYS, count_streak, next_milestone
from tests.conftest import TODAY

LEARNER = "learner-1"


async def _seed(engine: Engine, *days: str, seconds: int = 300) -> None:
    await engine.gateway.ensure_learner(Learner(id=LEARNER))
    for day in days:
        await engine.gateway.append_time(LEARNER, day, seconds)


def _day(offset: int) -> str:
    return shift_day(TODAY, offset)


def test_freeze_preserves_streak_through_idle_day(engine: Engine) -> None:
    async def _run():
        await _seed(engine, _day(-3), _day(-2), _day(-1))
        summary = await engine.streak.consume_freeze(LEARNER)
        with pytest.raises(AlreadyFrozenToday):
            await engine.streak.consume_freeze(LEARNER)
        return summary

    summary = asyncio.run(_run())
    assert summary.current == 4
    assert summary.max == 4
    assert summary.today_active is True
    assert summary.freezes_available == 1
    assert summary.freezes_used == 1
    assert summary.can_freeze_today is False
    assert summary.last_freeze_day == TODAY
    assert (summary.next_milestone, summary.milestone_progress) == (7, 57)


def test_consecutive_days_count_up(engine: Engine) -> None:
    async def _run():
        await _seed(engine, *(_day(-i) for i in range(5)))
        return await engine.streak.recompute(LEARNER)

    summary = asyncio.run(_run())
    assert summary.current == 5
    assert summary.state == "hot"
    assert summary.last_activity_day == TODAY


def test_gap_resets_streak(engine: Engine) -> None:
    async def _run():
        await _seed(engine, _day(-4), _day(-3), _day(-1), _day(0))
        return await engine.streak.recompute(LEARNER)

    assert asyncio.run(_run()).current == 2


def test_today_without_activity_is_a_grace_day(engine: Engine) -> None:
    async def _run():
        await _seed(engine, _day(-2), _day(-1))
        return await engine.streak.recompute(LEARNER)

    summary = asyncio.run(_run())
    assert summary.current == 2
    assert summary.today_active is False
    assert summary.can_freeze_today is True


def test_two_idle_days_break_the_streak(engine: Engine) -> None:
    async def _run():
        await _seed(engine, _day(-3), _day(-2))
        return await engine.streak.recompute(LEARNER)

    summary = asyncio.run(_run())
    assert summary.current == 0
    assert summary.state == "cold"


def test_recompute_is_idempotent(engine: Engine) -> None:
    async def _run():
        await _seed(engine, _day(-1), _day(0))
        first = await engine.streak.recompute(LEARNER)
        second = await engine.streak.recompute(LEARNER)
        return first, second

    first, second = asyncio.run(_run())
    assert first == second


def test_max_streak_survives_a_reset(engine: Engine) -> None:
    async def _run():
        await _seed(engine, _day(-6), _day(-5), _day(-4))
        await engine.streak.recompute(LEARNER, _day(-4))
        # Two idle days later, a fresh start.
        await engine.gateway.append_time(LEARNER, _day(-1), 60)
        return await engine.streak.recompute(LEARNER, _day(-1))

    summary = asyncio.run(_run())
    assert summary.current == 1
    assert summary.max == 3


def test_zero_second_rows_are_not_activity(engine: Engine) -> None:
    async def _run():
        await engine.gateway.ensure_learner(Learner(id=LEARNER))
        await engine.gateway.append_time(LEARNER, _day(0), 0)
        return await engine.streak.recompute(LEARNER)

    assert asyncio.run(_run()).current == 0


def test_record_time_appends_and_recomputes(engine: Engine) -> None:
    async def _run():
        await _seed(engine, _day(-1))
        first = await engine.streak.record_time(LEARNER, 120)
        second = await engine.streak.record_time(LEARNER, 30, "py-1")
        rows = await engine.gateway.list_time(LEARNER, TODAY, TODAY)
        return first, second, rows

    first, second, rows = asyncio.run(_run())
    assert first.current == 2
    assert second == first
    # Same-day records are appended, never merged.
    assert rows == [(TODAY, 120), (TODAY, 30)]


@pytest.mark.parametrize("duration", [0, -5, True, 1.5])
def test_record_time_rejects_bad_durations(engine: Engine, duration) -> None:
    async def _run():
        await engine.gateway.ensure_learner(Learner(id=LEARNER))
        await engine.streak.record_time(LEARNER, duration)

    with pytest.raises(InvalidInput):
        asyncio.run(_run())


def test_concurrent_freezes_consume_exactly_one(engine: Engine) -> None:
    async def _run():
        await _seed(engine, _day(-1))
        results = await asyncio.gather(
            engine.streak.consume_freeze(LEARNER),
            engine.streak.consume_freeze(LEARNER),
            return_exceptions=True,
        )
        state = await engine.gateway.read_streak_state(LEARNER)
        return results, state

    results, state = asyncio.run(_run())
    errors = [r for r in results if isinstance(r, BaseException)]
    assert len(errors) == 1
    assert isinstance(errors[0], AlreadyFrozenToday)
    assert state.streak_freezes_available == 1
    assert state.streak_freezes_used == 1


def test_no_freezes_left(engine: Engine, clock: FixedClock) -> None:
    async def _run():
        await _seed(engine)
        await engine.streak.consume_freeze(LEARNER)
        clock.advance(days=1)
        await engine.streak.consume_freeze(LEARNER)
        clock.advance(days=1)
        await engine.streak.consume_freeze(LEARNER)

    with pytest.raises(NoFreezesAvailable):
        asyncio.run(_run())


def test_failed_freeze_leaves_state_untouched(engine: Engine) -> None:
    async def _run():
        await _seed(engine)
        await engine.gateway.write_streak_state(LEARNER, {"streak_freezes_available": 0})
        before = await engine.gateway.read_streak_state(LEARNER)
        with pytest.raises(NoFreezesAvailable):
            await engine.streak.consume_freeze(LEARNER)
        return before, await engine.gateway.read_streak_state(LEARNER)

    before, after = asyncio.run(_run())
    assert before == after


def test_streak_is_capped() -> None:
    today = "2026-03-11"
    daily = {shift_day(today, -i): 60 for i in range(MAX_STREAK_DAYS + 30)}
    assert count_streak(daily, today, None) == MAX_STREAK_DAYS


def test_freeze_day_counts_as_active() -> None:
    daily = {"2026-03-09": 60}
    assert count_streak(daily, "2026-03-10", "2026-03-10") == 2


@pytest.mark.parametrize(
    ("streak", "milestone"),
    [(0, 7), (6, 7), (7, 14), (29, 30), (90, 180), (364, 365), (365, 395), (400, 430)],
)
def test_next_milestone(streak: int, milestone: int) -> None:
    assert next_milestone(streak) == milestone


def test_fresh_summary_points_at_first_milestone(engine: Engine) -> None:
    async def _run():
        await _seed(engine)
        return await engine.streak.recompute(LEARNER)

    summary = asyncio.run(_run())
    assert (summary.next_milestone, summary.milestone_progress) == (7, 0)
