from __future__ import annotations

import asyncio

import pytest

from progression.core.errors import InvalidInput, NotFound
from progression.models.learner import DEFAULT_STREAK_FREEZES, Learner, StreakState
from progression.models.problem import ProblemAttempt
from progression.repos.event_store import InMemoryEventStore


def _attempt(index: int, **overrides) -> ProblemAttempt:
    fields = dict(
        learner_id="learner-1",
        problem_id="p-1",
        attempt_index=index,
        submitted_output="x",
        selected_options=(),
        match_mode="strict",
        is_correct=False,
        score=0.0,
        xp_awarded=0,
        submitted_at=1_700_000_000 + index,
    )
    fields.update(overrides)
    return ProblemAttempt.new(**fields)


def test_ensure_learner_keeps_existing_record() -> None:
    store = InMemoryEventStore()

    async def _run():
        await store.ensure_learner(Learner(id="l", display_name="First"))
        await store.set_selected_career("l", "backend-developer")
        return await store.ensure_learner(Learner(id="l", display_name="Second"))

    learner = asyncio.run(_run())
    assert learner.display_name == "First"
    assert learner.selected_career == "backend-developer"
    assert learner.streak.streak_freezes_available == DEFAULT_STREAK_FREEZES


def test_select_career_for_unknown_learner() -> None:
    with pytest.raises(NotFound):
        asyncio.run(InMemoryEventStore().set_selected_career("ghost", "x"))


def test_completion_is_recorded_once() -> None:
    store = InMemoryEventStore()

    async def _run():
        first = await store.record_lesson_completion("l", "py-1", "c-py", 1)
        second = await store.record_lesson_completion("l", "py-1", "c-py", 2)
        return first, second, await store.list_completions("l")

    first, second, rows = asyncio.run(_run())
    assert (first, second) == (True, False)
    assert len(rows) == 1
    assert rows[0].updated_at == 1


def test_delete_completions_is_scoped_to_course() -> None:
    store = InMemoryEventStore()

    async def _run():
        await store.record_lesson_completion("l", "py-1", "c-py", 1)
        await store.record_lesson_completion("l", "py-2", "c-py", 1)
        await store.record_lesson_completion("l", "ds-1", "c-ds", 1)
        await store.record_lesson_completion("other", "py-1", "c-py", 1)
        removed = await store.delete_lesson_completions("l", "c-py")
        return removed, await store.list_completions("l"), await store.list_completions("other")

    removed, mine, theirs = asyncio.run(_run())
    assert removed == 2
    assert [c.lesson_id for c in mine] == ["ds-1"]
    assert len(theirs) == 1


def test_streak_patch_rejects_unknown_fields() -> None:
    store = InMemoryEventStore()

    async def _run():
        await store.ensure_learner(Learner(id="l"))
        with pytest.raises(InvalidInput):
            await store.write_streak_state("l", {"xp": 10})
        return await store.read_streak_state("l")

    assert asyncio.run(_run()) == StreakState()


def test_failed_mutation_leaves_state_unchanged() -> None:
    store = InMemoryEventStore()

    def explode(state: StreakState) -> StreakState:
        raise InvalidInput("nope")

    async def _run():
        await store.ensure_learner(Learner(id="l"))
        await store.write_streak_state("l", {"current_streak": 2, "max_streak": 5})
        with pytest.raises(InvalidInput):
            await store.update_streak_state("l", explode)
        return await store.read_streak_state("l")

    state = asyncio.run(_run())
    assert (state.current_streak, state.max_streak) == (2, 5)


def test_negative_freezes_rejected() -> None:
    store = InMemoryEventStore()

    async def _run():
        await store.ensure_learner(Learner(id="l"))
        await store.write_streak_state("l", {"streak_freezes_available": -1})

    with pytest.raises(InvalidInput):
        asyncio.run(_run())


def test_attempts_are_append_only_and_ordered() -> None:
    store = InMemoryEventStore()
    second, first = _attempt(2), _attempt(1)

    async def _run():
        await store.record_problem_attempt(second)
        await store.record_problem_attempt(first)
        await store.record_problem_attempt(_attempt(1, problem_id="p-2"))
        with pytest.raises(InvalidInput):
            await store.record_problem_attempt(first)
        return await store.list_attempts("learner-1", "p-1")

    attempts = asyncio.run(_run())
    assert [a.attempt_index for a in attempts] == [1, 2]


def test_enrollments_in_enrollment_order() -> None:
    store = InMemoryEventStore()

    async def _run():
        await store.enroll("l", "c-web", 20)
        await store.enroll("l", "c-py", 10)
        again = await store.enroll("l", "c-py", 30)
        return again, await store.list_enrollments("l")

    again, enrollments = asyncio.run(_run())
    assert again is False
    assert [e.course_id for e in enrollments] == ["c-py", "c-web"]


def test_attempt_index_is_unique_per_learner_and_problem() -> None:
    store = InMemoryEventStore()

    async def _run():
        await store.record_problem_attempt(_attempt(1))
        # Different id, same (learner, problem, attempt_index).
        with pytest.raises(InvalidInput):
            await store.record_problem_attempt(_attempt(1, is_correct=True))
        await store.record_problem_attempt(_attempt(1, learner_id="learner-2"))
        return await store.list_learner_attempts("learner-1")

    attempts = asyncio.run(_run())
    assert [(a.problem_id, a.attempt_index, a.is_correct) for a in attempts] == [
        ("p-1", 1, False)
    ]


def test_view_then_complete_then_uncomplete() -> None:
    store = InMemoryEventStore()

    async def _run():
        viewed = await store.record_lesson_view("l", "py-1", "c-py", 1)
        viewed_again = await store.record_lesson_view("l", "py-1", "c-py", 2)
        completed = await store.record_lesson_completion("l", "py-1", "c-py", 3)
        view_after = await store.record_lesson_view("l", "py-1", "c-py", 4)
        undone = await store.record_lesson_completion("l", "py-1", "c-py", 5, completed=False)
        rows = await store.list_completions("l", "c-py")
        return (viewed, viewed_again, completed, view_after, undone), rows

    flags, rows = asyncio.run(_run())
    assert flags == (True, False, True, False, True)
    assert [(r.lesson_id, r.completed, r.updated_at) for r in rows] == [("py-1", False, 5)]


def test_lock_learner_requires_a_learner() -> None:
    with pytest.raises(NotFound):
        asyncio.run(InMemoryEventStore().lock_learner("ghost"))
