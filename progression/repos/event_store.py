from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Any, Protocol

from progression.core.errors import InvalidInput, NotFound
from progression.models.activity import TimeTrackingRecord
from progression.models.course import LessonCompletion
from progression.models.learner import Enrollment, Learner, StreakState
from progression.models.problem import ProblemAttempt

StreakMutation = Callable[[StreakState], StreakState]


class EventStore(Protocol):
    async def get_learner(self, learner_id: str) -> Learner | None: ...
    async def ensure_learner(self, learner: Learner) -> Learner: ...
    async def set_selected_career(self, learner_id: str, career_slug: str | None) -> None: ...

    async def record_lesson_completion(
        self, learner_id: str, lesson_id: str, course_id: str, at: int, completed: bool = True
    ) -> bool: ...
    async def record_lesson_view(
        self, learner_id: str, lesson_id: str, course_id: str, at: int
    ) -> bool: ...
    async def delete_lesson_completions(self, learner_id: str, course_id: str) -> int: ...
    async def list_completions(
        self, learner_id: str, course_id: str | None = None
    ) -> list[LessonCompletion]: ...

    async def append_time(self, record: TimeTrackingRecord) -> None: ...
    async def list_time(
        self, learner_id: str, from_day: str, to_day: str
    ) -> list[tuple[str, int]]: ...

    async def read_streak_state(self, learner_id: str) -> StreakState: ...
    async def write_streak_state(
        self, learner_id: str, patch: dict[str, Any]
    ) -> StreakState: ...
    async def update_streak_state(
        self, learner_id: str, mutate: StreakMutation
    ) -> StreakState: ...

    async def lock_learner(self, learner_id: str) -> None: ...
    async def record_problem_attempt(self, attempt: ProblemAttempt) -> None: ...
    async def list_attempts(
        self, learner_id: str, problem_id: str
    ) -> list[ProblemAttempt]: ...
    async def list_learner_attempts(self, learner_id: str) -> list[ProblemAttempt]: ...

    async def enroll(self, learner_id: str, course_id: str, at: int) -> bool: ...
    async def list_enrollments(self, learner_id: str) -> list[Enrollment]: ...


class InMemoryEventStore:
    """Single-process store for dev and tests.

    Streak writes never await between read and write, so under one event
    loop they are as atomic as the row lock the Postgres store takes.
    """

    def __init__(self) -> None:
        self._learners: dict[str, Learner] = {}
        # (learner_id, lesson_id) -> completion
        self._completions: dict[tuple[str, str], LessonCompletion] = {}
        self._time: list[TimeTrackingRecord] = []
        self._attempts: list[ProblemAttempt] = []
        self._enrollments: dict[tuple[str, str], Enrollment] = {}

    # --- learners ---

    async def get_learner(self, learner_id: str) -> Learner | None:
        return self._learners.get(learner_id)

    async def ensure_learner(self, learner: Learner) -> Learner:
        return self._learners.setdefault(learner.id, learner)

    async def set_selected_career(self, learner_id: str, career_slug: str | None) -> None:
        learner = self._require(learner_id)
        self._learners[learner_id] = replace(learner, selected_career=career_slug)

    # --- lesson completions ---

    async def record_lesson_completion(
        self, learner_id: str, lesson_id: str, course_id: str, at: int, completed: bool = True
    ) -> bool:
        key = (learner_id, lesson_id)
        existing = self._completions.get(key)
        if existing is not None and existing.completed == completed:
            return False
        self._completions[key] = LessonCompletion(
            learner_id=learner_id,
            lesson_id=lesson_id,
            course_id=course_id,
            completed=completed,
            updated_at=at,
        )
        return True

    async def record_lesson_view(
        self, learner_id: str, lesson_id: str, course_id: str, at: int
    ) -> bool:
        key = (learner_id, lesson_id)
        if key in self._completions:
            return False
        self._completions[key] = LessonCompletion(
            learner_id=learner_id,
            lesson_id=lesson_id,
            course_id=course_id,
            completed=False,
            updated_at=at,
        )
        return True

    async def delete_lesson_completions(self, learner_id: str, course_id: str) -> int:
        doomed = [
            key
            for key, c in self._completions.items()
            if c.learner_id == learner_id and c.course_id == course_id
        ]
        for key in doomed:
            del self._completions[key]
        return len(doomed)

    async def list_completions(
        self, learner_id: str, course_id: str | None = None
    ) -> list[LessonCompletion]:
        return [
            c
            for c in self._completions.values()
            if c.learner_id == learner_id
            and (course_id is None or c.course_id == course_id)
        ]

    # --- time tracking ---

    async def append_time(self, record: TimeTrackingRecord) -> None:
        self._time.append(record)

    async def list_time(
        self, learner_id: str, from_day: str, to_day: str
    ) -> list[tuple[str, int]]:
        return [
            (r.tracked_day, r.duration_seconds)
            for r in self._time
            if r.learner_id == learner_id and from_day <= r.tracked_day <= to_day
        ]

    # --- streak state ---

    async def read_streak_state(self, learner_id: str) -> StreakState:
        return self._require(learner_id).streak

    async def write_streak_state(
        self, learner_id: str, patch: dict[str, Any]
    ) -> StreakState:
        return await self.update_streak_state(learner_id, lambda s: s.merged(patch))

    async def update_streak_state(
        self, learner_id: str, mutate: StreakMutation
    ) -> StreakState:
        learner = self._require(learner_id)
        # mutate may raise; the stored record is untouched in that case
        updated = mutate(learner.streak)
        updated.check()
        self._learners[learner_id] = replace(learner, streak=updated)
        return updated

    # --- problem attempts ---

    async def lock_learner(self, learner_id: str) -> None:
        # One event loop, and callers already hold the LearnerLock.
        self._require(learner_id)

    async def record_problem_attempt(self, attempt: ProblemAttempt) -> None:
        for existing in self._attempts:
            if existing.id == attempt.id or (
                existing.learner_id == attempt.learner_id
                and existing.problem_id == attempt.problem_id
                and existing.attempt_index == attempt.attempt_index
            ):
                raise InvalidInput("attempt already recorded", attempt_id=str(attempt.id))
        self._attempts.append(attempt)

    async def list_attempts(self, learner_id: str, problem_id: str) -> list[ProblemAttempt]:
        return sorted(
            (
                a
                for a in self._attempts
                if a.learner_id == learner_id and a.problem_id == problem_id
            ),
            key=lambda a: a.attempt_index,
        )

    async def list_learner_attempts(self, learner_id: str) -> list[ProblemAttempt]:
        return sorted(
            (a for a in self._attempts if a.learner_id == learner_id),
            key=lambda a: (a.problem_id, a.attempt_index),
        )

    # --- enrollments ---

    async def enroll(self, learner_id: str, course_id: str, at: int) -> bool:
        key = (learner_id, course_id)
        if key in self._enrollments:
            return False
        self._enrollments[key] = Enrollment(
            learner_id=learner_id, course_id=course_id, enrolled_at=at
        )
        return True

    async def list_enrollments(self, learner_id: str) -> list[Enrollment]:
        return sorted(
            (e for e in self._enrollments.values() if e.learner_id == learner_id),
            key=lambda e: e.enrolled_at,
        )

    def _require(self, learner_id: str) -> Learner:
        learner = self._learners.get(learner_id)
        if learner is None:
            raise NotFound("learner not found", learner_id=learner_id)
        return learner
