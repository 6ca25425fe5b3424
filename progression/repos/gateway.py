"""Event Store Gateway: the only I/O boundary the projectors see.

Every call carries a deadline (GATEWAY_TIMEOUT_SECONDS) and backend
exceptions are translated into engine errors:

  asyncio/builtin TimeoutError            -> GatewayTimeout
  SQLAlchemyError, RedisError, OSError    -> StorageUnavailable
  EngineError (NotFound, InvalidInput...) -> passed through unchanged

No retries happen here; the caller retries.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from progression.core.errors import (
    EngineError,
    GatewayTimeout,
    NotFound,
    StorageUnavailable,
)
from progression.core.metrics import GATEWAY_FAILURES
from progression.models.activity import TimeTrackingRecord
from progression.models.career import CareerPath
from progression.models.course import Course, Lesson, LessonCompletion
from progression.models.learner import Enrollment, Learner, StreakState
from progression.models.problem import Problem, ProblemAttempt
from progression.repos.content_repo import ContentRepo
from progression.repos.event_store import EventStore, StreakMutation

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 5.0


class Gateway:
    def __init__(
        self,
        events: EventStore,
        content: ContentRepo,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._events = events
        self._content = content
        self._timeout = timeout_seconds

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except EngineError:
            raise
        # TimeoutError is an OSError subclass, so it must be caught first.
        except TimeoutError:
            GATEWAY_FAILURES.labels(operation=operation, reason="timeout").inc()
            logger.error(
                "Gateway call timed out after %.2fs",
                self._timeout,
                extra={"operation": operation},
            )
            raise GatewayTimeout(f"{operation} timed out", operation=operation) from None
        except (SQLAlchemyError, RedisError, OSError) as exc:
            GATEWAY_FAILURES.labels(operation=operation, reason="unavailable").inc()
            logger.exception("Gateway call failed", extra={"operation": operation})
            raise StorageUnavailable(f"{operation} failed", operation=operation) from exc

    # --- learners ---

    async def read_learner(self, learner_id: str) -> Learner | None:
        return await self._call("read_learner", self._events.get_learner(learner_id))

    async def ensure_learner(self, learner: Learner) -> Learner:
        return await self._call("ensure_learner", self._events.ensure_learner(learner))

    async def set_selected_career(self, learner_id: str, career_slug: str | None) -> None:
        await self._call(
            "set_selected_career",
            self._events.set_selected_career(learner_id, career_slug),
        )

    # --- lesson completions ---

    async def record_lesson_completion(
        self, learner_id: str, lesson_id: str, course_id: str, at: int, completed: bool = True
    ) -> bool:
        """Upsert on (learner_id, lesson_id). Returns True when the stored state changed."""
        return await self._call(
            "record_lesson_completion",
            self._events.record_lesson_completion(
                learner_id, lesson_id, course_id, at, completed
            ),
        )

    async def record_lesson_view(
        self, learner_id: str, lesson_id: str, course_id: str, at: int
    ) -> bool:
        """Marks a lesson opened; never downgrades a completed row."""
        return await self._call(
            "record_lesson_view",
            self._events.record_lesson_view(learner_id, lesson_id, course_id, at),
        )

    async def delete_lesson_completions(self, learner_id: str, course_id: str) -> int:
        return await self._call(
            "delete_lesson_completions",
            self._events.delete_lesson_completions(learner_id, course_id),
        )

    async def list_completions(
        self, learner_id: str, course_id: str | None = None
    ) -> list[LessonCompletion]:
        return await self._call(
            "list_completions", self._events.list_completions(learner_id, course_id)
        )

    # --- time tracking ---

    async def append_time(
        self,
        learner_id: str,
        tracked_day: str,
        duration_seconds: int,
        lesson_id: str | None = None,
        *,
        created_at: int | None = None,
    ) -> TimeTrackingRecord:
        """Append one record. Never merges with existing rows for the same day."""
        record = TimeTrackingRecord.new(
            learner_id=learner_id,
            tracked_day=tracked_day,
            duration_seconds=duration_seconds,
            lesson_id=lesson_id,
            created_at=created_at,
        )
        await self._call("append_time", self._events.append_time(record))
        return record

    async def list_time(
        self, learner_id: str, from_day: str, to_day: str
    ) -> list[tuple[str, int]]:
        return await self._call(
            "list_time", self._events.list_time(learner_id, from_day, to_day)
        )

    # --- streak state ---

    async def read_streak_state(self, learner_id: str) -> StreakState:
        return await self._call(
            "read_streak_state", self._events.read_streak_state(learner_id)
        )

    async def write_streak_state(
        self, learner_id: str, patch: dict[str, Any]
    ) -> StreakState:
        return await self._call(
            "write_streak_state", self._events.write_streak_state(learner_id, patch)
        )

    async def update_streak_state(
        self, learner_id: str, mutate: StreakMutation
    ) -> StreakState:
        return await self._call(
            "update_streak_state", self._events.update_streak_state(learner_id, mutate)
        )

    # --- problem attempts ---

    async def lock_learner(self, learner_id: str) -> None:
        """Serialize attempt writers for one learner until the transaction ends."""
        await self._call("lock_learner", self._events.lock_learner(learner_id))

    async def record_problem_attempt(self, attempt: ProblemAttempt) -> None:
        await self._call(
            "record_problem_attempt", self._events.record_problem_attempt(attempt)
        )

    async def list_attempts(self, learner_id: str, problem_id: str) -> list[ProblemAttempt]:
        return await self._call(
            "list_attempts", self._events.list_attempts(learner_id, problem_id)
        )

    async def list_learner_attempts(self, learner_id: str) -> list[ProblemAttempt]:
        return await self._call(
            "list_learner_attempts", self._events.list_learner_attempts(learner_id)
        )

    # --- enrollments ---

    async def enroll(self, learner_id: str, course_id: str, at: int) -> bool:
        return await self._call("enroll", self._events.enroll(learner_id, course_id, at))

    async def list_enrollments(self, learner_id: str) -> list[Enrollment]:
        return await self._call(
            "list_enrollments", self._events.list_enrollments(learner_id)
        )

    # --- authored content ---

    async def get_course(self, course_id: str) -> Course | None:
        return await self._call("get_course", self._content.get_course(course_id))

    async def get_course_by_slug(self, slug: str) -> Course | None:
        return await self._call("get_course_by_slug", self._content.get_course_by_slug(slug))

    async def list_courses(self) -> list[Course]:
        return await self._call("list_courses", self._content.list_courses())

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        return await self._call("get_lesson", self._content.get_lesson(lesson_id))

    async def get_lesson_course(self, lesson_id: str) -> Course:
        """Parent course of a lesson; NotFound when either is missing."""
        lesson = await self.get_lesson(lesson_id)
        if lesson is None:
            raise NotFound("lesson not found", lesson_id=lesson_id)
        course = await self.get_course(lesson.course_id)
        if course is None:
            raise NotFound("course not found", course_id=lesson.course_id)
        return course

    async def get_career_by_slug(self, slug: str) -> CareerPath | None:
        return await self._call(
            "get_career_by_slug", self._content.get_career_by_slug(slug)
        )

    async def read_career_content(self, career_id: str) -> CareerPath:
        """Skills, contributions and required course slugs of one career."""
        career = await self._call("read_career_content", self._content.get_career(career_id))
        if career is None:
            raise NotFound("career not found", career_id=career_id)
        return career

    async def get_problem(self, problem_id: str) -> Problem | None:
        return await self._call("get_problem", self._content.get_problem(problem_id))

    async def list_problems(self, course_id: str | None = None) -> list[Problem]:
        return await self._call("list_problems", self._content.list_problems(course_id))
