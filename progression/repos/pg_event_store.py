"""PostgreSQL implementation of EventStore."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from progression.core.errors import InvalidInput, NotFound
from progression.db.tables import (
    CourseEnrollmentRow,
    LessonProgressRow,
    LessonTimeTrackingRow,
    ProblemAttemptRow,
    ProfileRow,
)
from progression.models.activity import TimeTrackingRecord
from progression.models.course import LessonCompletion
from progression.models.learner import Enrollment, Learner, StreakState
from progression.models.problem import ProblemAttempt
from progression.repos.event_store import StreakMutation


class PgEventStore:
    """Satisfies the EventStore Protocol using PostgreSQL via SQLAlchemy.

    The session is request-scoped; commit/rollback belongs to the caller
    (see progression.db.engine.get_async_session).
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- learners ---

    async def get_learner(self, learner_id: str) -> Learner | None:
        stmt = select(ProfileRow).where(ProfileRow.id == learner_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_learner(row)

    async def ensure_learner(self, learner: Learner) -> Learner:
        stmt = (
            insert(ProfileRow)
            .values(
                id=learner.id,
                display_name=learner.display_name,
                avatar_url=learner.avatar_url,
                selected_career=learner.selected_career,
                **_streak_columns(learner.streak),
            )
            .on_conflict_do_nothing(index_elements=[ProfileRow.id])
        )
        await self._session.execute(stmt)
        existing = await self.get_learner(learner.id)
        if existing is None:
            raise NotFound("learner vanished after insert", learner_id=learner.id)
        return existing

    async def set_selected_career(self, learner_id: str, career_slug: str | None) -> None:
        stmt = (
            update(ProfileRow)
            .where(ProfileRow.id == learner_id)
            .values(selected_career=career_slug)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise NotFound("learner not found", learner_id=learner_id)

    # --- lesson completions ---

    async def record_lesson_completion(
        self, learner_id: str, lesson_id: str, course_id: str, at: int, completed: bool = True
    ) -> bool:
        stmt = insert(LessonProgressRow).values(
            user_id=learner_id,
            lesson_id=lesson_id,
            course_id=course_id,
            completed=completed,
            updated_at=at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LessonProgressRow.user_id, LessonProgressRow.lesson_id],
            set_={"completed": stmt.excluded.completed, "updated_at": stmt.excluded.updated_at},
            # Only flip rows whose state actually changes, so rowcount reports a change.
            where=LessonProgressRow.completed.is_distinct_from(stmt.excluded.completed),
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def record_lesson_view(
        self, learner_id: str, lesson_id: str, course_id: str, at: int
    ) -> bool:
        stmt = (
            insert(LessonProgressRow)
            .values(
                user_id=learner_id,
                lesson_id=lesson_id,
                course_id=course_id,
                completed=False,
                updated_at=at,
            )
            .on_conflict_do_nothing(
                index_elements=[LessonProgressRow.user_id, LessonProgressRow.lesson_id]
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def delete_lesson_completions(self, learner_id: str, course_id: str) -> int:
        stmt = delete(LessonProgressRow).where(
            LessonProgressRow.user_id == learner_id,
            LessonProgressRow.course_id == course_id,
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def list_completions(
        self, learner_id: str, course_id: str | None = None
    ) -> list[LessonCompletion]:
        stmt = select(LessonProgressRow).where(LessonProgressRow.user_id == learner_id)
        if course_id is not None:
            stmt = stmt.where(LessonProgressRow.course_id == course_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            LessonCompletion(
                learner_id=row.user_id,
                lesson_id=row.lesson_id,
                course_id=row.course_id,
                completed=row.completed,
                updated_at=row.updated_at,
            )
            for row in rows
        ]

    # --- time tracking ---

    async def append_time(self, record: TimeTrackingRecord) -> None:
        self._session.add(
            LessonTimeTrackingRow(
                id=record.id,
                user_id=record.learner_id,
                tracked_date=record.tracked_day,
                lesson_id=record.lesson_id,
                duration_seconds=record.duration_seconds,
                created_at=record.created_at,
            )
        )
        await self._session.flush()

    async def list_time(
        self, learner_id: str, from_day: str, to_day: str
    ) -> list[tuple[str, int]]:
        stmt = select(
            LessonTimeTrackingRow.tracked_date, LessonTimeTrackingRow.duration_seconds
        ).where(
            LessonTimeTrackingRow.user_id == learner_id,
            LessonTimeTrackingRow.tracked_date >= from_day,
            LessonTimeTrackingRow.tracked_date <= to_day,
        )
        result = await self._session.execute(stmt)
        return [(day, seconds) for day, seconds in result.all()]

    # --- streak state ---

    async def read_streak_state(self, learner_id: str) -> StreakState:
        learner = await self.get_learner(learner_id)
        if learner is None:
            raise NotFound("learner not found", learner_id=learner_id)
        return learner.streak

    async def write_streak_state(
        self, learner_id: str, patch: dict[str, Any]
    ) -> StreakState:
        return await self.update_streak_state(learner_id, lambda s: s.merged(patch))

    async def update_streak_state(
        self, learner_id: str, mutate: StreakMutation
    ) -> StreakState:
        # Row lock held until the request transaction commits.
        stmt = (
            select(ProfileRow).where(ProfileRow.id == learner_id).with_for_update()
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise NotFound("learner not found", learner_id=learner_id)
        updated = mutate(_row_to_streak(row))
        updated.check()
        for column, value in _streak_columns(updated).items():
            setattr(row, column, value)
        await self._session.flush()
        return updated

    # --- problem attempts ---

    async def lock_learner(self, learner_id: str) -> None:
        # Held until the request transaction commits, past the LearnerLock release.
        stmt = select(ProfileRow.id).where(ProfileRow.id == learner_id).with_for_update()
        if (await self._session.execute(stmt)).scalar_one_or_none() is None:
            raise NotFound("learner not found", learner_id=learner_id)

    async def record_problem_attempt(self, attempt: ProblemAttempt) -> None:
        self._session.add(
            ProblemAttemptRow(
                id=attempt.id,
                user_id=attempt.learner_id,
                problem_id=attempt.problem_id,
                attempt_index=attempt.attempt_index,
                submitted_output=attempt.submitted_output,
                selected_options=list(attempt.selected_options),
                match_mode=attempt.match_mode,
                is_correct=attempt.is_correct,
                score=attempt.score,
                xp_awarded=attempt.xp_awarded,
                submitted_at=attempt.submitted_at,
                revealed=attempt.revealed,
                solution_viewed=attempt.solution_viewed,
            )
        )
        try:
            await self._session.flush()
        except IntegrityError as exc:
            # Duplicate id or (learner, problem, attempt_index): attempts are never rewritten.
            raise InvalidInput("attempt already recorded", attempt_id=str(attempt.id)) from exc

    async def list_attempts(self, learner_id: str, problem_id: str) -> list[ProblemAttempt]:
        stmt = (
            select(ProblemAttemptRow)
            .where(
                ProblemAttemptRow.user_id == learner_id,
                ProblemAttemptRow.problem_id == problem_id,
            )
            .order_by(ProblemAttemptRow.attempt_index)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_attempt(row) for row in rows]

    async def list_learner_attempts(self, learner_id: str) -> list[ProblemAttempt]:
        stmt = (
            select(ProblemAttemptRow)
            .where(ProblemAttemptRow.user_id == learner_id)
            .order_by(ProblemAttemptRow.problem_id, ProblemAttemptRow.attempt_index)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_attempt(row) for row in rows]

    # --- enrollments ---

    async def enroll(self, learner_id: str, course_id: str, at: int) -> bool:
        stmt = (
            insert(CourseEnrollmentRow)
            .values(user_id=learner_id, course_id=course_id, enrolled_at=at)
            .on_conflict_do_nothing(
                index_elements=[CourseEnrollmentRow.user_id, CourseEnrollmentRow.course_id]
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_enrollments(self, learner_id: str) -> list[Enrollment]:
        stmt = (
            select(CourseEnrollmentRow)
            .where(CourseEnrollmentRow.user_id == learner_id)
            .order_by(CourseEnrollmentRow.enrolled_at)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            Enrollment(
                learner_id=row.user_id, course_id=row.course_id, enrolled_at=row.enrolled_at
            )
            for row in rows
        ]


def _streak_columns(state: StreakState) -> dict[str, Any]:
    return {
        "current_streak": state.current_streak,
        "max_streak": state.max_streak,
        "streak_freezes_available": state.streak_freezes_available,
        "streak_freezes_used": state.streak_freezes_used,
        "last_freeze_date": state.last_freeze_day,
        "last_activity_date": state.last_activity_day,
    }


def _row_to_streak(row: ProfileRow) -> StreakState:
    return StreakState(
        current_streak=row.current_streak,
        max_streak=row.max_streak,
        streak_freezes_available=row.streak_freezes_available,
        streak_freezes_used=row.streak_freezes_used,
        last_freeze_day=row.last_freeze_date,
        last_activity_day=row.last_activity_date,
    )


def _row_to_learner(row: ProfileRow) -> Learner:
    return Learner(
        id=row.id,
        display_name=row.display_name or "",
        avatar_url=row.avatar_url,
        selected_career=row.selected_career,
        streak=_row_to_streak(row),
    )


def _row_to_attempt(row: ProblemAttemptRow) -> ProblemAttempt:
    return ProblemAttempt(
        id=row.id,
        learner_id=row.user_id,
        problem_id=row.problem_id,
        attempt_index=row.attempt_index,
        submitted_output=row.submitted_output,
        selected_options=tuple(row.selected_options) if row.selected_options else (),
        match_mode=row.match_mode,
        is_correct=row.is_correct,
        score=row.score,
        xp_awarded=row.xp_awarded,
        submitted_at=row.submitted_at,
        revealed=row.revealed,
        solution_viewed=row.solution_viewed,
    )
