"""Course Progress Projector (C3).

Stateless: every read recomputes from lesson-progress rows, the course's
published lesson set and the learner's problem attempts.

A lesson-progress row means the lesson was opened; its ``completed`` flag
says whether it was finished. Only published lessons accept new rows.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Collection, Iterable, Sequence

from progression.core.clock import Clock
from progression.core.errors import NotFound
from progression.models.course import Course, LessonCompletion
from progression.models.problem import Problem, ProblemAttempt
from progression.models.views import CourseProgress
from progression.repos.gateway import Gateway

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round() is banker's)."""
    return int(math.floor(value + 0.5))


def solved_problem_ids(attempts: Iterable[ProblemAttempt]) -> frozenset[str]:
    return frozenset(a.problem_id for a in attempts if a.is_correct and not a.revealed)


def project_course_progress(
    course: Course,
    completed_lesson_ids: Iterable[str],
    *,
    viewed_lesson_ids: Iterable[str] = (),
    problems: Sequence[Problem] = (),
    solved_ids: Collection[str] = frozenset(),
) -> CourseProgress:
    completed = set(completed_lesson_ids)
    published = course.published_lessons
    total = len(published)
    # Raw count: a lesson moved out of the course after completion still counts here.
    completed_count = len(completed)

    if total > 0:
        percentage = round_half_up(100 * min(completed_count, total) / total)
    else:
        percentage = 0

    next_lesson_id = next(
        (lesson.id for lesson in published if lesson.id not in completed), None
    )
    practice = [p for p in problems if p.is_published]
    return CourseProgress(
        course_id=course.id,
        completed_count=completed_count,
        total_count=total,
        is_complete=total > 0 and completed_count >= total,
        percentage=percentage,
        next_lesson_id=next_lesson_id,
        viewed_count=len(completed | set(viewed_lesson_ids)),
        total_problems=len(practice),
        solved_problems=sum(1 for p in practice if p.id in solved_ids),
    )


def project_all_courses(
    courses: Iterable[Course],
    rows: Iterable[LessonCompletion],
    problems: Iterable[Problem] = (),
    attempts: Iterable[ProblemAttempt] = (),
) -> dict[str, CourseProgress]:
    completed: dict[str, set[str]] = {}
    viewed: dict[str, set[str]] = {}
    for row in rows:
        viewed.setdefault(row.course_id, set()).add(row.lesson_id)
        if row.completed:
            completed.setdefault(row.course_id, set()).add(row.lesson_id)
    by_course: dict[str, list[Problem]] = {}
    for problem in problems:
        if problem.course_id is not None:
            by_course.setdefault(problem.course_id, []).append(problem)
    solved = solved_problem_ids(attempts)
    return {
        course.slug: project_course_progress(
            course,
            completed.get(course.id, ()),
            viewed_lesson_ids=viewed.get(course.id, ()),
            problems=by_course.get(course.id, ()),
            solved_ids=solved,
        )
        for course in courses
    }


class CourseProgressProjector:
    def __init__(self, gateway: Gateway, clock: Clock) -> None:
        self._gateway = gateway
        self._clock = clock

    async def _course(self, course_id: str) -> Course:
        course = await self._gateway.get_course(course_id)
        if course is None:
            raise NotFound("course not found", course_id=course_id)
        return course

    async def _published_lesson_course(self, lesson_id: str) -> Course:
        course = await self._gateway.get_lesson_course(lesson_id)
        if all(lesson.id != lesson_id for lesson in course.published_lessons):
            raise NotFound("lesson is not published", lesson_id=lesson_id)
        return course

    async def _project(self, learner_id: str, course: Course) -> CourseProgress:
        rows = await self._gateway.list_completions(learner_id, course.id)
        problems = await self._gateway.list_problems(course.id)
        attempts = await self._gateway.list_learner_attempts(learner_id) if problems else []
        return project_course_progress(
            course,
            (r.lesson_id for r in rows if r.completed),
            viewed_lesson_ids=(r.lesson_id for r in rows),
            problems=problems,
            solved_ids=solved_problem_ids(attempts),
        )

    async def progress(self, learner_id: str, course_id: str) -> CourseProgress:
        course = await self._course(course_id)
        return await self._project(learner_id, course)

    async def complete_lesson(
        self, learner_id: str, lesson_id: str, completed: bool = True
    ) -> CourseProgress:
        """Mark a lesson finished, or with completed=False take that back.

        Un-completing keeps the row, so the lesson still counts as viewed.
        """
        if completed:
            course = await self._published_lesson_course(lesson_id)
        else:
            course = await self._gateway.get_lesson_course(lesson_id)
        changed = await self._gateway.record_lesson_completion(
            learner_id, lesson_id, course.id, int(self._clock.now().timestamp()), completed
        )
        if changed:
            logger.info(
                "Lesson %s",
                "completed" if completed else "marked incomplete",
                extra={"learner_id": learner_id, "course_id": course.id},
            )
        return await self._project(learner_id, course)

    async def view_lesson(self, learner_id: str, lesson_id: str) -> CourseProgress:
        course = await self._published_lesson_course(lesson_id)
        await self._gateway.record_lesson_view(
            learner_id, lesson_id, course.id, int(self._clock.now().timestamp())
        )
        return await self._project(learner_id, course)

    async def reset_course(self, learner_id: str, course_id: str) -> CourseProgress:
        course = await self._course(course_id)
        removed = await self._gateway.delete_lesson_completions(learner_id, course_id)
        logger.info(
            "Course progress reset (%d rows)",
            removed,
            extra={"learner_id": learner_id, "course_id": course_id},
        )
        return await self._project(learner_id, course)

    async def enroll(self, learner_id: str, course_id: str) -> bool:
        await self._course(course_id)
        return await self._gateway.enroll(
            learner_id, course_id, int(self._clock.now().timestamp())
        )

    async def progress_by_slug(self, learner_id: str) -> dict[str, CourseProgress]:
        """Progress for every known course, from one read per record set."""
        courses = await self._gateway.list_courses()
        rows = await self._gateway.list_completions(learner_id)
        problems = await self._gateway.list_problems()
        attempts = await self._gateway.list_learner_attempts(learner_id)
        return project_all_courses(courses, rows, problems, attempts)
