"""PostgreSQL implementation of ContentRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.tables import (
    CareerCourseRow,
    CareerRow,
    CareerSkillRow,
    CourseRow,
    LessonRow,
    PracticeProblemRow,
    SkillContributionRow,
)
from progression.models.career import CareerPath, CareerSkill, SkillContribution
from progression.models.course import Course, Lesson
from progression.models.problem import Problem, ProblemOption


class PgContentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_course(self, course_id: str) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return await self._load_course(row)

    async def get_course_by_slug(self, slug: str) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.slug == slug)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return await self._load_course(row)

    async def list_courses(self) -> list[Course]:
        course_rows = (await self._session.execute(select(CourseRow))).scalars().all()
        lesson_rows = (await self._session.execute(select(LessonRow))).scalars().all()
        by_course: dict[str, list[Lesson]] = {}
        for lesson_row in lesson_rows:
            by_course.setdefault(lesson_row.course_id, []).append(_row_to_lesson(lesson_row))
        return [
            _row_to_course(row, by_course.get(row.id, [])) for row in course_rows
        ]

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        stmt = select(LessonRow).where(LessonRow.id == lesson_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_lesson(row)

    async def get_career(self, career_id: str) -> CareerPath | None:
        stmt = select(CareerRow).where(CareerRow.id == career_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return await self._load_career(row)

    async def get_career_by_slug(self, slug: str) -> CareerPath | None:
        stmt = select(CareerRow).where(CareerRow.slug == slug)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return await self._load_career(row)

    async def get_problem(self, problem_id: str) -> Problem | None:
        stmt = select(PracticeProblemRow).where(PracticeProblemRow.id == problem_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_problem(row)

    async def list_problems(self, course_id: str | None = None) -> list[Problem]:
        stmt = select(PracticeProblemRow)
        if course_id is not None:
            stmt = stmt.where(PracticeProblemRow.course_id == course_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_problem(row) for row in rows]

    async def _load_course(self, row: CourseRow) -> Course:
        stmt = select(LessonRow).where(LessonRow.course_id == row.id)
        lessons = (await self._session.execute(stmt)).scalars().all()
        return _row_to_course(row, [_row_to_lesson(lesson) for lesson in lessons])

    async def _load_career(self, row: CareerRow) -> CareerPath:
        required_stmt = (
            select(CareerCourseRow.course_slug)
            .where(CareerCourseRow.career_id == row.id)
            .order_by(CareerCourseRow.position)
        )
        required = (await self._session.execute(required_stmt)).scalars().all()

        skills_stmt = (
            select(CareerSkillRow)
            .where(CareerSkillRow.career_id == row.id)
            .order_by(CareerSkillRow.position, CareerSkillRow.skill_name)
        )
        skill_rows = (await self._session.execute(skills_stmt)).scalars().all()

        contrib_stmt = select(SkillContributionRow).where(
            SkillContributionRow.career_id == row.id
        )
        contrib_rows = (await self._session.execute(contrib_stmt)).scalars().all()
        by_skill: dict[str, list[SkillContribution]] = {}
        for c in contrib_rows:
            by_skill.setdefault(c.skill_name, []).append(
                SkillContribution(
                    career_id=c.career_id,
                    skill_name=c.skill_name,
                    course_slug=c.course_slug,
                    contribution=c.contribution,
                )
            )

        skills = tuple(
            CareerSkill(
                career_id=s.career_id,
                skill_name=s.skill_name,
                weight=s.weight,
                icon=s.icon,
                contributions=tuple(
                    sorted(by_skill.get(s.skill_name, []), key=lambda c: c.course_slug)
                ),
            )
            for s in skill_rows
        )
        return CareerPath(
            id=row.id,
            slug=row.slug,
            name=row.name,
            required_course_slugs=tuple(required),
            skills=skills,
        )


def _row_to_lesson(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id, course_id=row.course_id, position=row.position, status=row.status
    )


def _row_to_course(row: CourseRow, lessons: list[Lesson]) -> Course:
    return Course(
        id=row.id,
        slug=row.slug,
        title=row.title,
        lessons=tuple(sorted(lessons, key=lambda lesson: lesson.position)),
        learning_hours=row.learning_hours,
    )


def _row_to_problem(row: PracticeProblemRow) -> Problem:
    return Problem(
        id=row.id,
        slug=row.slug,
        type=row.type,  # type: ignore[arg-type]
        status=row.status,
        language=row.language,
        expected_output=row.expected_output or "",
        accepted_outputs=tuple(row.accepted_outputs or ()),
        match_mode=row.match_mode,  # type: ignore[arg-type]
        output_type=row.output_type,  # type: ignore[arg-type]
        reveal_allowed=row.reveal_allowed,
        reveal_timing=row.reveal_timing,  # type: ignore[arg-type]
        reveal_penalty=row.reveal_penalty,  # type: ignore[arg-type]
        xp_value=row.xp_value,
        streak_eligible=row.streak_eligible,
        options=tuple(
            ProblemOption(
                id=str(o["id"]),
                content=str(o.get("content", "")),
                is_correct=bool(o.get("is_correct", False)),
                explanation=str(o.get("explanation", "")),
            )
            for o in (row.options or [])
        ),
        allow_partial_credit=row.allow_partial_credit,
        course_id=row.course_id,
    )
