from __future__ import annotations

from typing import Protocol

from progression.models.career import CareerPath
from progression.models.course import Course, Lesson
from progression.models.problem import Problem


class ContentRepo(Protocol):
    """Authored content (courses, careers, problems). Read-only to the engine."""

    async def get_course(self, course_id: str) -> Course | None: ...
    async def get_course_by_slug(self, slug: str) -> Course | None: ...
    async def list_courses(self) -> list[Course]: ...
    async def get_lesson(self, lesson_id: str) -> Lesson | None: ...
    async def get_career(self, career_id: str) -> CareerPath | None: ...
    async def get_career_by_slug(self, slug: str) -> CareerPath | None: ...
    async def get_problem(self, problem_id: str) -> Problem | None: ...
    async def list_problems(self, course_id: str | None = None) -> list[Problem]: ...


class InMemoryContentRepo:
    def __init__(self) -> None:
        self._courses: dict[str, Course] = {}
        self._courses_by_slug: dict[str, Course] = {}
        self._careers: dict[str, CareerPath] = {}
        self._careers_by_slug: dict[str, CareerPath] = {}
        self._problems: dict[str, Problem] = {}

    # --- seeding (authoring happens outside the engine) ---

    def add_course(self, course: Course) -> None:
        if course.slug in self._courses_by_slug:
            raise ValueError("course slug already exists")
        self._courses[course.id] = course
        self._courses_by_slug[course.slug] = course

    def add_career(self, career: CareerPath) -> None:
        if career.slug in self._careers_by_slug:
            raise ValueError("career slug already exists")
        self._careers[career.id] = career
        self._careers_by_slug[career.slug] = career

    def add_problem(self, problem: Problem) -> None:
        self._problems[problem.id] = problem

    # --- ContentRepo ---

    async def get_course(self, course_id: str) -> Course | None:
        return self._courses.get(course_id)

    async def get_course_by_slug(self, slug: str) -> Course | None:
        return self._courses_by_slug.get(slug)

    async def list_courses(self) -> list[Course]:
        return list(self._courses.values())

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        for course in self._courses.values():
            for lesson in course.lessons:
                if lesson.id == lesson_id:
                    return lesson
        return None

    async def get_career(self, career_id: str) -> CareerPath | None:
        return self._careers.get(career_id)

    async def get_career_by_slug(self, slug: str) -> CareerPath | None:
        return self._careers_by_slug.get(slug)

    async def get_problem(self, problem_id: str) -> Problem | None:
        return self._problems.get(problem_id)

    async def list_problems(self, course_id: str | None = None) -> list[Problem]:
        return [
            p for p in self._problems.values() if course_id is None or p.course_id == course_id
        ]
