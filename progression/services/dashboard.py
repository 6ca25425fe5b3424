"""View Assembler (C9).

assemble() pins one instant, reads each record set once and hands the
snapshot to build_dashboard(), a pure function. Projectors inside one
assembly therefore agree on the same completions and time rows.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from progression.core.clock import Clock, DayKeyer
from progression.core.errors import NotFound
from progression.models.course import Course
from progression.models.learner import Enrollment, Learner
from progression.models.views import (
    AuthoringInconsistency,
    CareerReadiness,
    CourseInProgress,
    CourseProgress,
    Dashboard,
    LearnerCard,
    StreakSummary,
    WeeklyActivity,
)
from progression.repos.gateway import Gateway
from progression.services.course_progress import project_all_courses
from progression.services.readiness import project_readiness
from progression.services.skills import AuthoringWarnings
from progression.services.streak import StreakEngine
from progression.services.weekly_activity import WeeklyActivityAggregator

logger = logging.getLogger(__name__)


def courses_in_progress(
    courses: Sequence[Course],
    progress_by_slug: dict[str, CourseProgress],
    enrollments: Sequence[Enrollment],
) -> tuple[CourseInProgress, ...]:
    """Started or enrolled courses that are not complete.

    Enrolled courses come first in enrollment order, then courses that have
    completions without an enrollment, in catalogue order.
    """
    by_id = {c.id: c for c in courses}
    ordered: list[Course] = [by_id[e.course_id] for e in enrollments if e.course_id in by_id]
    enrolled = {c.id for c in ordered}
    ordered += [
        c
        for c in courses
        if c.id not in enrolled and progress_by_slug[c.slug].completed_count > 0
    ]
    return tuple(
        CourseInProgress(
            course_id=c.id, slug=c.slug, title=c.title, progress=progress_by_slug[c.slug]
        )
        for c in ordered
        if not progress_by_slug[c.slug].is_complete
    )


def recommended_courses(
    career: CareerReadiness | None,
    required_slugs: Sequence[str],
    courses: Sequence[Course],
    enrollments: Sequence[Enrollment],
) -> tuple[str, ...]:
    """Required course ids of the career the learner is not enrolled in."""
    if career is None:
        return ()
    by_slug = {c.slug: c for c in courses}
    enrolled = {e.course_id for e in enrollments}
    return tuple(
        by_slug[slug].id
        for slug in required_slugs
        if slug in by_slug and by_slug[slug].id not in enrolled
    )


def build_dashboard(
    *,
    learner: Learner,
    streak: StreakSummary,
    week: WeeklyActivity,
    career: CareerReadiness | None,
    required_slugs: Sequence[str],
    courses: Sequence[Course],
    progress_by_slug: dict[str, CourseProgress],
    enrollments: Sequence[Enrollment],
    warnings: Sequence[AuthoringInconsistency],
    generated_at: int,
) -> Dashboard:
    return Dashboard(
        learner=LearnerCard(
            learner_id=learner.id,
            display_name=learner.display_name,
            avatar_url=learner.avatar_url,
            selected_career=learner.selected_career,
        ),
        streak=streak,
        week=week,
        career=career,
        courses_in_progress=courses_in_progress(courses, progress_by_slug, enrollments),
        recommended=recommended_courses(career, required_slugs, courses, enrollments),
        warnings=tuple(warnings),
        generated_at=generated_at,
    )


class DashboardAssembler:
    def __init__(
        self,
        gateway: Gateway,
        clock: Clock,
        keyer: DayKeyer,
        streak: StreakEngine,
        weekly: WeeklyActivityAggregator,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._keyer = keyer
        self._streak = streak
        self._weekly = weekly

    async def assemble(self, learner_id: str) -> Dashboard:
        now = self._clock.now()
        today = self._keyer.day_key(now)

        learner = await self._gateway.read_learner(learner_id)
        if learner is None:
            raise NotFound("learner not found", learner_id=learner_id)

        streak = await self._streak.recompute(learner_id, today)
        week = await self._weekly.week(learner_id, today)

        courses = await self._gateway.list_courses()
        completions = await self._gateway.list_completions(learner_id)
        enrollments = await self._gateway.list_enrollments(learner_id)
        problems = await self._gateway.list_problems()
        attempts = await self._gateway.list_learner_attempts(learner_id)
        progress_by_slug = project_all_courses(courses, completions, problems, attempts)

        warnings = AuthoringWarnings()
        career: CareerReadiness | None = None
        required: tuple[str, ...] = ()
        if learner.selected_career:
            path = await self._gateway.get_career_by_slug(learner.selected_career)
            if path is None:
                warnings.add(
                    "unknown_career",
                    f"selected career {learner.selected_career!r} does not exist",
                    career_slug=learner.selected_career,
                )
            else:
                career = project_readiness(
                    path,
                    progress_by_slug,
                    {e.course_id for e in enrollments},
                    warnings,
                )
                required = path.required_course_slugs

        if len(warnings):
            logger.info(
                "Dashboard assembled with %d authoring warnings",
                len(warnings),
                extra={"learner_id": learner_id},
            )
        return build_dashboard(
            learner=learner,
            streak=streak,
            week=week,
            career=career,
            required_slugs=required,
            courses=courses,
            progress_by_slug=progress_by_slug,
            enrollments=enrollments,
            warnings=warnings.items(),
            generated_at=int(now.timestamp()),
        )
