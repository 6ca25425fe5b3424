"""Career Readiness Projector (C5).

readiness = round(sum(value_i * weight_i) / sum(weight_i)) over the
career's skills, 0 when the weights sum to zero. The qualitative level
is a fixed lookup on that number.

completed_in_career and courses_progress_percentage are display-only
companions; they never feed the readiness number. Milestones unlock on
either completed career courses or the readiness number.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence

from progression.core.errors import NotFound
from progression.models.career import CareerPath
from progression.models.views import CareerReadiness, CourseProgress, Milestone, SkillValue
from progression.repos.gateway import Gateway
from progression.services.course_progress import CourseProgressProjector, round_half_up
from progression.services.skills import AuthoringWarnings, skill_values

logger = logging.getLogger(__name__)

# Lower bounds, inclusive, highest first.
READINESS_LEVELS: tuple[tuple[int, str], ...] = (
    (80, "Job Ready"),
    (50, "Intermediate"),
    (20, "Beginner"),
)
LOWEST_LEVEL = "Getting Started"

# id, title, description, threshold, measured on ("courses" or "readiness")
CAREER_MILESTONES: tuple[tuple[str, str, str, int, str], ...] = (
    ("first-step", "First Step", "Complete your first course", 1, "courses"),
    ("on-track", "On Track", "Complete 3 courses", 3, "courses"),
    ("rising-star", "Rising Star", "Reach 25% readiness", 25, "readiness"),
    ("half-way", "Halfway There", "Reach 50% readiness", 50, "readiness"),
    ("achiever", "Achiever", "Reach 75% readiness", 75, "readiness"),
    ("master", "Career Ready", "Reach 100% readiness", 100, "readiness"),
)


def readiness_level(percentage: int) -> str:
    for lower_bound, label in READINESS_LEVELS:
        if percentage >= lower_bound:
            return label
    return LOWEST_LEVEL


def career_milestones(completed_courses: int, readiness: int) -> tuple[Milestone, ...]:
    return tuple(
        Milestone(
            id=milestone_id,
            title=title,
            description=description,
            threshold=threshold,
            unlocked=(completed_courses if measure == "courses" else readiness) >= threshold,
        )
        for milestone_id, title, description, threshold, measure in CAREER_MILESTONES
    )


def weighted_readiness(
    career: CareerPath, skills: Sequence[SkillValue], warnings: AuthoringWarnings
) -> int:
    numerator = 0.0
    denominator = 0.0
    for skill in skills:
        weight = skill.weight
        if weight < 0:
            warnings.add(
                "negative_weight",
                f"skill {skill.name!r} has negative weight {weight}; treated as 0",
                career_id=career.id,
                skill_name=skill.name,
            )
            weight = 0
        numerator += skill.value * weight
        denominator += weight
    if denominator <= 0:
        warnings.add(
            "zero_weight",
            f"skill weights of career {career.slug!r} sum to zero",
            career_id=career.id,
        )
        return 0
    return round_half_up(numerator / denominator)


def project_readiness(
    career: CareerPath,
    progress_by_slug: Mapping[str, CourseProgress],
    enrolled_course_ids: Collection[str],
    warnings: AuthoringWarnings,
) -> CareerReadiness:
    skills = skill_values(career, progress_by_slug, warnings)
    percentage = weighted_readiness(career, skills, warnings)

    completed_in_career = 0
    enrolled_in_career = 0
    lessons_done = 0
    lessons_total = 0
    for slug in career.required_course_slugs:
        progress = progress_by_slug.get(slug)
        if progress is None:
            warnings.add(
                "unknown_course",
                f"career {career.slug!r} requires unknown course {slug!r}",
                career_id=career.id,
                course_slug=slug,
            )
            continue
        if progress.is_complete:
            completed_in_career += 1
        if progress.course_id in enrolled_course_ids:
            enrolled_in_career += 1
        lessons_done += min(progress.completed_count, progress.total_count)
        lessons_total += progress.total_count

    courses_pct = round_half_up(100 * lessons_done / lessons_total) if lessons_total else 0

    return CareerReadiness(
        career_id=career.id,
        slug=career.slug,
        name=career.name,
        readiness_percentage=percentage,
        readiness_level=readiness_level(percentage),
        skills=skills,
        total_required=len(career.required_course_slugs),
        completed_in_career=completed_in_career,
        courses_progress_percentage=courses_pct,
        enrolled_in_career=enrolled_in_career,
        warnings=warnings.items(),
        milestones=career_milestones(completed_in_career, percentage),
    )


class CareerReadinessProjector:
    def __init__(self, gateway: Gateway, progress: CourseProgressProjector) -> None:
        self._gateway = gateway
        self._progress = progress

    async def readiness(self, learner_id: str, career_id: str) -> CareerReadiness:
        career = await self._gateway.read_career_content(career_id)
        progress_by_slug = await self._progress.progress_by_slug(learner_id)
        enrollments = await self._gateway.list_enrollments(learner_id)
        return project_readiness(
            career,
            progress_by_slug,
            {e.course_id for e in enrollments},
            AuthoringWarnings(),
        )

    async def readiness_for_selected(self, learner_id: str) -> CareerReadiness:
        learner = await self._gateway.read_learner(learner_id)
        if learner is None:
            raise NotFound("learner not found", learner_id=learner_id)
        if learner.selected_career is None:
            raise NotFound("no career selected", learner_id=learner_id)
        career = await self._gateway.get_career_by_slug(learner.selected_career)
        if career is None:
            raise NotFound("career not found", career_slug=learner.selected_career)
        return await self.readiness(learner_id, career.id)

    async def select_career(self, learner_id: str, career_slug: str) -> CareerPath:
        career = await self._gateway.get_career_by_slug(career_slug)
        if career is None:
            raise NotFound("career not found", career_slug=career_slug)
        await self._gateway.set_selected_career(learner_id, career.slug)
        logger.info(
            "Career selected: %s",
            career.slug,
            extra={"learner_id": learner_id, "career_id": career.id},
        )
        return career
