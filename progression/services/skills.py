"""Skill Proficiency Projector (C4) and the authoring-warning channel.

A skill's value is the sum over its contributions of
``course completion ratio x contribution``, capped at 100. Partial credit
is linear in the lesson ratio; a course without published lessons
contributes nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from progression.core.errors import NotFound
from progression.core.metrics import AUTHORING_WARNINGS
from progression.models.career import CareerPath, CareerSkill
from progression.models.views import AuthoringInconsistency, CourseProgress, SkillValue
from progression.repos.gateway import Gateway
from progression.services.course_progress import CourseProgressProjector, round_half_up

logger = logging.getLogger(__name__)

MAX_SKILL_VALUE = 100


class AuthoringWarnings:
    """Collects authoring inconsistencies for one assembly.

    Each distinct (kind, context) is recorded, logged and counted once, no
    matter how many projectors trip over it.
    """

    def __init__(self) -> None:
        self._items: dict[tuple[str, tuple[tuple[str, str], ...]], AuthoringInconsistency] = {}

    def add(self, kind: str, message: str, **context: str) -> None:
        key = (kind, tuple(sorted(context.items())))
        if key in self._items:
            return
        self._items[key] = AuthoringInconsistency(kind=kind, message=message, context=context)
        AUTHORING_WARNINGS.labels(kind=kind).inc()
        logger.warning("%s", message, extra={"warning_kind": kind, **_log_context(context)})

    def items(self) -> tuple[AuthoringInconsistency, ...]:
        return tuple(self._items.values())

    def __len__(self) -> int:
        return len(self._items)


def _log_context(context: Mapping[str, str]) -> dict[str, str]:
    # Only lift keys the JSON formatter knows; the rest stays in the message.
    return {k: v for k, v in context.items() if k in ("career_id", "course_id")}


def skill_value(
    skill: CareerSkill,
    progress_by_slug: Mapping[str, CourseProgress],
    warnings: AuthoringWarnings,
) -> SkillValue:
    total = 0.0
    first_slug: str | None = None
    for c in skill.contributions:
        progress = progress_by_slug.get(c.course_slug)
        if progress is None:
            warnings.add(
                "unknown_course",
                f"skill {skill.skill_name!r} references unknown course {c.course_slug!r}",
                career_id=skill.career_id,
                course_slug=c.course_slug,
            )
            continue
        contribution = c.contribution
        if not 0 <= contribution <= MAX_SKILL_VALUE:
            warnings.add(
                "contribution_out_of_range",
                f"contribution {contribution} of {c.course_slug!r} to "
                f"{skill.skill_name!r} is outside [0, 100]",
                career_id=skill.career_id,
                course_slug=c.course_slug,
            )
            contribution = min(max(contribution, 0), MAX_SKILL_VALUE)
        if first_slug is None:
            first_slug = c.course_slug
        total += progress.ratio * contribution

    return SkillValue(
        name=skill.skill_name,
        weight=skill.weight,
        value=min(round_half_up(total), MAX_SKILL_VALUE),
        icon=skill.icon,
        course_slug=first_slug,
    )


def skill_values(
    career: CareerPath,
    progress_by_slug: Mapping[str, CourseProgress],
    warnings: AuthoringWarnings,
) -> tuple[SkillValue, ...]:
    return tuple(skill_value(s, progress_by_slug, warnings) for s in career.skills)


class SkillProficiencyProjector:
    def __init__(self, gateway: Gateway, progress: CourseProgressProjector) -> None:
        self._gateway = gateway
        self._progress = progress

    async def values(
        self, learner_id: str, career_id: str
    ) -> tuple[tuple[SkillValue, ...], tuple[AuthoringInconsistency, ...]]:
        career = await self._gateway.read_career_content(career_id)
        progress_by_slug = await self._progress.progress_by_slug(learner_id)
        warnings = AuthoringWarnings()
        return skill_values(career, progress_by_slug, warnings), warnings.items()

    async def value(
        self, learner_id: str, career_id: str, skill_name: str
    ) -> tuple[SkillValue, tuple[AuthoringInconsistency, ...]]:
        career = await self._gateway.read_career_content(career_id)
        skill = career.skill(skill_name)
        if skill is None:
            raise NotFound("skill not found", career_id=career_id, skill_name=skill_name)
        progress_by_slug = await self._progress.progress_by_slug(learner_id)
        warnings = AuthoringWarnings()
        return skill_value(skill, progress_by_slug, warnings), warnings.items()
