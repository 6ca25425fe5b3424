from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SkillContribution:
    """Points a fully completed course adds to a skill, in [0, 100]."""

    career_id: str
    skill_name: str
    course_slug: str
    contribution: float


@dataclass(frozen=True, slots=True)
class CareerSkill:
    career_id: str
    skill_name: str
    weight: float
    icon: str | None = None
    contributions: tuple[SkillContribution, ...] = ()


@dataclass(frozen=True, slots=True)
class CareerPath:
    id: str
    slug: str
    name: str
    required_course_slugs: tuple[str, ...] = ()
    skills: tuple[CareerSkill, ...] = ()

    def skill(self, skill_name: str) -> CareerSkill | None:
        for skill in self.skills:
            if skill.skill_name == skill_name:
                return skill
        return None
