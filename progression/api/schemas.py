"""Request and response models for the HTTP surface.

Response models read the engine's frozen dataclasses directly
(from_attributes), so the view models stay the single source of shape.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class _FromEngine(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- requests ---


class TimeIn(BaseModel):
    duration_seconds: int = Field(gt=0)
    lesson_id: str | None = None


class CareerSelectIn(BaseModel):
    career_slug: str = Field(min_length=1)


class SubmissionIn(BaseModel):
    output: str = ""
    selected_options: list[str] = Field(default_factory=list)
    code: str | None = None
    time_taken_seconds: int | None = Field(default=None, ge=0)


# --- responses ---


class WarningOut(_FromEngine):
    kind: str
    message: str
    context: dict[str, str]


class CourseProgressOut(_FromEngine):
    course_id: str
    completed_count: int
    total_count: int
    is_complete: bool
    percentage: int
    next_lesson_id: str | None
    viewed_count: int
    total_problems: int
    solved_problems: int


class EnrollmentOut(BaseModel):
    course_id: str
    enrolled: bool  # False when the learner was already enrolled


class StreakOut(_FromEngine):
    current: int
    max: int
    freezes_available: int
    freezes_used: int
    can_freeze_today: bool
    today_active: bool
    state: str
    last_freeze_day: str | None
    last_activity_day: str | None
    next_milestone: int
    milestone_progress: int


class WeekOut(_FromEngine):
    week_start: str
    week_end: str
    daily_seconds: dict[str, int]
    total_seconds: int
    active_days: int
    average_minutes_per_active_day: int
    last_week_seconds: int


class SkillOut(_FromEngine):
    name: str
    weight: float
    value: int
    icon: str | None
    course_slug: str | None


class MilestoneOut(_FromEngine):
    id: str
    title: str
    description: str
    threshold: int
    unlocked: bool


class ReadinessOut(_FromEngine):
    career_id: str
    slug: str
    name: str
    readiness_percentage: int
    readiness_level: str
    skills: list[SkillOut]
    total_required: int
    completed_in_career: int
    courses_progress_percentage: int
    enrolled_in_career: int
    milestones: list[MilestoneOut]
    warnings: list[WarningOut]


class CareerOut(_FromEngine):
    id: str
    slug: str
    name: str
    required_course_slugs: list[str]


class AttemptOut(_FromEngine):
    id: UUID
    problem_id: str
    attempt_index: int
    is_correct: bool
    score: float
    xp_awarded: int
    submitted_at: int
    revealed: bool
    solution_viewed: bool


class AttemptResultOut(_FromEngine):
    is_correct: bool
    xp_awarded: int
    matched_against: str | None
    mismatched_lines: list[int]
    attempt: AttemptOut


class RevealOut(_FromEngine):
    problem_id: str
    expected_output: str
    accepted_outputs: list[str]
    correct_options: list[str]
    attempt: AttemptOut


class ProblemProgressOut(_FromEngine):
    problem_id: str
    status: str
    attempts: int
    solved_at: int | None
    xp_earned: int


class LearnerCardOut(_FromEngine):
    learner_id: str
    display_name: str
    avatar_url: str | None
    selected_career: str | None


class CourseInProgressOut(_FromEngine):
    course_id: str
    slug: str
    title: str
    progress: CourseProgressOut


class DashboardOut(_FromEngine):
    learner: LearnerCardOut
    streak: StreakOut
    week: WeekOut
    career: ReadinessOut | None
    courses_in_progress: list[CourseInProgressOut]
    recommended: list[str]
    warnings: list[WarningOut]
    generated_at: int
