"""Read models produced by the projectors and the dashboard assembler.

All frozen; the API serializes them with pydantic (from_attributes).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from progression.models.problem import ProblemAttempt


@dataclass(frozen=True, slots=True)
class AuthoringInconsistency:
    """Non-fatal authoring problem reported next to a result."""

    kind: str  # unknown_course|zero_weight|negative_weight|contribution_out_of_range|...
    message: str
    context: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CourseProgress:
    course_id: str
    completed_count: int  # raw, may exceed total_count
    total_count: int
    is_complete: bool
    percentage: int
    next_lesson_id: str | None = None
    viewed_count: int = 0  # lessons opened, completed or not
    total_problems: int = 0  # published practice problems of the course
    solved_problems: int = 0

    @property
    def ratio(self) -> float:
        if self.total_count <= 0:
            return 0.0
        return min(self.completed_count, self.total_count) / self.total_count


@dataclass(frozen=True, slots=True)
class SkillValue:
    name: str
    weight: float
    value: int
    icon: str | None = None
    course_slug: str | None = None  # first contributing course


@dataclass(frozen=True, slots=True)
class Milestone:
    id: str
    title: str
    description: str
    threshold: int
    unlocked: bool


@dataclass(frozen=True, slots=True)
class CareerReadiness:
    career_id: str
    slug: str
    name: str
    readiness_percentage: int
    readiness_level: str
    skills: tuple[SkillValue, ...]
    total_required: int
    completed_in_career: int
    # Display-only: lessons completed / lessons total across required courses.
    courses_progress_percentage: int
    enrolled_in_career: int = 0
    warnings: tuple[AuthoringInconsistency, ...] = ()
    milestones: tuple[Milestone, ...] = ()


@dataclass(frozen=True, slots=True)
class StreakSummary:
    current: int
    max: int
    freezes_available: int
    freezes_used: int
    can_freeze_today: bool
    today_active: bool
    last_freeze_day: str | None
    last_activity_day: str | None
    next_milestone: int = 0
    milestone_progress: int = 0  # percent of the way from 0 to next_milestone

    @property
    def state(self) -> str:
        return "hot" if self.current > 0 else "cold"


@dataclass(frozen=True, slots=True)
class WeeklyActivity:
    week_start: str
    week_end: str
    daily_seconds: dict[str, int]
    total_seconds: int
    active_days: int
    average_minutes_per_active_day: int
    last_week_seconds: int


@dataclass(frozen=True, slots=True)
class AttemptResult:
    attempt: ProblemAttempt
    matched_against: str | None = None
    mismatched_lines: tuple[int, ...] = ()

    @property
    def is_correct(self) -> bool:
        return self.attempt.is_correct

    @property
    def xp_awarded(self) -> int:
        return self.attempt.xp_awarded


@dataclass(frozen=True, slots=True)
class ProblemProgress:
    """Where a learner stands on one problem, derived from the attempt log."""

    problem_id: str
    status: str  # unsolved|attempted|solved
    attempts: int  # submissions only; reveals are not attempts
    solved_at: int | None
    xp_earned: int


@dataclass(frozen=True, slots=True)
class RevealResult:
    problem_id: str
    expected_output: str
    accepted_outputs: tuple[str, ...]
    correct_options: tuple[str, ...]
    attempt: ProblemAttempt


@dataclass(frozen=True, slots=True)
class LearnerCard:
    learner_id: str
    display_name: str
    avatar_url: str | None
    selected_career: str | None


@dataclass(frozen=True, slots=True)
class CourseInProgress:
    course_id: str
    slug: str
    title: str
    progress: CourseProgress


@dataclass(frozen=True, slots=True)
class Dashboard:
    learner: LearnerCard
    streak: StreakSummary
    week: WeeklyActivity
    career: CareerReadiness | None
    courses_in_progress: tuple[CourseInProgress, ...]
    recommended: tuple[str, ...]  # course ids
    warnings: tuple[AuthoringInconsistency, ...]
    generated_at: int
