"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in progression/models/.
Repos convert between rows and dataclasses; nothing above the repo layer
sees a row object.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from progression.db.engine import Base

# --- Learner state ---


class ProfileRow(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    selected_career: Mapped[str | None] = mapped_column(String(255), nullable=True)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    streak_freezes_available: Mapped[int] = mapped_column(
        Integer, nullable=False, default=2
    )
    streak_freezes_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_freeze_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    last_activity_date: Mapped[str | None] = mapped_column(String(10), nullable=True)


# --- Authored content (read-only to the engine) ---


class CourseRow(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    learning_hours: Mapped[float | None] = mapped_column(Float, nullable=True)


class LessonRow(Base):
    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    course_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("courses.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="published"
    )  # draft|published


class CareerRow(Base):
    __tablename__ = "careers"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class CareerCourseRow(Base):
    """Required courses of a career, in display order."""

    __tablename__ = "career_courses"

    career_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("careers.id"), primary_key=True
    )
    course_slug: Mapped[str] = mapped_column(String(255), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)


class CareerSkillRow(Base):
    __tablename__ = "career_skills"

    career_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("careers.id"), primary_key=True
    )
    skill_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class SkillContributionRow(Base):
    __tablename__ = "skill_contributions"

    career_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    skill_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Not a foreign key: authoring may reference a course that does not exist yet.
    course_slug: Mapped[str] = mapped_column(String(255), primary_key=True)
    contribution: Mapped[float] = mapped_column(Float, nullable=False)


class PracticeProblemRow(Base):
    """All problem types share one table; type-specific fields live in `options`."""

    __tablename__ = "practice_problems"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # predict_output|eliminate_wrong|fix_error
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="draft")
    language: Mapped[str] = mapped_column(String(32), nullable=False, default="python")
    expected_output: Mapped[str] = mapped_column(Text, nullable=False, default="")
    accepted_outputs: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=[]
    )
    match_mode: Mapped[str] = mapped_column(String(16), nullable=False, default="strict")
    output_type: Mapped[str] = mapped_column(
        String(16), nullable=False, default="single_line"
    )
    reveal_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    reveal_timing: Mapped[str] = mapped_column(
        String(16), nullable=False, default="anytime"
    )
    reveal_penalty: Mapped[str] = mapped_column(
        String(16), nullable=False, default="no_xp"
    )
    xp_value: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    streak_eligible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allow_partial_credit: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    # [{"id", "content", "is_correct", "explanation"}] for eliminate_wrong
    options: Mapped[list[dict]] = mapped_column(JSONB, nullable=False, default=list)
    course_id: Mapped[str | None] = mapped_column(
        String(128), ForeignKey("courses.id"), nullable=True, index=True
    )


# --- Learner events ---


class CourseEnrollmentRow(Base):
    __tablename__ = "course_enrollments"

    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("profiles.id"), primary_key=True
    )
    course_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    enrolled_at: Mapped[int] = mapped_column(Integer, nullable=False)


class LessonProgressRow(Base):
    __tablename__ = "lesson_progress"

    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("profiles.id"), primary_key=True
    )
    lesson_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    course_id: Mapped[str] = mapped_column(String(128), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (Index("ix_lesson_progress_user_course", "user_id", "course_id"),)


class LessonTimeTrackingRow(Base):
    """Append-only; many rows per (user, day) are summed on read."""

    __tablename__ = "lesson_time_tracking"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("profiles.id"), nullable=False
    )
    tracked_date: Mapped[str] = mapped_column(String(10), nullable=False)
    lesson_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (Index("ix_time_tracking_user_date", "user_id", "tracked_date"),)


class ProblemAttemptRow(Base):
    __tablename__ = "problem_attempts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("profiles.id"), nullable=False
    )
    problem_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("practice_problems.id"), nullable=False
    )
    attempt_index: Mapped[int] = mapped_column(Integer, nullable=False)
    submitted_output: Mapped[str] = mapped_column(Text, nullable=False, default="")
    selected_options: Mapped[list[str]] = mapped_column(
        ARRAY(String), nullable=False, default=[]
    )
    match_mode: Mapped[str] = mapped_column(String(16), nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[int] = mapped_column(Integer, nullable=False)
    revealed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    solution_viewed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (UniqueConstraint("user_id", "problem_id", "attempt_index"),)
