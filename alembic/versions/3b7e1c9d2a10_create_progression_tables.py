"""create progression tables

Revision ID: 3b7e1c9d2a10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e1c9d2a10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("display_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("selected_career", sa.String(length=255), nullable=True),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "streak_freezes_available", sa.Integer(), nullable=False, server_default="2"
        ),
        sa.Column("streak_freezes_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_freeze_date", sa.String(length=10), nullable=True),
        sa.Column("last_activity_date", sa.String(length=10), nullable=True),
        sa.CheckConstraint("current_streak >= 0", name="ck_profiles_current_streak"),
        sa.CheckConstraint("max_streak >= current_streak", name="ck_profiles_max_streak"),
        sa.CheckConstraint(
            "streak_freezes_available >= 0", name="ck_profiles_freezes_available"
        ),
    )

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("learning_hours", sa.Float(), nullable=True),
    )
    op.create_table(
        "lessons",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column(
            "course_id", sa.String(length=128), sa.ForeignKey("courses.id"), nullable=False
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="published"),
    )
    op.create_index("ix_lessons_course_id", "lessons", ["course_id"])

    op.create_table(
        "careers",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
    )
    op.create_table(
        "career_courses",
        sa.Column(
            "career_id", sa.String(length=128), sa.ForeignKey("careers.id"), primary_key=True
        ),
        sa.Column("course_slug", sa.String(length=255), primary_key=True),
        sa.Column("position", sa.Integer(), nullable=False),
    )
    op.create_table(
        "career_skills",
        sa.Column(
            "career_id", sa.String(length=128), sa.ForeignKey("careers.id"), primary_key=True
        ),
        sa.Column("skill_name", sa.String(length=255), primary_key=True),
        sa.Column("weight", sa.Float(), nullable=False, server_default="1"),
        sa.Column("icon", sa.String(length=64), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_table(
        "skill_contributions",
        sa.Column("career_id", sa.String(length=128), primary_key=True),
        sa.Column("skill_name", sa.String(length=255), primary_key=True),
        sa.Column("course_slug", sa.String(length=255), primary_key=True),
        sa.Column("contribution", sa.Float(), nullable=False),
    )
    op.create_table(
        "practice_problems",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("language", sa.String(length=32), nullable=False, server_default="python"),
        sa.Column("expected_output", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "accepted_outputs",
            postgresql.ARRAY(sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("match_mode", sa.String(length=16), nullable=False, server_default="strict"),
        sa.Column(
            "output_type", sa.String(length=16), nullable=False, server_default="single_line"
        ),
        sa.Column("reveal_allowed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "reveal_timing", sa.String(length=16), nullable=False, server_default="anytime"
        ),
        sa.Column(
            "reveal_penalty", sa.String(length=16), nullable=False, server_default="no_xp"
        ),
        sa.Column("xp_value", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("streak_eligible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "allow_partial_credit", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "options",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
    )

    op.create_table(
        "course_enrollments",
        sa.Column(
            "user_id", sa.String(length=128), sa.ForeignKey("profiles.id"), primary_key=True
        ),
        sa.Column("course_id", sa.String(length=128), primary_key=True),
        sa.Column("enrolled_at", sa.Integer(), nullable=False),
    )
    op.create_table(
        "lesson_progress",
        sa.Column(
            "user_id", sa.String(length=128), sa.ForeignKey("profiles.id"), primary_key=True
        ),
        sa.Column("lesson_id", sa.String(length=128), primary_key=True),
        sa.Column("course_id", sa.String(length=128), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.Integer(), nullable=True),
    )
    op.create_index(
        "ix_lesson_progress_user_course", "lesson_progress", ["user_id", "course_id"]
    )
    op.create_table(
        "lesson_time_tracking",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", sa.String(length=128), sa.ForeignKey("profiles.id"), nullable=False
        ),
        sa.Column("tracked_date", sa.String(length=10), nullable=False),
        sa.Column("lesson_id", sa.String(length=128), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.Integer(), nullable=True),
        sa.CheckConstraint("duration_seconds > 0", name="ck_time_tracking_positive"),
    )
    op.create_index(
        "ix_time_tracking_user_date", "lesson_time_tracking", ["user_id", "tracked_date"]
    )
    op.create_table(
        "problem_attempts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id", sa.String(length=128), sa.ForeignKey("profiles.id"), nullable=False
        ),
        sa.Column(
            "problem_id",
            sa.String(length=128),
            sa.ForeignKey("practice_problems.id"),
            nullable=False,
        ),
        sa.Column("attempt_index", sa.Integer(), nullable=False),
        sa.Column("submitted_output", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "selected_options",
            postgresql.ARRAY(sa.String()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("match_mode", sa.String(length=16), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("xp_awarded", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("submitted_at", sa.Integer(), nullable=False),
        sa.Column("revealed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("solution_viewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("user_id", "problem_id", "attempt_index"),
    )


def downgrade() -> None:
    op.drop_table("problem_attempts")
    op.drop_index("ix_time_tracking_user_date", table_name="lesson_time_tracking")
    op.drop_table("lesson_time_tracking")
    op.drop_index("ix_lesson_progress_user_course", table_name="lesson_progress")
    op.drop_table("lesson_progress")
    op.drop_table("course_enrollments")
    op.drop_table("practice_problems")
    op.drop_table("skill_contributions")
    op.drop_table("career_skills")
    op.drop_table("career_courses")
    op.drop_table("careers")
    op.drop_index("ix_lessons_course_id", table_name="lessons")
    op.drop_table("lessons")
    op.drop_table("courses")
    op.drop_table("profiles")
