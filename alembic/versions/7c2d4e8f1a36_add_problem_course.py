"""add course to practice problems

Revision ID: 7c2d4e8f1a36
Revises: 3b7e1c9d2a10
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7c2d4e8f1a36"
down_revision: str | Sequence[str] | None = "3b7e1c9d2a10"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column(
        "practice_problems",
        sa.Column(
            "course_id", sa.String(length=128), sa.ForeignKey("courses.id"), nullable=True
        ),
    )
    op.create_index(
        "ix_practice_problems_course_id", "practice_problems", ["course_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_practice_problems_course_id", table_name="practice_problems")
    op.drop_column("practice_problems", "course_id")
