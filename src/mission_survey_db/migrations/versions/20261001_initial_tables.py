"""Create survey tables.

Creates ``mission_evaluations``, ``survey_questions``, ``mission_teams``
and ``admin_users``.

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "mission_evaluations",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("role", sa.Text(), nullable=False),
        sa.Column("respondent_name", sa.Text(), nullable=True),
        sa.Column("respondent_email", sa.Text(), nullable=True),
        sa.Column("team_missionary", sa.Text(), nullable=True),
        sa.Column("team_dept", sa.Text(), nullable=True),
        sa.Column("team_country", sa.Text(), nullable=True),
        sa.Column("team_leader", sa.Text(), nullable=True),
        sa.Column("answers", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("response_status", sa.String(20), nullable=False, server_default=sa.text("'completed'")),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_mission_evaluations_respondent_email", "mission_evaluations", ["respondent_email"])
    op.create_index("ix_evaluations_email_created", "mission_evaluations", ["respondent_email", "created_at"])
    op.create_index("ix_evaluations_answers_gin", "mission_evaluations", ["answers"], postgresql_using="gin")

    op.create_table(
        "survey_questions",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("options", JSONB(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("is_hidden", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint(
            "role IN ('missionary', 'leader', 'team_member', 'common')",
            name="ck_question_role",
        ),
        sa.CheckConstraint(
            "type IN ('scale', 'text', 'multi_select')",
            name="ck_question_type",
        ),
    )
    op.create_index("ix_survey_questions_role", "survey_questions", ["role"])

    op.create_table(
        "mission_teams",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("dept", sa.Text(), nullable=False),
        sa.Column("leader", sa.Text(), nullable=False),
        sa.Column("country", sa.Text(), nullable=False),
        sa.Column("missionary", sa.Text(), nullable=False),
        sa.Column("period", sa.Text(), nullable=False),
        sa.Column("members", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
    )
    op.create_index("ix_mission_teams_country", "mission_teams", ["country"])
    op.create_index("ix_mission_teams_missionary", "mission_teams", ["missionary"])

    op.create_table(
        "admin_users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("added_by", sa.Text(), nullable=True),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("admin_users")
    op.drop_index("ix_mission_teams_missionary", table_name="mission_teams")
    op.drop_index("ix_mission_teams_country", table_name="mission_teams")
    op.drop_table("mission_teams")
    op.drop_index("ix_survey_questions_role", table_name="survey_questions")
    op.drop_table("survey_questions")
    op.drop_index("ix_evaluations_answers_gin", table_name="mission_evaluations")
    op.drop_index("ix_evaluations_email_created", table_name="mission_evaluations")
    op.drop_index("ix_mission_evaluations_respondent_email", table_name="mission_evaluations")
    op.drop_table("mission_evaluations")
