"""ORM models for the survey tables.

  - MissionEvaluation: one submitted survey; ``answers`` is a JSONB map
    keyed by question id
  - SurveyQuestion: editable question rows (``role`` may be ``common``)
  - MissionTeam: short-term mission team reference data
  - AdminUser: emails allowed into the admin area
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from mission_survey.constants import (
    TABLE_ADMIN_USERS,
    TABLE_EVALUATIONS,
    TABLE_QUESTIONS,
    TABLE_TEAMS,
)
from mission_survey_db.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MissionEvaluation(Base):
    """One row per submitted survey.  Resubmission overwrites in place."""

    __tablename__ = TABLE_EVALUATIONS

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Respondent ---
    # Korean role label (선교사 / 인솔자 / 단기선교 팀원)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    respondent_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Links a submission to an authenticated identity
    respondent_email: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)

    # --- Team (null for roles without a team) ---
    team_missionary: Mapped[str | None] = mapped_column(Text, nullable=True)
    team_dept: Mapped[str | None] = mapped_column(Text, nullable=True)
    team_country: Mapped[str | None] = mapped_column(Text, nullable=True)
    team_leader: Mapped[str | None] = mapped_column(Text, nullable=True)

    # qid -> int | str | [{"option_id", "free_text"}]
    answers: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    response_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="completed",
        server_default=text("'completed'"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        Index("ix_evaluations_email_created", "respondent_email", "created_at"),
        Index("ix_evaluations_answers_gin", "answers", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return (
            f"<MissionEvaluation(id={self.id!s}, role={self.role!r}, "
            f"team={self.team_missionary!r}, email={self.respondent_email!r})>"
        )


class SurveyQuestion(Base):
    __tablename__ = TABLE_QUESTIONS

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_hidden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "role IN ('missionary', 'leader', 'team_member', 'common')",
            name="ck_question_role",
        ),
        CheckConstraint(
            "type IN ('scale', 'text', 'multi_select')",
            name="ck_question_type",
        ),
    )


class MissionTeam(Base):
    __tablename__ = TABLE_TEAMS

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    dept: Mapped[str] = mapped_column(Text, nullable=False)
    leader: Mapped[str] = mapped_column(Text, nullable=False)
    country: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    # Team key; not unique, one missionary can host several teams
    missionary: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    period: Mapped[str] = mapped_column(Text, nullable=False)
    members: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")


class AdminUser(Base):
    __tablename__ = TABLE_ADMIN_USERS

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    # Stored lowercase
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    added_by: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow,
    )
