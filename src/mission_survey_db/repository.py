"""Async CRUD repository for the survey tables.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries: writes ``flush()`` but never ``commit()``.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mission_survey_db.models.evaluation import (
    AdminUser,
    MissionEvaluation,
    MissionTeam,
    SurveyQuestion,
)


class SurveyRepository:
    """Async read/write operations on evaluations, questions, teams and admins."""

    # ------------------------------------------------------------------
    # Evaluations
    # ------------------------------------------------------------------

    async def create_evaluation(self, db: AsyncSession, **fields: Any) -> MissionEvaluation:
        """Insert a submission row and return it (id populated)."""
        row = MissionEvaluation(**fields)
        db.add(row)
        await db.flush()
        return row

    async def get_evaluation(self, db: AsyncSession, evaluation_id: uuid.UUID) -> MissionEvaluation | None:
        return await db.get(MissionEvaluation, evaluation_id)

    async def update_evaluation(
        self, db: AsyncSession, row: MissionEvaluation, **fields: Any
    ) -> MissionEvaluation:
        """Overwrite the given columns of an existing submission."""
        for name, value in fields.items():
            setattr(row, name, value)
        row.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return row

    async def latest_by_email(self, db: AsyncSession, email: str) -> MissionEvaluation | None:
        """Most recent submission linked to ``email``."""
        stmt = (
            select(MissionEvaluation)
            .where(MissionEvaluation.respondent_email == email)
            .order_by(MissionEvaluation.created_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    async def list_questions(
        self, db: AsyncSession, *, include_hidden: bool = False
    ) -> list[SurveyQuestion]:
        stmt = select(SurveyQuestion).order_by(SurveyQuestion.sort_order, SurveyQuestion.id)
        if not include_hidden:
            stmt = stmt.where(SurveyQuestion.is_hidden.is_(False))
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count_questions(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(SurveyQuestion))
        return int(result.scalar_one())

    async def add_questions(self, db: AsyncSession, rows: Iterable[dict[str, Any]]) -> int:
        count = 0
        for fields in rows:
            db.add(SurveyQuestion(**fields))
            count += 1
        await db.flush()
        return count

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    async def list_teams(self, db: AsyncSession) -> list[MissionTeam]:
        stmt = select(MissionTeam).order_by(MissionTeam.country, MissionTeam.missionary)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count_teams(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(MissionTeam))
        return int(result.scalar_one())

    async def add_teams(self, db: AsyncSession, rows: Iterable[dict[str, Any]]) -> int:
        count = 0
        for fields in rows:
            db.add(MissionTeam(**fields))
            count += 1
        await db.flush()
        return count

    # ------------------------------------------------------------------
    # Admins
    # ------------------------------------------------------------------

    async def is_admin_email(self, db: AsyncSession, email: str) -> bool:
        stmt = select(AdminUser.id).where(AdminUser.email == email.lower()).limit(1)
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None
