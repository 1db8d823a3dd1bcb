"""SqlSurveyGateway: SurveyGateway backed by PostgreSQL.

Each call opens its own ``AsyncSession`` from the factory and commits
writes before returning, so a confirmed ``insert_submission`` is durable.
Any ``SQLAlchemyError`` is logged and re-raised as ``GatewayError``.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mission_survey.errors import GatewayError
from mission_survey.interfaces import SurveyGateway
from mission_survey.models.question import StoredQuestion, TeamInfo
from mission_survey.models.session import Identity, PriorSubmission, SubmissionPayload
from mission_survey_db.models.evaluation import MissionTeam, SurveyQuestion
from mission_survey_db.repository import SurveyRepository

logger = logging.getLogger(__name__)


def _question_from_row(row: SurveyQuestion) -> StoredQuestion:
    return StoredQuestion(
        id=row.id,
        role=row.role,
        type=row.type,
        question_text=row.question_text,
        options=list(row.options) if row.options else None,
        sort_order=row.sort_order,
        is_hidden=row.is_hidden,
    )


def _team_from_row(row: MissionTeam) -> TeamInfo:
    return TeamInfo(
        id=str(row.id),
        dept=row.dept,
        leader=row.leader,
        country=row.country,
        missionary=row.missionary,
        period=row.period,
        members=row.members,
        content=row.content,
    )


class SqlSurveyGateway(SurveyGateway):
    """Remote store on the ``mission_*`` / ``survey_questions`` tables.

    Args:
        session_factory: async session factory (see ``engine.build_session_factory``)
        admin_email: super-admin email accepted without an ``admin_users`` row
        repo: repository instance (a fresh one by default)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        admin_email: str | None = None,
        repo: SurveyRepository | None = None,
    ) -> None:
        self._factory = session_factory
        self._admin_email = admin_email.lower() if admin_email else None
        self._repo = repo or SurveyRepository()

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        """Open a session; commit on success, roll back and wrap DB errors."""
        async with self._factory() as db:
            try:
                yield db
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Database error during %s: %s", action, exc)
                raise GatewayError(f"Database error during {action}") from exc

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    async def lookup_prior_submission(self, identity: Identity) -> PriorSubmission | None:
        if not identity.email:
            return None
        async with self._session("lookup_prior_submission") as db:
            row = await self._repo.latest_by_email(db, identity.email)
            if row is None:
                return None
            return PriorSubmission(
                id=str(row.id),
                role=row.role,
                team_missionary=row.team_missionary,
                answers=dict(row.answers or {}),
                created_at=row.created_at,
            )

    async def insert_submission(self, payload: SubmissionPayload) -> str:
        async with self._session("insert_submission") as db:
            row = await self._repo.create_evaluation(db, **payload.model_dump())
            submission_id = str(row.id)
        logger.info("Inserted evaluation %s (role=%s)", submission_id, payload.role)
        return submission_id

    async def update_submission(self, submission_id: str, payload: SubmissionPayload) -> None:
        try:
            pk = uuid.UUID(submission_id)
        except ValueError as exc:
            raise GatewayError(f"Submission not found: id={submission_id}") from exc
        async with self._session("update_submission") as db:
            row = await self._repo.get_evaluation(db, pk)
            if row is None:
                raise GatewayError(f"Submission not found: id={submission_id}")
            await self._repo.update_evaluation(db, row, **payload.model_dump())
        logger.info("Updated evaluation %s (role=%s)", submission_id, payload.role)

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    async def list_questions(self, *, include_hidden: bool = False) -> list[StoredQuestion]:
        async with self._session("list_questions") as db:
            rows = await self._repo.list_questions(db, include_hidden=include_hidden)
            return [_question_from_row(r) for r in rows]

    async def list_teams(self) -> list[TeamInfo]:
        async with self._session("list_teams") as db:
            rows = await self._repo.list_teams(db)
            return [_team_from_row(r) for r in rows]

    async def is_admin(self, email: str) -> bool:
        if not email:
            return False
        if self._admin_email and email.lower() == self._admin_email:
            return True
        async with self._session("is_admin") as db:
            return await self._repo.is_admin_email(db, email)
