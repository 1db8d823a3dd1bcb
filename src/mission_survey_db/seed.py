"""Reference data seeding CLI: ``mission-survey-seed``.

Copies the built-in questionnaires and team list into empty
``survey_questions`` / ``mission_teams`` tables so administrators can
edit them remotely.  Tables that already hold rows are left untouched
unless ``--force`` is given (which only adds missing rows).

Examples::

    # Seed both tables if they are empty
    mission-survey-seed

    # Only the team list
    mission-survey-seed --only teams
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncSession

from mission_survey.questions import BuiltinCatalog
from mission_survey_db.engine import build_engine, build_session_factory
from mission_survey_db.repository import SurveyRepository

logger = logging.getLogger(__name__)


async def seed_reference_data(
    db: AsyncSession,
    builtin: BuiltinCatalog,
    *,
    questions: bool = True,
    teams: bool = True,
    force: bool = False,
    repo: SurveyRepository | None = None,
) -> dict[str, int]:
    """Insert built-in rows into empty tables.  Returns rows added per table.

    The caller commits.
    """
    repo = repo or SurveyRepository()
    added = {"questions": 0, "teams": 0}

    if questions:
        if force or await repo.count_questions(db) == 0:
            existing = {q.id for q in await repo.list_questions(db, include_hidden=True)}
            rows = [
                q.model_dump() for q in builtin.stored_questions() if q.id not in existing
            ]
            added["questions"] = await repo.add_questions(db, rows)
        else:
            logger.info("survey_questions is not empty; skipping")

    if teams:
        if force or await repo.count_teams(db) == 0:
            existing = {t.missionary for t in await repo.list_teams(db)}
            rows = [
                t.model_dump(exclude={"id"}) for t in builtin.teams if t.missionary not in existing
            ]
            added["teams"] = await repo.add_teams(db, rows)
        else:
            logger.info("mission_teams is not empty; skipping")

    return added


async def run_seed(*, questions: bool = True, teams: bool = True, force: bool = False) -> dict[str, int]:
    builtin = BuiltinCatalog.load()
    engine = build_engine()
    factory = build_session_factory(engine)
    try:
        async with factory() as db:
            added = await seed_reference_data(
                db, builtin, questions=questions, teams=teams, force=force,
            )
            await db.commit()
        logger.info("Seed complete: %s", added)
        return added
    finally:
        await engine.dispose()


def cli() -> None:
    """Console-script entry point: ``mission-survey-seed``."""
    parser = argparse.ArgumentParser(
        prog="mission-survey-seed",
        description="Seed survey questions and mission teams from the built-in data.",
    )
    parser.add_argument(
        "--only",
        choices=["questions", "teams"],
        default=None,
        help="Seed a single table (default: both)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Add missing built-in rows even when the table is not empty",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    added = asyncio.run(run_seed(
        questions=args.only in (None, "questions"),
        teams=args.only in (None, "teams"),
        force=args.force,
    ))
    print(f"Questions added: {added['questions']}, teams added: {added['teams']}")
    sys.exit(0)
