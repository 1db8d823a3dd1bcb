"""mission_survey_db: PostgreSQL persistence for survey submissions.

Provides the ORM models, engine and session factory builders, the repository
and ``SqlSurveyGateway``, the ``SurveyGateway`` implementation the server
uses when ``SURVEY_GATEWAY=sql``.
"""

from mission_survey_db.engine import build_engine, build_session_factory
from mission_survey_db.gateway import SqlSurveyGateway
from mission_survey_db.models import AdminUser, MissionEvaluation, MissionTeam, SurveyQuestion
from mission_survey_db.repository import SurveyRepository

__all__ = [
    "AdminUser",
    "MissionEvaluation",
    "MissionTeam",
    "SurveyQuestion",
    "SqlSurveyGateway",
    "SurveyRepository",
    "build_engine",
    "build_session_factory",
]
