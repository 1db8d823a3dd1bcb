"""ORM models for mission_survey_db."""

from mission_survey_db.models.base import Base
from mission_survey_db.models.evaluation import (
    AdminUser,
    MissionEvaluation,
    MissionTeam,
    SurveyQuestion,
)

__all__ = ["Base", "AdminUser", "MissionEvaluation", "MissionTeam", "SurveyQuestion"]
