"""Pydantic models for the survey SDK."""

from mission_survey.models.answer import (
    Answer,
    MultiSelectAnswer,
    ScaleAnswer,
    Selection,
    TextAnswer,
    answer_to_wire,
    answers_to_wire,
    decode_answers,
    parse_answer,
)
from mission_survey.models.enums import Role, ViewState, parse_role
from mission_survey.models.question import (
    MultiSelectQuestion,
    Question,
    ScaleQuestion,
    StoredQuestion,
    TeamInfo,
    TextQuestion,
    sort_teams,
)
from mission_survey.models.session import (
    Draft,
    Identity,
    PriorSubmission,
    RespondentInfo,
    SubmissionPayload,
    SubmitResult,
    SurveyState,
)

__all__ = [
    # Enums
    "Role",
    "ViewState",
    "parse_role",
    # Questions & teams
    "Question",
    "ScaleQuestion",
    "TextQuestion",
    "MultiSelectQuestion",
    "StoredQuestion",
    "TeamInfo",
    "sort_teams",
    # Answers
    "Answer",
    "ScaleAnswer",
    "TextAnswer",
    "MultiSelectAnswer",
    "Selection",
    "parse_answer",
    "decode_answers",
    "answer_to_wire",
    "answers_to_wire",
    # Session
    "Draft",
    "Identity",
    "PriorSubmission",
    "RespondentInfo",
    "SubmissionPayload",
    "SubmitResult",
    "SurveyState",
]
