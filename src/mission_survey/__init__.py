"""mission_survey: Short-term mission survey SDK.

Public API:
    SurveyStateMachine - drives one respondent from landing to success
    QuestionCatalog    - effective questions and teams (remote with built-in fallback)
    BuiltinCatalog     - static questionnaires and teams packaged as YAML
    DraftStore         - local draft persistence with 24 h expiry
    SubmissionGuard    - single-flight lock for submit
    SurveyState        - the state a UI renders
    SubmitResult       - outcome of one submit attempt

Collaborator interfaces:
    SurveyGateway      - ABC for the remote store
    KeyValueStorage    - ABC for local string key-value storage
    InMemorySurveyGateway - dict-backed SurveyGateway
    MemoryStorage / JsonFileStorage - KeyValueStorage backends

Validation helpers:
    validate, is_valid_email, sanitize_input, is_empty
"""

from mission_survey.drafts import DraftStore
from mission_survey.errors import (
    AnswerTypeError,
    GatewayError,
    InvalidTransitionError,
    SessionNotFoundError,
    StorageUnavailableError,
    SurveyError,
)
from mission_survey.guard import SubmissionGuard
from mission_survey.interfaces import KeyValueStorage, SurveyGateway
from mission_survey.machine import SurveyStateMachine
from mission_survey.memory import InMemorySurveyGateway
from mission_survey.models import (
    Answer,
    Draft,
    Identity,
    MultiSelectAnswer,
    PriorSubmission,
    Question,
    RespondentInfo,
    Role,
    ScaleAnswer,
    Selection,
    SubmissionPayload,
    SubmitResult,
    SurveyState,
    TeamInfo,
    TextAnswer,
    ViewState,
)
from mission_survey.questions import BuiltinCatalog, QuestionCatalog
from mission_survey.storage import JsonFileStorage, MemoryStorage
from mission_survey.validation import (
    ValidationResult,
    is_empty,
    is_valid_email,
    sanitize_input,
    validate,
)

__all__ = [
    # Machine & catalog
    "SurveyStateMachine",
    "QuestionCatalog",
    "BuiltinCatalog",
    "DraftStore",
    "SubmissionGuard",
    # Collaborators
    "SurveyGateway",
    "KeyValueStorage",
    "InMemorySurveyGateway",
    "MemoryStorage",
    "JsonFileStorage",
    # Models
    "Answer",
    "Draft",
    "Identity",
    "MultiSelectAnswer",
    "PriorSubmission",
    "Question",
    "RespondentInfo",
    "Role",
    "ScaleAnswer",
    "Selection",
    "SubmissionPayload",
    "SubmitResult",
    "SurveyState",
    "TeamInfo",
    "TextAnswer",
    "ViewState",
    # Validation
    "ValidationResult",
    "validate",
    "is_valid_email",
    "sanitize_input",
    "is_empty",
    # Errors
    "SurveyError",
    "InvalidTransitionError",
    "AnswerTypeError",
    "SessionNotFoundError",
    "StorageUnavailableError",
    "GatewayError",
]
