"""Session, draft and submission models: the contract between the state
machine, its collaborators and API callers.

  - SurveyState: the single mutable state of one survey session
  - Draft: locally persisted in-progress answers
  - SubmissionPayload: the only data sent to the remote store on submit
  - PriorSubmission: the latest remote record linked to an identity
  - SubmitResult: outcome of one submit attempt
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mission_survey.models.answer import Answer
from mission_survey.models.enums import Role, ViewState
from mission_survey.models.question import TeamInfo


class Identity(BaseModel):
    """The authenticated respondent, as reported by the auth provider."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None


class RespondentInfo(BaseModel):
    name: str = ""
    email: str = ""


class SurveyState(BaseModel):
    """Navigation state, answers and submission identity of one session.

    Owned by :class:`~mission_survey.machine.SurveyStateMachine`; callers
    receive deep copies.
    """

    view: ViewState = ViewState.LANDING
    role: Optional[Role] = None
    selected_team: Optional[TeamInfo] = None
    form_data: dict[str, Answer] = Field(default_factory=dict)
    respondent: RespondentInfo = Field(default_factory=RespondentInfo)
    error: Optional[str] = None
    # Questions flagged by the last failed validation, in question order
    invalid_question_ids: list[str] = Field(default_factory=list)
    existing_submission_id: Optional[str] = None


class Draft(BaseModel):
    """Locally persisted in-progress answers.

    Serialized with camelCase keys:
    ``{formData, respondentInfo, savedAt, role?, teamMissionary?}``.
    ``saved_at`` is epoch milliseconds.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    form_data: dict[str, Answer]
    respondent_info: RespondentInfo
    saved_at: int
    role: Optional[Role] = None
    team_missionary: Optional[str] = None


class SubmissionPayload(BaseModel):
    """Record written to ``mission_evaluations`` on submit."""

    role: str
    team_missionary: Optional[str] = None
    team_dept: Optional[str] = None
    team_country: Optional[str] = None
    team_leader: Optional[str] = None
    respondent_name: str
    respondent_email: str
    answers: dict[str, Any]


class PriorSubmission(BaseModel):
    """Latest remote submission linked to an identity's email."""

    id: str
    role: str
    team_missionary: Optional[str] = None
    answers: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class SubmitResult(BaseModel):
    """Outcome of one ``submit()`` call.

    ``status``:
      - submitted: remote write confirmed, view is ``success``
      - invalid: validation failed, no transition
      - dropped: another submit was already in flight
      - failed: remote write failed, pre-submit state restored
    """

    status: Literal["submitted", "invalid", "dropped", "failed"]
    invalid_question_ids: list[str] = Field(default_factory=list)
    submission_id: Optional[str] = None
