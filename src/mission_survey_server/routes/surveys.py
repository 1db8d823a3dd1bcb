"""Survey session endpoints: one state machine per ``survey_id``.

Every endpoint returns the full ``SurveyView`` so a client can render the
current screen from a single response.  Illegal transitions surface as
409, unknown sessions or questions as 404, malformed answers as 400.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from mission_survey.models.question import Question
from mission_survey.models.session import Identity, SubmitResult, SurveyState
from mission_survey.validation import is_valid_email

from mission_survey_server.dependencies import get_identity, get_registry, get_survey
from mission_survey_server.registry import SessionRegistry, SurveySession

router = APIRouter(prefix="/surveys", tags=["surveys"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class RoleRequest(BaseModel):
    role: str


class TeamRequest(BaseModel):
    missionary: str


class AnswerRequest(BaseModel):
    """``value`` null clears the answer."""
    question_id: str
    value: Any = None


class RespondentRequest(BaseModel):
    name: str = ""
    email: str = ""


class DraftSummary(BaseModel):
    saved_at: int
    saved_at_display: str | None = None
    answer_count: int


class SurveyView(BaseModel):
    survey_id: str
    state: SurveyState
    questions: list[Question]
    pending_draft: DraftSummary | None = None
    submit_locked: bool
    signed_in: bool


class SubmitResponse(BaseModel):
    result: SubmitResult
    view: SurveyView


def _view(session: SurveySession) -> SurveyView:
    machine = session.machine
    state = machine.state
    summary = None
    draft = machine.pending_draft
    if draft is not None and state.role is not None:
        team_key = state.selected_team.key if state.selected_team else None
        summary = DraftSummary(
            saved_at=draft.saved_at,
            saved_at_display=session.drafts.saved_at_display(state.role, team_key),
            answer_count=len(draft.form_data),
        )
    return SurveyView(
        survey_id=session.id,
        state=state,
        questions=machine.questions,
        pending_draft=summary,
        submit_locked=machine.submit_locked,
        signed_in=machine.identity is not None,
    )


# ------------------------------------------------------------------
# Session lifecycle
# ------------------------------------------------------------------

@router.post("", status_code=201)
async def create_survey(
    registry: SessionRegistry = Depends(get_registry),
    identity: Identity | None = Depends(get_identity),
) -> SurveyView:
    """Open a survey session.  A signed-in caller's prior submission is
    restored immediately."""
    session = await registry.create(identity)
    return _view(session)


@router.get("/{survey_id}")
async def get_survey_view(session: SurveySession = Depends(get_survey)) -> SurveyView:
    return _view(session)


@router.delete("/{survey_id}", status_code=204)
async def close_survey(
    session: SurveySession = Depends(get_survey),
    registry: SessionRegistry = Depends(get_registry),
) -> None:
    registry.remove(session.id)


@router.post("/{survey_id}/sign-in")
async def sign_in(
    session: SurveySession = Depends(get_survey),
    registry: SessionRegistry = Depends(get_registry),
    identity: Identity | None = Depends(get_identity),
) -> SurveyView:
    """Attach the header identity to an anonymous session."""
    if identity is None:
        raise HTTPException(status_code=401, detail="X-User-ID header is required")
    await session.machine.sign_in(identity)
    registry.claim(session, identity)
    return _view(session)


@router.post("/{survey_id}/sign-out")
async def sign_out(
    session: SurveySession = Depends(get_survey),
    registry: SessionRegistry = Depends(get_registry),
) -> SurveyView:
    session.machine.sign_out()
    registry.claim(session, None)
    return _view(session)


# ------------------------------------------------------------------
# Navigation
# ------------------------------------------------------------------

@router.post("/{survey_id}/start")
async def start(session: SurveySession = Depends(get_survey)) -> SurveyView:
    await session.machine.start()
    return _view(session)


@router.post("/{survey_id}/role")
async def select_role(
    body: RoleRequest,
    session: SurveySession = Depends(get_survey),
) -> SurveyView:
    await session.machine.select_role(body.role)
    return _view(session)


@router.post("/{survey_id}/team")
async def select_team(
    body: TeamRequest,
    session: SurveySession = Depends(get_survey),
) -> SurveyView:
    await session.machine.select_team(body.missionary)
    return _view(session)


@router.post("/{survey_id}/back")
async def back(session: SurveySession = Depends(get_survey)) -> SurveyView:
    session.machine.back()
    return _view(session)


@router.post("/{survey_id}/restart")
async def restart(session: SurveySession = Depends(get_survey)) -> SurveyView:
    session.machine.restart()
    return _view(session)


# ------------------------------------------------------------------
# Form editing
# ------------------------------------------------------------------

@router.post("/{survey_id}/answers")
async def set_answer(
    body: AnswerRequest,
    session: SurveySession = Depends(get_survey),
) -> SurveyView:
    if body.value is None:
        session.machine.clear_answer(body.question_id)
    else:
        session.machine.set_answer(body.question_id, body.value)
    return _view(session)


@router.post("/{survey_id}/respondent")
async def set_respondent(
    body: RespondentRequest,
    session: SurveySession = Depends(get_survey),
) -> SurveyView:
    if body.email and not is_valid_email(body.email):
        raise ValueError(f"Invalid email format: {body.email!r}")
    session.machine.set_respondent(body.name, body.email)
    return _view(session)


@router.post("/{survey_id}/draft/resume")
async def resume_draft(session: SurveySession = Depends(get_survey)) -> SurveyView:
    session.machine.resume_draft()
    return _view(session)


@router.post("/{survey_id}/draft/discard")
async def discard_draft(session: SurveySession = Depends(get_survey)) -> SurveyView:
    session.machine.discard_draft()
    return _view(session)


@router.delete("/{survey_id}/error")
async def dismiss_error(session: SurveySession = Depends(get_survey)) -> SurveyView:
    session.machine.dismiss_error()
    return _view(session)


# ------------------------------------------------------------------
# Submission
# ------------------------------------------------------------------

@router.post("/{survey_id}/submit")
async def submit(session: SurveySession = Depends(get_survey)) -> SubmitResponse:
    """Validate and write the survey.

    Always 200: ``result.status`` tells submitted / invalid / dropped /
    failed apart, and ``view.state.error`` carries the user-facing message.
    """
    result = await session.machine.submit()
    return SubmitResponse(result=result, view=_view(session))

