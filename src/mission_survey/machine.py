"""SurveyStateMachine: navigation, answers and submission for one session.

One instance per respondent session, constructed with its collaborators
(no module-level client).  The machine owns the single ``SurveyState``;
callers read deep copies through :attr:`SurveyStateMachine.state` and
change it only through the transition methods below.

View transitions:

    landing ──start──► role_selection ──select_role──► team_selection
       │                     │                              │
       └─(restored answers)──┴──(role without team)─► survey_form ◄─select_team
                                                          │
                                                 submit (valid)
                                                          ▼
                                                      submitting
                                             ok │              │ remote failure
                                                ▼              ▼
                                             success      survey_form (rolled back)
                                                │
                                             restart ──► role_selection (reset)

Back navigation is reverse-only: role_selection → landing,
team_selection → role_selection, survey_form → team_selection (team
roles) or role_selection.  It is refused from submitting and success.

Every remote call is a suspension point.  While a submit attempt holds the
:class:`SubmissionGuard`, every other transition is refused, so only that
attempt's own completion can move the machine out of ``submitting``.
"""

from __future__ import annotations

import logging
from typing import Any

from mission_survey.constants import (
    ANONYMOUS_RESPONDENT,
    MSG_INCOMPLETE,
    MSG_SUBMIT_FAILED,
)
from mission_survey.drafts import DraftStore
from mission_survey.errors import AnswerTypeError, GatewayError, InvalidTransitionError
from mission_survey.guard import SubmissionGuard
from mission_survey.interfaces import SurveyGateway
from mission_survey.models.answer import Answer, answers_to_wire, decode_answers, parse_answer
from mission_survey.models.enums import Role, ViewState, parse_role
from mission_survey.models.question import Question, TeamInfo
from mission_survey.models.session import (
    Draft,
    Identity,
    PriorSubmission,
    RespondentInfo,
    SubmissionPayload,
    SubmitResult,
    SurveyState,
)
from mission_survey.questions import QuestionCatalog
from mission_survey.validation import sanitize_input, validate

logger = logging.getLogger(__name__)


class SurveyStateMachine:
    """Drives one respondent through the survey.

    Args:
        gateway: remote store used for prior-submission lookup and writes
        drafts: local draft store
        catalog: effective questions and teams
        identity: the authenticated respondent, if already signed in
        guard: submission lock (a fresh one by default)
    """

    def __init__(
        self,
        gateway: SurveyGateway,
        drafts: DraftStore,
        catalog: QuestionCatalog,
        *,
        identity: Identity | None = None,
        guard: SubmissionGuard | None = None,
    ) -> None:
        self._gateway = gateway
        self._drafts = drafts
        self._catalog = catalog
        self._guard = guard or SubmissionGuard()
        self._identity = identity
        self._state = SurveyState()
        # Prior submission linked to the identity; looked up at most once
        # per sign-in.
        self._prior: PriorSubmission | None = None
        self._prior_checked = False
        # Local draft offered for resumption on the current form
        self._pending_draft: Draft | None = None

    # ==================================================================
    # Read-only views
    # ==================================================================

    @property
    def state(self) -> SurveyState:
        return self._state.model_copy(deep=True)

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def questions(self) -> list[Question]:
        """Questions of the selected role (empty before a role is chosen)."""
        return self._catalog.for_role(self._state.role)

    @property
    def teams(self) -> list[TeamInfo]:
        return self._catalog.teams

    @property
    def pending_draft(self) -> Draft | None:
        if self._pending_draft is None:
            return None
        return self._pending_draft.model_copy(deep=True)

    @property
    def submit_locked(self) -> bool:
        return self._guard.locked

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def bootstrap(self) -> None:
        """Load questions and teams, then restore the identity's prior
        submission if there is one.  Remote failures fall back silently."""
        await self._catalog.refresh()
        await self._catalog.load_teams()
        if self._identity is not None:
            await self._restore_prior()

    async def sign_in(self, identity: Identity) -> None:
        """Attach an authenticated identity and restore its prior submission."""
        self._require_idle()
        self._identity = identity
        self._prior = None
        self._prior_checked = False
        await self._restore_prior()

    def sign_out(self) -> None:
        """Forget the identity and tear the state down to its defaults."""
        self._require_idle()
        self._identity = None
        self._prior = None
        self._prior_checked = False
        self._reset(ViewState.LANDING)

    # ==================================================================
    # Forward navigation
    # ==================================================================

    async def start(self) -> SurveyState:
        """landing → role_selection, or straight to the form when restored
        answers and a role are already in memory."""
        self._require_idle()
        self._require_view(ViewState.LANDING, "start")
        state = self._state
        if state.form_data and state.role is not None:
            if state.role.requires_team and state.selected_team is None:
                state.view = ViewState.TEAM_SELECTION
                state.error = None
                return self.state
            await self._enter_form()
        else:
            state.view = ViewState.ROLE_SELECTION
            state.error = None
        return self.state

    async def select_role(self, role: Role | str) -> SurveyState:
        """role_selection → survey_form (no team) or team_selection."""
        self._require_idle()
        self._require_view(ViewState.ROLE_SELECTION, "select a role")
        role = parse_role(role)
        state = self._state

        if state.role is not None and state.role != role:
            # Answers belong to one role's questionnaire
            state.form_data = {}
            state.selected_team = None
            state.invalid_question_ids = []
        state.role = role
        state.error = None

        if role.requires_team:
            state.view = ViewState.TEAM_SELECTION
        else:
            state.selected_team = None
            await self._enter_form()
        return self.state

    async def select_team(self, team: TeamInfo | str) -> SurveyState:
        """team_selection → survey_form."""
        self._require_idle()
        self._require_view(ViewState.TEAM_SELECTION, "select a team")
        if isinstance(team, str):
            found = self._catalog.find_team(team)
            if found is None:
                raise ValueError(f"Team not found: missionary={team}")
            team = found

        state = self._state
        if state.selected_team is not None and state.selected_team.key != team.key:
            state.form_data = {}
            state.invalid_question_ids = []
        state.selected_team = team
        state.error = None
        await self._enter_form()
        return self.state

    # ==================================================================
    # Back navigation
    # ==================================================================

    def back(self) -> SurveyState:
        """Go back one view.  Answers typed so far are kept."""
        self._require_idle()
        state = self._state
        view = state.view

        if view == ViewState.ROLE_SELECTION:
            target = ViewState.LANDING
        elif view == ViewState.TEAM_SELECTION:
            target = ViewState.ROLE_SELECTION
        elif view == ViewState.SURVEY_FORM:
            if state.role is not None and state.role.requires_team:
                target = ViewState.TEAM_SELECTION
            else:
                target = ViewState.ROLE_SELECTION
        else:
            raise InvalidTransitionError(f"Cannot go back from '{view.value}'")

        state.view = target
        state.error = None
        self._pending_draft = None
        return self.state

    # ==================================================================
    # Form editing
    # ==================================================================

    def set_answer(self, qid: str, raw: Any) -> SurveyState:
        """Record one answer, coerced to the question's type, and autosave."""
        question = self._form_question(qid)
        answer = parse_answer(question, raw)
        self._state.form_data[qid] = answer
        self._clear_invalid(qid)
        self._after_edit()
        return self.state

    def clear_answer(self, qid: str) -> SurveyState:
        self._form_question(qid)
        self._state.form_data.pop(qid, None)
        self._after_edit()
        return self.state

    def set_respondent(self, name: str = "", email: str = "") -> SurveyState:
        self._require_idle()
        self._require_view(ViewState.SURVEY_FORM, "edit respondent details")
        self._state.respondent = RespondentInfo(
            name=sanitize_input(name), email=sanitize_input(email),
        )
        self._after_edit()
        return self.state

    def resume_draft(self) -> SurveyState:
        """Load the offered local draft into the form."""
        self._require_idle()
        self._require_view(ViewState.SURVEY_FORM, "resume a draft")
        draft = self._pending_draft
        if draft is None:
            raise InvalidTransitionError("Cannot resume: no draft is pending")
        known = {q.id for q in self.questions}
        state = self._state
        state.form_data = {qid: a for qid, a in draft.form_data.items() if qid in known}
        state.respondent = draft.respondent_info.model_copy()
        self._pending_draft = None
        logger.info("Draft resumed: role=%s, answers=%d", state.role, len(state.form_data))
        return self.state

    def discard_draft(self) -> SurveyState:
        """Drop the offered local draft and delete it from storage."""
        self._require_idle()
        if self._pending_draft is not None and self._state.role is not None:
            self._drafts.remove(self._state.role, self._team_key())
        self._pending_draft = None
        return self.state

    def dismiss_error(self) -> SurveyState:
        self._state.error = None
        return self.state

    # ==================================================================
    # Submission
    # ==================================================================

    async def submit(self) -> SubmitResult:
        """Validate and write the survey.

        A concurrent second call is dropped while the first is in flight.
        On a remote failure the view and answers active before
        ``submitting`` are restored verbatim and ``error`` is set; the lock
        is released whatever happens.
        """
        if not self._guard.acquire():
            logger.warning("Submit dropped: a submission is already in flight")
            return SubmitResult(status="dropped")
        try:
            return await self._submit_locked()
        finally:
            self._guard.release()

    async def _submit_locked(self) -> SubmitResult:
        state = self._state
        if state.view != ViewState.SURVEY_FORM or state.role is None:
            raise InvalidTransitionError(f"Cannot submit from '{state.view.value}'")

        questions = self.questions
        result = validate(questions, state.form_data)
        if not result.is_valid:
            state.invalid_question_ids = list(result.invalid_question_ids)
            state.error = MSG_INCOMPLETE.format(count=len(result.invalid_question_ids))
            logger.info(
                "Submit blocked by validation: %d invalid, first=%s",
                len(result.invalid_question_ids), result.first_invalid_id,
            )
            return SubmitResult(status="invalid", invalid_question_ids=result.invalid_question_ids)

        # Recovery snapshot, taken before leaving the form
        snapshot_view = state.view
        snapshot_form = {qid: a.model_copy(deep=True) for qid, a in state.form_data.items()}

        payload = self._build_payload(questions)
        existing_id = state.existing_submission_id
        state.view = ViewState.SUBMITTING
        state.error = None
        state.invalid_question_ids = []

        try:
            if existing_id is not None:
                await self._gateway.update_submission(existing_id, payload)
                submission_id = existing_id
            else:
                submission_id = await self._gateway.insert_submission(payload)
        except Exception:
            logger.exception("Submission failed: role=%s, update=%s", state.role, existing_id is not None)
            state.view = snapshot_view
            state.form_data = snapshot_form
            state.error = MSG_SUBMIT_FAILED
            return SubmitResult(status="failed")

        role, team_key = state.role, self._team_key()
        self._drafts.remove(role, team_key)
        self._drafts.mark_submitted(role, team_key)

        state.existing_submission_id = submission_id
        if self._identity is not None and self._identity.email:
            self._prior = PriorSubmission(
                id=submission_id,
                role=payload.role,
                team_missionary=payload.team_missionary,
                answers=payload.answers,
            )
        self._pending_draft = None
        state.view = ViewState.SUCCESS
        logger.info(
            "Submission %s: id=%s, role=%s, team=%s",
            "updated" if existing_id is not None else "inserted",
            submission_id, role.value, team_key,
        )
        return SubmitResult(status="submitted", submission_id=submission_id)

    def restart(self) -> SurveyState:
        """success → role_selection with a full state reset."""
        self._require_idle()
        self._require_view(ViewState.SUCCESS, "restart")
        self._reset(ViewState.ROLE_SELECTION)
        return self.state

    # ==================================================================
    # Internal: transitions
    # ==================================================================

    async def _enter_form(self) -> None:
        """Switch to survey_form and apply the state-restoring side effects.

        The identity's prior submission is looked up before the view
        changes, so the form never accepts answers or a submit while the
        insert-or-update decision is still unknown.  A prior submission
        matching the role (and team) fills an empty form; otherwise a local
        draft not yet submitted this session is offered for resumption.
        """
        state = self._state
        origin, role, team = state.view, state.role, state.selected_team

        await self._ensure_prior()

        # The lookup may have suspended; user interaction can have moved on.
        if (
            self._state is not state
            or self._guard.locked
            or state.view != origin
            or state.role != role
            or state.selected_team != team
        ):
            return

        state.view = ViewState.SURVEY_FORM
        state.error = None
        self._pending_draft = None

        prior = self._prior
        if prior is not None:
            state.existing_submission_id = prior.id
            if not state.form_data and self._prior_matches(prior):
                state.form_data = decode_answers(self.questions, prior.answers)
                logger.info("Restored prior submission %s into the form", prior.id)
                return

        self._pending_draft = self._offer_draft()

    async def _ensure_prior(self) -> None:
        if self._identity is None or self._prior_checked:
            return
        identity = self._identity
        try:
            prior = await self._gateway.lookup_prior_submission(identity)
        except GatewayError as exc:
            logger.warning("Prior submission lookup failed: %s", exc)
            return
        # Signed out or switched identity while the lookup was in flight
        if self._identity != identity:
            return
        self._prior = prior
        self._prior_checked = True

    async def _restore_prior(self) -> None:
        """Fill role, team and answers from the identity's prior submission."""
        await self._ensure_prior()
        prior = self._prior
        state = self._state
        if prior is None or state.form_data or self._guard.locked:
            return
        try:
            role = parse_role(prior.role)
        except AnswerTypeError:
            logger.warning("Prior submission %s has unknown role %r", prior.id, prior.role)
            return

        state.role = role
        state.selected_team = self._catalog.find_team(prior.team_missionary) if role.requires_team else None
        state.form_data = decode_answers(self._catalog.for_role(role), prior.answers)
        state.existing_submission_id = prior.id
        logger.info("Prior submission %s restored for %s", prior.id, role.value)

    def _prior_matches(self, prior: PriorSubmission) -> bool:
        state = self._state
        try:
            role = parse_role(prior.role)
        except AnswerTypeError:
            return False
        if role != state.role:
            return False
        if role.requires_team:
            return state.selected_team is not None and state.selected_team.key == prior.team_missionary
        return True

    def _offer_draft(self) -> Draft | None:
        role, team_key = self._state.role, self._team_key()
        if role is None or self._drafts.was_submitted(role, team_key):
            return None
        draft = self._drafts.load(role, team_key)
        if draft is None or not draft.form_data:
            return None
        return draft

    def _reset(self, view: ViewState) -> None:
        self._state = SurveyState(view=view)
        self._pending_draft = None

    # ==================================================================
    # Internal: helpers
    # ==================================================================

    def _require_idle(self) -> None:
        if self._guard.locked:
            raise InvalidTransitionError(
                "Cannot change the survey while a submission is in flight"
            )

    def _require_view(self, expected: ViewState, action: str) -> None:
        view = self._state.view
        if view != expected:
            raise InvalidTransitionError(
                f"Cannot {action} from '{view.value}', expected '{expected.value}'"
            )

    def _form_question(self, qid: str) -> Question:
        self._require_idle()
        self._require_view(ViewState.SURVEY_FORM, "edit answers")
        question = self._catalog.question(self._state.role, qid)
        if question is None:
            raise AnswerTypeError(f"Question not found: qid={qid}")
        return question

    def _clear_invalid(self, qid: str) -> None:
        ids = self._state.invalid_question_ids
        if qid in ids:
            ids.remove(qid)

    def _after_edit(self) -> None:
        # The respondent chose to start over instead of resuming
        self._pending_draft = None
        state = self._state
        if state.role is not None:
            self._drafts.save(state.role, self._team_key(), state.form_data, state.respondent)

    def _team_key(self) -> str | None:
        team = self._state.selected_team
        return team.key if team is not None else None

    def _build_payload(self, questions: list[Question]) -> SubmissionPayload:
        state = self._state
        team = state.selected_team
        identity = self._identity
        known = {q.id for q in questions}
        answers: dict[str, Answer] = {
            qid: a for qid, a in state.form_data.items() if qid in known
        }
        name = state.respondent.name or (identity.name if identity else None) or ANONYMOUS_RESPONDENT
        email = state.respondent.email or (identity.email if identity else None) or ""
        return SubmissionPayload(
            role=state.role.label,
            team_missionary=team.missionary if team else None,
            team_dept=team.dept if team else None,
            team_country=team.country if team else None,
            team_leader=team.leader if team else None,
            respondent_name=name,
            respondent_email=email,
            answers=answers_to_wire(answers),
        )
