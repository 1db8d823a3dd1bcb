"""InMemorySurveyGateway: process-local SurveyGateway.

Backs the server's preview mode (``SURVEY_GATEWAY=memory``) and the test
suite.  Rows live in plain dicts; nothing survives a restart.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Iterable

from mission_survey.errors import GatewayError
from mission_survey.interfaces import SurveyGateway
from mission_survey.models.question import StoredQuestion, TeamInfo
from mission_survey.models.session import Identity, PriorSubmission, SubmissionPayload


class InMemorySurveyGateway(SurveyGateway):
    """Dict-backed remote store.

    Args:
        questions: initial question rows (empty means "no remote override")
        teams: initial team rows
        admin_emails: emails treated as administrators
    """

    def __init__(
        self,
        *,
        questions: Iterable[StoredQuestion] = (),
        teams: Iterable[TeamInfo] = (),
        admin_emails: Iterable[str] = (),
    ) -> None:
        self.questions: list[StoredQuestion] = list(questions)
        self.teams: list[TeamInfo] = list(teams)
        self.admin_emails: set[str] = {e.lower() for e in admin_emails}
        # submission id -> (created_at, payload)
        self.submissions: dict[str, tuple[datetime, SubmissionPayload]] = {}
        self.insert_count = 0
        self.update_count = 0

    async def lookup_prior_submission(self, identity: Identity) -> PriorSubmission | None:
        if not identity.email:
            return None
        matches = [
            (created_at, sid, payload)
            for sid, (created_at, payload) in self.submissions.items()
            if payload.respondent_email == identity.email
        ]
        if not matches:
            return None
        created_at, sid, payload = max(matches, key=lambda m: m[0])
        return PriorSubmission(
            id=sid,
            role=payload.role,
            team_missionary=payload.team_missionary,
            answers=dict(payload.answers),
            created_at=created_at,
        )

    async def insert_submission(self, payload: SubmissionPayload) -> str:
        sid = str(uuid.uuid4())
        self.submissions[sid] = (datetime.now(timezone.utc), payload)
        self.insert_count += 1
        return sid

    async def update_submission(self, submission_id: str, payload: SubmissionPayload) -> None:
        if submission_id not in self.submissions:
            raise GatewayError(f"Submission not found: id={submission_id}")
        created_at, _ = self.submissions[submission_id]
        self.submissions[submission_id] = (created_at, payload)
        self.update_count += 1

    async def list_questions(self, *, include_hidden: bool = False) -> list[StoredQuestion]:
        rows = [q for q in self.questions if include_hidden or not q.is_hidden]
        return sorted(rows, key=lambda q: q.sort_order)

    async def list_teams(self) -> list[TeamInfo]:
        return sorted(self.teams, key=lambda t: t.country)

    async def is_admin(self, email: str) -> bool:
        return email.lower() in self.admin_emails
