"""Question and team sources.

BuiltinCatalog loads the static questionnaires and team list packaged
under ``mission_survey/data/``.  QuestionCatalog layers the remote store
on top of it:

    remote rows (non-hidden, by sort_order)
        -> partition by role + "common" bucket
        -> leader / team_member: role questions then common questions
        -> any role left empty falls back to its built-in list

Usage::

    builtin = BuiltinCatalog.load()
    catalog = QuestionCatalog(gateway, builtin)
    await catalog.refresh()
    await catalog.load_teams()
    questions = catalog.for_role(Role.LEADER)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from mission_survey.constants import COMMON_ROLE_KEY, SELF_TEAM_MARKER
from mission_survey.errors import GatewayError
from mission_survey.interfaces import SurveyGateway
from mission_survey.models.enums import Role
from mission_survey.models.question import Question, StoredQuestion, TeamInfo, question_adapter

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

# Roles whose questionnaire ends with the shared "common" questions.
_ROLES_WITH_COMMON = (Role.LEADER, Role.TEAM_MEMBER)


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# BuiltinCatalog
# ---------------------------------------------------------------------------

class BuiltinCatalog:
    """Static questionnaires and teams.

    Attributes populated by :meth:`load`:

        questions - dict[Role, list[Question]] (common questions included)
        common    - list[Question]
        teams     - list[TeamInfo]
    """

    def __init__(self, data_dir: str | Path | None = None) -> None:
        self._base = Path(data_dir) if data_dir is not None else DATA_DIR
        self.questions: dict[Role, list[Question]] = {}
        self.common: list[Question] = []
        self.teams: list[TeamInfo] = []
        # Role-only questions, without the common tail (for seeding)
        self._own: dict[Role, list[Question]] = {}

    @classmethod
    def load(cls, data_dir: str | Path | None = None) -> "BuiltinCatalog":
        catalog = cls(data_dir)
        catalog._load_questions()
        catalog._load_teams()
        logger.info(
            "BuiltinCatalog loaded: %s questions, %d teams",
            {r.value: len(qs) for r, qs in catalog.questions.items()},
            len(catalog.teams),
        )
        return catalog

    def _load_questions(self) -> None:
        raw = load_yaml(self._base / "questions.yaml")
        self.common = [question_adapter.validate_python(q) for q in raw.get(COMMON_ROLE_KEY, [])]
        for role in Role:
            own = [question_adapter.validate_python(q) for q in raw.get(role.value, [])]
            self._own[role] = own
            if role in _ROLES_WITH_COMMON:
                self.questions[role] = own + self.common
            else:
                self.questions[role] = own

    def _load_teams(self) -> None:
        self.teams = [TeamInfo(**raw) for raw in load_yaml(self._base / "teams.yaml")]

    def stored_questions(self) -> list[StoredQuestion]:
        """Built-in questions as remote rows, for seeding an empty store.

        Sort keys step by 10 within each bucket so rows can be inserted
        between them later.
        """
        rows: list[StoredQuestion] = []
        buckets: list[tuple[str, list[Question]]] = [(COMMON_ROLE_KEY, self.common)]
        buckets += [(role.value, self._own[role]) for role in Role]
        for role_key, questions in buckets:
            for index, q in enumerate(questions):
                rows.append(StoredQuestion(
                    id=q.id,
                    role=role_key,
                    type=q.type,
                    question_text=q.text,
                    options=getattr(q, "options", None) or None,
                    sort_order=(index + 1) * 10,
                    is_hidden=False,
                ))
        return rows


# ---------------------------------------------------------------------------
# QuestionCatalog
# ---------------------------------------------------------------------------

class QuestionCatalog:
    """Effective questions and teams for one session.

    Starts out with the built-in data; :meth:`refresh` and
    :meth:`load_teams` replace it with remote data where the remote store
    has any.  Remote failures are logged and never surface to the caller.
    """

    def __init__(self, gateway: SurveyGateway, builtin: BuiltinCatalog) -> None:
        self._gateway = gateway
        self._builtin = builtin
        self._effective: dict[Role, list[Question]] = dict(builtin.questions)
        self._teams: list[TeamInfo] = list(builtin.teams)

    @property
    def teams(self) -> list[TeamInfo]:
        return list(self._teams)

    def for_role(self, role: Role | None) -> list[Question]:
        if role is None:
            return []
        return list(self._effective.get(role, []))

    def question(self, role: Role, qid: str) -> Question | None:
        for q in self._effective.get(role, []):
            if q.id == qid:
                return q
        return None

    def find_team(self, missionary: str | None) -> TeamInfo | None:
        if not missionary or missionary == SELF_TEAM_MARKER:
            return None
        for team in self._teams:
            if team.missionary == missionary:
                return team
        return None

    async def refresh(self) -> dict[Role, list[Question]]:
        """Fetch remote questions and recompute every role's list."""
        try:
            rows = await self._gateway.list_questions(include_hidden=False)
        except GatewayError as exc:
            logger.warning("Falling back to built-in questions: %s", exc)
            rows = []
        self._effective = self.resolve(rows)
        return dict(self._effective)

    def resolve(self, rows: list[StoredQuestion]) -> dict[Role, list[Question]]:
        """Partition remote rows and apply per-role built-in fallback."""
        buckets: dict[str, list[Question]] = {r.value: [] for r in Role}
        buckets[COMMON_ROLE_KEY] = []

        for row in sorted(rows, key=lambda r: r.sort_order):
            if row.is_hidden or row.role not in buckets:
                continue
            try:
                buckets[row.role].append(row.to_question())
            except ValueError as exc:
                logger.warning("Skipping malformed question %s: %s", row.id, exc)

        resolved: dict[Role, list[Question]] = {}
        for role in Role:
            own = buckets[role.value]
            if not own:
                resolved[role] = list(self._builtin.questions[role])
            elif role in _ROLES_WITH_COMMON:
                resolved[role] = own + buckets[COMMON_ROLE_KEY]
            else:
                resolved[role] = own
        return resolved

    async def load_teams(self) -> list[TeamInfo]:
        """Fetch remote teams; keep the built-in list when none come back."""
        try:
            teams = await self._gateway.list_teams()
        except GatewayError as exc:
            logger.warning("Using built-in teams: %s", exc)
            teams = []
        if teams:
            self._teams = list(teams)
        return self.teams
