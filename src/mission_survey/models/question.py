"""Question and team reference models.

Three question types map to the three answer variants:

  - scale: 1..7 score
  - text: free text
  - multi_select: one or more options; the "기타" option carries free text

The discriminated ``Question`` union uses ``type`` as its discriminator.
``StoredQuestion`` mirrors a row of the remote ``survey_questions`` table
and converts into the union with :meth:`StoredQuestion.to_question`.
"""

from __future__ import annotations

import re
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class BaseQuestion(BaseModel):
    """Fields shared by all question types."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str


class ScaleQuestion(BaseQuestion):
    type: Literal["scale"] = "scale"


class TextQuestion(BaseQuestion):
    type: Literal["text"] = "text"


class MultiSelectQuestion(BaseQuestion):
    """Pick one or more options; duplicates collapse."""

    type: Literal["multi_select"] = "multi_select"
    options: List[str] = Field(default_factory=list)


Question = Annotated[
    Union[ScaleQuestion, TextQuestion, MultiSelectQuestion],
    Field(discriminator="type"),
]

question_adapter: TypeAdapter[Question] = TypeAdapter(Question)

QUESTION_TYPES: set[str] = {"scale", "text", "multi_select"}


class StoredQuestion(BaseModel):
    """A question row as stored remotely.

    ``role`` is one of the role keys or ``common`` for questions appended
    to the leader and team_member questionnaires.
    """

    id: str
    role: str
    type: str
    question_text: str
    options: Optional[List[str]] = None
    sort_order: int = 0
    is_hidden: bool = False

    def to_question(self) -> Question:
        payload: dict = {"id": self.id, "type": self.type, "text": self.question_text}
        if self.type == "multi_select":
            payload["options"] = self.options or []
        return question_adapter.validate_python(payload)


# --- Teams ---

_PERIOD_START = re.compile(r"^(\d+)/(\d+)")


class TeamInfo(BaseModel):
    """Short-term mission team reference data.

    The missionary name is the team's identity key; combined with the role
    it keys drafts and submissions.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    dept: str
    leader: str
    country: str
    missionary: str
    period: str
    members: str
    content: str

    @property
    def key(self) -> str:
        return self.missionary

    def start_score(self) -> int:
        """Sort score from a ``M/D~...`` period string (month*100 + day)."""
        match = _PERIOD_START.match(self.period)
        if not match:
            return 9999
        return int(match.group(1)) * 100 + int(match.group(2))


def sort_teams(teams: list[TeamInfo]) -> list[TeamInfo]:
    """Group teams by department, then order each group by start date."""
    return sorted(teams, key=lambda t: (t.dept, t.start_score()))
