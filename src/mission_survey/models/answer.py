"""Answer variants keyed by question id.

An answer is one of three tagged variants; the question's declared type is
the authority for which variant is expected:

  - ScaleAnswer: integer score (range is checked by validation, not here,
    so an in-progress form can hold any integer)
  - TextAnswer: free text
  - MultiSelectAnswer: a set of Selection entries; the "other" choice is
    ``Selection(option_id="other", free_text=...)``

``parse_answer`` coerces raw UI/wire input into the right variant and
``answer_to_wire`` produces the JSON value stored remotely.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Iterable, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from mission_survey.constants import LEGACY_OTHER_PREFIX, OTHER_OPTION_ID, OTHER_OPTION_LABEL
from mission_survey.errors import AnswerTypeError
from mission_survey.models.question import Question

logger = logging.getLogger(__name__)


class Selection(BaseModel):
    """One chosen option of a multi-select answer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    option_id: str = Field(alias="optionId")
    free_text: Optional[str] = Field(default=None, alias="freeText")

    @property
    def is_other(self) -> bool:
        return self.option_id == OTHER_OPTION_ID


class ScaleAnswer(BaseModel):
    kind: Literal["scale"] = "scale"
    value: int


class TextAnswer(BaseModel):
    kind: Literal["text"] = "text"
    value: str


class MultiSelectAnswer(BaseModel):
    kind: Literal["multi_select"] = "multi_select"
    selections: List[Selection] = Field(default_factory=list)

    @model_validator(mode="after")
    def _collapse_duplicates(self):
        # Set semantics: a repeated option id keeps its last entry, in the
        # position of its first occurrence.
        merged: dict[str, Selection] = {}
        for sel in self.selections:
            merged[sel.option_id] = sel
        if len(merged) != len(self.selections):
            self.selections = list(merged.values())
        return self

    @property
    def option_ids(self) -> set[str]:
        return {s.option_id for s in self.selections}

    @property
    def other_text(self) -> str | None:
        for sel in self.selections:
            if sel.is_other:
                return sel.free_text
        return None


Answer = Annotated[
    Union[ScaleAnswer, TextAnswer, MultiSelectAnswer],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Raw input -> variant
# ---------------------------------------------------------------------------

def _coerce_scale(raw: Any) -> int:
    if isinstance(raw, bool):
        raise AnswerTypeError("Scale answer must be a number, got a boolean")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            pass
    raise AnswerTypeError(f"Scale answer must be an integer, got {raw!r}")


def _coerce_selection(item: Any) -> Selection:
    if isinstance(item, Selection):
        return item
    if isinstance(item, Mapping):
        try:
            return Selection.model_validate(item)
        except ValidationError as exc:
            raise AnswerTypeError(f"Invalid selection entry: {item!r}") from exc
    if isinstance(item, str):
        if item.startswith(LEGACY_OTHER_PREFIX):
            text = item[len(LEGACY_OTHER_PREFIX):].strip()
            return Selection(option_id=OTHER_OPTION_ID, free_text=text or None)
        if item in (OTHER_OPTION_LABEL, OTHER_OPTION_ID):
            return Selection(option_id=OTHER_OPTION_ID)
        return Selection(option_id=item)
    raise AnswerTypeError(f"Invalid selection entry: {item!r}")


def parse_answer(question: Question, raw: Any) -> Answer:
    """Build the answer variant ``question.type`` dictates from raw input.

    Accepts an existing variant (its kind must match), ints or numeric
    strings for scale questions, strings for text questions, and iterables
    of option strings / selection dicts for multi-select questions.  Legacy
    ``"기타: ..."`` strings decode into the structured "other" selection.

    Raises:
        AnswerTypeError: if the input cannot be coerced.
    """
    if isinstance(raw, (ScaleAnswer, TextAnswer, MultiSelectAnswer)):
        if raw.kind != question.type:
            raise AnswerTypeError(
                f"Answer kind '{raw.kind}' does not match question "
                f"'{question.id}' of type '{question.type}'"
            )
        return raw

    if question.type == "scale":
        return ScaleAnswer(value=_coerce_scale(raw))
    if question.type == "text":
        if not isinstance(raw, str):
            raise AnswerTypeError(f"Text answer must be a string, got {raw!r}")
        return TextAnswer(value=raw)
    if question.type == "multi_select":
        if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Iterable):
            raise AnswerTypeError(f"Multi-select answer must be a list, got {raw!r}")
        return MultiSelectAnswer(selections=[_coerce_selection(item) for item in raw])

    raise AnswerTypeError(f"Unsupported question type: {question.type!r}")


def decode_answers(questions: Iterable[Question], raw_answers: Mapping[str, Any]) -> dict[str, Answer]:
    """Decode a stored answers map against the current question list.

    Entries for unknown question ids or with an undecodable shape are
    dropped; the respondent re-answers them.
    """
    by_id = {q.id: q for q in questions}
    decoded: dict[str, Answer] = {}
    for qid, raw in raw_answers.items():
        question = by_id.get(qid)
        if question is None:
            continue
        try:
            decoded[qid] = parse_answer(question, raw)
        except AnswerTypeError as exc:
            logger.debug("Dropping stored answer for %s: %s", qid, exc)
    return decoded


# ---------------------------------------------------------------------------
# Variant -> wire
# ---------------------------------------------------------------------------

def answer_to_wire(answer: Answer) -> Any:
    """JSON value stored in the remote ``answers`` map."""
    if isinstance(answer, ScaleAnswer):
        return answer.value
    if isinstance(answer, TextAnswer):
        return answer.value
    return [
        {"option_id": s.option_id, "free_text": s.free_text}
        for s in answer.selections
    ]


def answers_to_wire(answers: Mapping[str, Answer]) -> dict[str, Any]:
    return {qid: answer_to_wire(a) for qid, a in answers.items()}
