"""Answer completeness rules and input helpers.

``validate`` is pure: it reports every invalid question id (in question
order) and never mutates the answers it is given.  Answers may be the
typed variants from :mod:`mission_survey.models.answer` or raw values as
received from a UI.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from mission_survey.constants import SCALE_MAX, SCALE_MIN
from mission_survey.models.answer import MultiSelectAnswer, ScaleAnswer, TextAnswer
from mission_survey.models.question import Question

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_TAG_RE = re.compile(r"<[^>]*>")


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    invalid_question_ids: list[str] = field(default_factory=list)

    @property
    def first_invalid_id(self) -> str | None:
        """The question a UI should scroll to."""
        return self.invalid_question_ids[0] if self.invalid_question_ids else None


# --- Per-type rules ---

def is_valid_scale_answer(value: Any) -> bool:
    """Integer (or integer string) in [SCALE_MIN, SCALE_MAX].

    Decimal strings such as ``"5.5"`` are invalid rather than truncated,
    matching ``parse_answer``.
    """
    if isinstance(value, ScaleAnswer):
        value = value.value
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return SCALE_MIN <= value <= SCALE_MAX
    if isinstance(value, float):
        return value.is_integer() and SCALE_MIN <= value <= SCALE_MAX
    if isinstance(value, str):
        try:
            num = int(value.strip())
        except ValueError:
            return False
        return SCALE_MIN <= num <= SCALE_MAX
    return False


def is_valid_text_answer(value: Any) -> bool:
    if isinstance(value, TextAnswer):
        value = value.value
    return isinstance(value, str) and len(value.strip()) > 0


def is_valid_multi_select_answer(value: Any) -> bool:
    if isinstance(value, MultiSelectAnswer):
        return len(value.selections) > 0
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) > 0
    return False


_RULES = {
    "scale": (ScaleAnswer, is_valid_scale_answer),
    "text": (TextAnswer, is_valid_text_answer),
    "multi_select": (MultiSelectAnswer, is_valid_multi_select_answer),
}

_VARIANTS = (ScaleAnswer, TextAnswer, MultiSelectAnswer)


def is_valid_answer(question: Question, value: Any) -> bool:
    """Check one answer against its question's type.

    Unknown question types, and typed answers whose kind does not match the
    question type, are never valid.
    """
    rule = _RULES.get(getattr(question, "type", None))
    if rule is None:
        return False
    variant, check = rule
    if isinstance(value, _VARIANTS) and not isinstance(value, variant):
        return False
    return check(value)


def validate(questions: Iterable[Question], answers: Mapping[str, Any]) -> ValidationResult:
    """Collect every question whose answer is missing or malformed."""
    invalid = [q.id for q in questions if not is_valid_answer(q, answers.get(q.id))]
    return ValidationResult(is_valid=not invalid, invalid_question_ids=invalid)


# --- Input helpers ---

def is_valid_email(email: Any) -> bool:
    if not email or not isinstance(email, str):
        return False
    return bool(_EMAIL_RE.match(email.strip()))


def sanitize_input(value: Any) -> str:
    """Strip HTML tags, unescape ``&lt; &gt; &amp;`` and trim."""
    if not value or not isinstance(value, str):
        return ""
    stripped = _TAG_RE.sub("", value)
    return html.unescape(stripped).strip()


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return len(value.strip()) == 0
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False
