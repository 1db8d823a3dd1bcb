"""Answer variants: coercion from raw input and the stored wire form."""

import pytest

from mission_survey.errors import AnswerTypeError
from mission_survey.models.answer import (
    MultiSelectAnswer,
    ScaleAnswer,
    Selection,
    TextAnswer,
    answer_to_wire,
    decode_answers,
    parse_answer,
)
from mission_survey.models.question import MultiSelectQuestion, ScaleQuestion, TextQuestion

SCALE = ScaleQuestion(id="s", text="점수")
TEXT = TextQuestion(id="t", text="의견")
MULTI = MultiSelectQuestion(id="m", text="선택", options=["A", "B", "기타"])


class TestParseAnswer:

    def test_scale_from_numeric_string(self):
        assert parse_answer(SCALE, "6") == ScaleAnswer(value=6)

    @pytest.mark.parametrize("raw", ["5.5", 5.5])
    def test_scale_rejects_decimals(self, raw):
        with pytest.raises(AnswerTypeError, match="integer"):
            parse_answer(SCALE, raw)

    def test_scale_accepts_whole_float(self):
        assert parse_answer(SCALE, 5.0) == ScaleAnswer(value=5)

    def test_scale_rejects_bool(self):
        with pytest.raises(AnswerTypeError):
            parse_answer(SCALE, True)

    def test_text_rejects_list(self):
        with pytest.raises(AnswerTypeError):
            parse_answer(TEXT, ["a"])

    def test_multi_rejects_plain_string(self):
        with pytest.raises(AnswerTypeError):
            parse_answer(MULTI, "A")

    def test_variant_kind_must_match(self):
        with pytest.raises(AnswerTypeError, match="does not match"):
            parse_answer(SCALE, TextAnswer(value="x"))

    def test_legacy_other_prefix(self):
        answer = parse_answer(MULTI, ["A", "기타: 직접 입력"])
        assert answer.selections == [
            Selection(option_id="A"),
            Selection(option_id="other", free_text="직접 입력"),
        ]
        assert answer.other_text == "직접 입력"

    def test_other_label_without_text(self):
        answer = parse_answer(MULTI, ["기타"])
        assert answer.selections[0].is_other
        assert answer.other_text is None

    def test_selection_dicts_accept_both_key_styles(self):
        answer = parse_answer(MULTI, [
            {"option_id": "other", "free_text": "메모"},
            {"optionId": "B"},
        ])
        assert answer.option_ids == {"other", "B"}

    def test_duplicates_collapse(self):
        answer = parse_answer(MULTI, ["A", "B", "A"])
        assert [s.option_id for s in answer.selections] == ["A", "B"]


class TestWire:

    def test_wire_values(self):
        assert answer_to_wire(ScaleAnswer(value=3)) == 3
        assert answer_to_wire(TextAnswer(value="x")) == "x"
        assert answer_to_wire(MultiSelectAnswer(selections=[
            Selection(option_id="other", free_text="y"),
        ])) == [{"option_id": "other", "free_text": "y"}]

    def test_decode_drops_unknown_and_malformed(self):
        decoded = decode_answers([SCALE, TEXT], {"s": "x", "t": "ok", "gone": 1})
        assert decoded == {"t": TextAnswer(value="ok")}
