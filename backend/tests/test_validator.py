"""Tests for the response validator — top-level shape and per-variant rules."""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from worksheetgen.core.errors import GENERATION_FAILED_MESSAGE, SchemaViolation
from worksheetgen.services.validator import (
    clean_json_response,
    parse_payload,
    validate_question,
    validate_worksheet_payload,
)


def _mcq(text="Which planet is closest to the Sun?", options=None, answer="Mercury"):
    return {
        "question": text,
        "type": "multiple-choice",
        "options": options if options is not None else ["Mercury", "Venus", "Earth", "Mars"],
        "answer": answer,
    }


def _payload(questions, title="Planet Quest", topic="The Solar System"):
    return {"title": title, "topic": topic, "questions": questions}


# ── Parsing ───────────────────────────────────────────────────────────────────

class TestParsing:
    def test_strips_markdown_fences(self):
        assert clean_json_response('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_parses_plain_json(self):
        assert parse_payload('{"title": "x"}') == {"title": "x"}

    def test_garbage_is_schema_violation(self):
        with pytest.raises(SchemaViolation) as exc:
            parse_payload("Sure! Here is your worksheet:")
        assert exc.value.user_message == GENERATION_FAILED_MESSAGE

    def test_empty_response_is_schema_violation(self):
        with pytest.raises(SchemaViolation):
            parse_payload("")


# ── Top-level shape ───────────────────────────────────────────────────────────

class TestTopLevel:
    def test_valid_payload(self):
        ws = validate_worksheet_payload(_payload([_mcq()]))
        assert ws.title == "Planet Quest"
        assert ws.topic == "The Solar System"
        assert len(ws.questions) == 1

    @pytest.mark.parametrize("payload", [
        [],
        "worksheet",
        {"topic": "x", "questions": []},
        {"title": "", "topic": "x", "questions": []},
        {"title": "x", "questions": []},
        {"title": "x", "topic": "x"},
        {"title": "x", "topic": "x", "questions": {"q1": "?"}},
    ])
    def test_missing_or_wrong_fields_rejected(self, payload):
        with pytest.raises(SchemaViolation):
            validate_worksheet_payload(payload)

    def test_empty_question_list_is_allowed(self):
        ws = validate_worksheet_payload(_payload([]))
        assert ws.questions == []

    def test_all_questions_malformed_is_rejected(self):
        bad = [{"question": "", "type": "open-ended"}, {"type": "multiple-choice"}]
        with pytest.raises(SchemaViolation):
            validate_worksheet_payload(_payload(bad))

    def test_order_is_preserved(self):
        qs = [_mcq(text=f"Question {i}?") for i in range(5)]
        ws = validate_worksheet_payload(_payload(qs))
        assert [q.question for q in ws.questions] == [f"Question {i}?" for i in range(5)]


# ── Per-variant rules ─────────────────────────────────────────────────────────

class TestMultipleChoice:
    def test_without_options_dropped(self):
        assert validate_question(_mcq(options=[]), 0) is None
        raw = _mcq()
        del raw["options"]
        assert validate_question(raw, 0) is None

    def test_answer_not_in_options_removed(self):
        q = validate_question(_mcq(answer="Pluto"), 0)
        assert q is not None
        assert q.answer is None
        assert q.options == ["Mercury", "Venus", "Earth", "Mars"]

    def test_answer_in_options_kept(self):
        assert validate_question(_mcq(), 0).answer == "Mercury"

    def test_malformed_item_dropped_rest_kept(self):
        ws = validate_worksheet_payload(_payload([_mcq(), _mcq(options=None) | {"options": "A,B"}, _mcq()]))
        assert len(ws.questions) == 2


class TestFillInTheBlank:
    def test_requires_blank_marker(self):
        raw = {"question": "Plants make food by photosynthesis.", "type": "fill-in-the-blank", "answer": "x"}
        assert validate_question(raw, 0) is None

    def test_options_discarded(self):
        raw = {
            "question": "Plants need ____ to grow.",
            "type": "fill-in-the-blank",
            "options": ["light", "dark"],
            "answer": "light",
        }
        q = validate_question(raw, 0)
        assert q.options is None
        assert q.answer == "light"


class TestOpenEnded:
    def test_kept_without_answer(self):
        q = validate_question({"question": "Why do leaves change colour?", "type": "open-ended"}, 0)
        assert q is not None
        assert q.answer is None
        assert q.is_answerable is False

    def test_blank_answer_becomes_none(self):
        q = validate_question({"question": "Explain.", "type": "open-ended", "answer": "   "}, 0)
        assert q.answer is None


class TestTypeStrings:
    def test_unknown_type_kept_verbatim(self):
        q = validate_question({"question": "Match the pairs.", "type": "matching"}, 0)
        assert q is not None
        assert q.type == "matching"
        assert q.question_type is None

    def test_type_spelling_normalised(self):
        q = validate_question(_mcq() | {"type": "Multiple_Choice"}, 0)
        assert q.type == "multiple-choice"

    def test_non_dict_item_dropped(self):
        assert validate_question("What is 2 + 2?", 0) is None
