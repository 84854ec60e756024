"""Response validator: model payload -> Worksheet.

Top-level shape problems (missing title/topic/questions) reject the whole
response with SchemaViolation. Individual questions that break their
variant's rules are dropped (or have the offending field removed) and logged,
so one bad item does not cost the user the whole worksheet.
"""
import json
import logging

from worksheetgen.core.errors import SchemaViolation
from worksheetgen.models.worksheet import (
    BLANK_MARKER,
    Question,
    QuestionType,
    Worksheet,
    resolve_question_type,
)

logger = logging.getLogger("worksheetgen.generation")


def clean_json_response(content: str) -> str:
    """Strip markdown fences from model output."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_payload(content: str):
    try:
        return json.loads(clean_json_response(content or ""))
    except json.JSONDecodeError as exc:
        raise SchemaViolation(f"invalid response format: {exc}") from exc


def _clean_str(value) -> str | None:
    if value is None:
        return None
    if not isinstance(value, (str, int, float)):
        return None
    text = str(value).strip()
    return text or None


def _clean_options(value) -> list[str] | None:
    if not isinstance(value, list):
        return None
    options = [s for s in (_clean_str(o) for o in value) if s is not None]
    return options or None


def validate_question(raw, index: int) -> Question | None:
    """Apply per-variant rules. Returns None when the item must be dropped."""
    if not isinstance(raw, dict):
        logger.warning("Dropping q%d: not an object", index + 1)
        return None

    text = _clean_str(raw.get("question"))
    if text is None:
        logger.warning("Dropping q%d: empty question text", index + 1)
        return None

    raw_type = raw.get("type")
    type_str = raw_type.strip() if isinstance(raw_type, str) else ""
    q_type = resolve_question_type(type_str)
    options = _clean_options(raw.get("options"))
    answer = _clean_str(raw.get("answer"))

    if q_type == QuestionType.MULTIPLE_CHOICE:
        if not options:
            logger.warning("Dropping q%d: multiple-choice without options", index + 1)
            return None
        if answer is not None and answer not in options:
            logger.warning("q%d: answer %r is not one of the options; removing it", index + 1, answer)
            answer = None
    elif q_type == QuestionType.FILL_IN_THE_BLANK:
        if BLANK_MARKER not in text:
            logger.warning("Dropping q%d: fill-in-the-blank without %s", index + 1, BLANK_MARKER)
            return None
        options = None
    elif q_type == QuestionType.OPEN_ENDED:
        options = None
    else:
        # Unknown types are kept; the renderer skips them.
        logger.info("q%d has unrecognised type %r", index + 1, raw_type)

    if q_type is not None:
        type_str = q_type.value

    return Question(question=text, type=type_str, options=options, answer=answer)


def validate_worksheet_payload(payload) -> Worksheet:
    if not isinstance(payload, dict):
        raise SchemaViolation("invalid response format: expected a JSON object")

    title = _clean_str(payload.get("title"))
    if title is None:
        raise SchemaViolation("invalid response format: missing title")

    topic = payload.get("topic")
    if not isinstance(topic, str):
        raise SchemaViolation("invalid response format: missing topic")

    raw_questions = payload.get("questions")
    if not isinstance(raw_questions, list):
        raise SchemaViolation("invalid response format: questions is not a list")

    questions = [
        q for q in (validate_question(raw, i) for i, raw in enumerate(raw_questions))
        if q is not None
    ]

    if raw_questions and not questions:
        raise SchemaViolation("invalid response format: every question was malformed")

    dropped = len(raw_questions) - len(questions)
    if dropped:
        logger.warning("Dropped %d of %d questions from model response", dropped, len(raw_questions))

    return Worksheet(title=title, topic=topic.strip(), questions=questions)
