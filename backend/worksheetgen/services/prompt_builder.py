"""
Prompt Builder — turns a form snapshot into the request sent to the model.

  build_request(form) -> GenerationRequest(instruction, schema)

Pure and deterministic: the same form always yields a byte-identical
instruction and an equal schema. Clauses are appended in a fixed order and
each optional clause is only present when its field is set:

  1. base (grade, topic, count, question mix)
  2. title
  3. answer key          (include_answer_key)
  4. custom instructions (non-empty)
  5. source text         (non-empty)
  6. source links        (non-empty; advisory text, never fetched)
  7. output format

The schema is deliberately permissive. Structured-output backends do not
support "options required iff type is multiple-choice", so per-variant rules
are enforced after the response arrives (see services/validator.py).
"""
from __future__ import annotations

from dataclasses import dataclass

from worksheetgen.models.worksheet import QuestionType, WorksheetFormState
from worksheetgen.prompts.worksheet_generation import (
    ANSWER_KEY_CLAUSE,
    BASE_CLAUSE,
    CUSTOM_INSTRUCTIONS_CLAUSE,
    OUTPUT_FORMAT_CLAUSE,
    QUESTION_TYPE_PHRASES,
    SOURCE_LINKS_CLAUSE,
    SOURCE_TEXT_CLAUSE,
    TITLE_CLAUSE,
)


@dataclass(frozen=True)
class GenerationRequest:
    instruction: str
    schema: dict


def describe_question_mix(form: WorksheetFormState) -> str:
    return ", ".join(
        QUESTION_TYPE_PHRASES[qt.value] for qt in form.selected_question_types
    )


def build_instruction(form: WorksheetFormState) -> str:
    parts: list[str] = [
        BASE_CLAUSE.format(
            grade_level=form.grade_level,
            topic=form.topic.strip(),
            num_questions=form.num_questions,
            question_mix=describe_question_mix(form),
        ),
        TITLE_CLAUSE,
    ]

    if form.include_answer_key:
        parts.append(ANSWER_KEY_CLAUSE)

    custom = (form.custom_instructions or "").strip()
    if custom:
        parts.append(CUSTOM_INSTRUCTIONS_CLAUSE.format(custom_instructions=custom))

    source_text = (form.source_text or "").strip()
    if source_text:
        parts.append(SOURCE_TEXT_CLAUSE.format(source_text=source_text))

    if form.source_links:
        parts.append(SOURCE_LINKS_CLAUSE.format(source_links="\n".join(form.source_links)))

    parts.append(OUTPUT_FORMAT_CLAUSE)
    return "".join(parts)


def build_response_schema() -> dict:
    """OpenAPI-subset schema in the shape the Gemini structured-output API takes."""
    type_values = ", ".join(qt.value for qt in QuestionType)
    return {
        "type": "OBJECT",
        "properties": {
            "title": {
                "type": "STRING",
                "description": "Creative title for the worksheet.",
            },
            "topic": {
                "type": "STRING",
                "description": "The topic of the worksheet.",
            },
            "questions": {
                "type": "ARRAY",
                "description": "An array of questions for the worksheet.",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "question": {
                            "type": "STRING",
                            "description": 'The question text. For fill-in-the-blank, use "____" for the blank.',
                        },
                        # No enum: not every structured-output backend accepts one.
                        "type": {
                            "type": "STRING",
                            "description": f"The type of question. Must be one of: {type_values}.",
                        },
                        "options": {
                            "type": "ARRAY",
                            "items": {"type": "STRING"},
                            "description": "An array of options for multiple-choice questions.",
                        },
                        "answer": {
                            "type": "STRING",
                            "description": "The correct answer for the question. Required if an answer key is requested.",
                        },
                    },
                    "required": ["question", "type"],
                },
            },
        },
        "required": ["title", "topic", "questions"],
    }


def build_request(form: WorksheetFormState) -> GenerationRequest:
    return GenerationRequest(
        instruction=build_instruction(form),
        schema=build_response_schema(),
    )
