from enum import Enum
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    FILL_IN_THE_BLANK = "fill-in-the-blank"
    OPEN_ENDED = "open-ended"


GRADE_LEVELS: list[str] = [
    "Kindergarten",
    "1st Grade",
    "2nd Grade",
    "3rd Grade",
    "4th Grade",
    "5th Grade",
    "6th Grade",
    "7th Grade",
    "8th Grade",
    "High School",
    "College",
]

DEFAULT_GRADE_LEVEL = "5th Grade"
DEFAULT_NUM_QUESTIONS = 5
MIN_QUESTIONS = 1
MAX_QUESTIONS = 20

BLANK_MARKER = "____"


def default_question_types() -> dict[QuestionType, bool]:
    return {
        QuestionType.MULTIPLE_CHOICE: True,
        QuestionType.FILL_IN_THE_BLANK: True,
        QuestionType.OPEN_ENDED: False,
    }


def resolve_question_type(value) -> QuestionType | None:
    """Map a raw type string (as returned by the model) to a QuestionType."""
    if isinstance(value, QuestionType):
        return value
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
    try:
        return QuestionType(normalized)
    except ValueError:
        return None


def is_valid_url(url: str) -> bool:
    """True for a syntactically well-formed absolute URL (scheme + host)."""
    if not url or any(ch.isspace() for ch in url):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def clamp_num_questions(value: int) -> int:
    return max(MIN_QUESTIONS, min(MAX_QUESTIONS, int(value)))


# ──────────────────────────────────────────────
# Generated worksheet
# ──────────────────────────────────────────────

class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    # Raw type string from the model; not constrained to QuestionType.
    type: str
    options: list[str] | None = None
    answer: str | None = None

    @property
    def question_type(self) -> QuestionType | None:
        return resolve_question_type(self.type)

    @property
    def is_answerable(self) -> bool:
        return bool(self.answer and self.answer.strip())


class Worksheet(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    topic: str
    questions: list[Question]

    @property
    def has_answer_key(self) -> bool:
        return any(q.is_answerable for q in self.questions)


# ──────────────────────────────────────────────
# Form state
# ──────────────────────────────────────────────

def _complete_question_types(v: Mapping[QuestionType, bool]) -> dict[QuestionType, bool]:
    # Enum order, every type present
    return {qt: bool(v.get(qt, False)) for qt in QuestionType}


def _unique_links(v) -> list[str]:
    links: list[str] = []
    for url in v:
        url = url.strip()
        if not is_valid_url(url):
            raise ValueError(f"not a valid URL: {url!r}")
        if url not in links:
            links.append(url)
    return links


class WorksheetFormState(BaseModel):
    """Everything the user has chosen on the form, before submission."""

    model_config = ConfigDict(validate_assignment=True)

    topic: str = ""
    grade_level: str = DEFAULT_GRADE_LEVEL
    num_questions: int = DEFAULT_NUM_QUESTIONS
    question_types: dict[QuestionType, bool] = Field(default_factory=default_question_types)
    include_answer_key: bool = True
    custom_instructions: str | None = None
    source_text: str | None = None
    source_links: list[str] = Field(default_factory=list)

    @field_validator("grade_level")
    @classmethod
    def _known_grade(cls, v: str) -> str:
        if v not in GRADE_LEVELS:
            raise ValueError(f"grade_level must be one of: {', '.join(GRADE_LEVELS)}")
        return v

    @field_validator("num_questions")
    @classmethod
    def _clamp(cls, v: int) -> int:
        return clamp_num_questions(v)

    @field_validator("question_types")
    @classmethod
    def _all_types_present(cls, v: dict[QuestionType, bool]) -> dict[QuestionType, bool]:
        return _complete_question_types(v)

    @field_validator("source_links")
    @classmethod
    def _valid_unique_links(cls, v: list[str]) -> list[str]:
        return _unique_links(v)

    @property
    def selected_question_types(self) -> list[QuestionType]:
        return [qt for qt, selected in self.question_types.items() if selected]


class FormSnapshot(WorksheetFormState):
    """Read-only copy of the form taken at submit time."""

    model_config = ConfigDict(frozen=True)

    # Containers are read-only too, not just the attributes.
    question_types: Mapping[QuestionType, bool] = Field(
        default_factory=lambda: MappingProxyType(default_question_types())
    )
    source_links: tuple[str, ...] = ()

    @field_validator("question_types")
    @classmethod
    def _all_types_present(cls, v: Mapping[QuestionType, bool]) -> Mapping[QuestionType, bool]:
        return MappingProxyType(_complete_question_types(v))

    @field_validator("source_links")
    @classmethod
    def _valid_unique_links(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(_unique_links(v))

    @field_serializer("question_types")
    def _plain_question_types(self, v: Mapping[QuestionType, bool]) -> dict[QuestionType, bool]:
        return dict(v)

    @classmethod
    def of(cls, state: WorksheetFormState) -> "FormSnapshot":
        return cls.model_validate(state.model_dump())
