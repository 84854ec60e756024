"""Worksheet -> printable document structure.

The rendered document is what both the preview endpoint and the PDF exporter
consume, so the per-variant layout decisions live in one place:

  multiple-choice    stem + options lettered A., B., C., ...
  fill-in-the-blank  stem with each ____ widened to a writing blank
  open-ended         stem + a fixed-size writing area
  anything else      not rendered

Question numbers are positions in the full question list, so a skipped item
leaves a gap rather than renumbering the rest, and the answer key uses the
same numbers.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from worksheetgen.models.worksheet import BLANK_MARKER, Question, QuestionType, Worksheet

WIDE_BLANK = "_" * 16
OPEN_ENDED_ANSWER_LINES = 4
HEADER_FIELDS = ("Name: _________________________", "Date: _________________________")


def option_letter(index: int) -> str:
    return chr(ord("A") + index)


@dataclass(frozen=True)
class RenderedOption:
    letter: str
    text: str

    @property
    def label(self) -> str:
        return f"{self.letter}. {self.text}"


@dataclass(frozen=True)
class QuestionBlock:
    number: int
    kind: QuestionType
    stem: str
    options: list[RenderedOption] = field(default_factory=list)
    answer_lines: int = 0


@dataclass(frozen=True)
class AnswerKeyEntry:
    number: int
    answer: str


@dataclass(frozen=True)
class RenderedWorksheet:
    title: str
    topic: str
    questions: list[QuestionBlock]
    answer_key: list[AnswerKeyEntry]
    header_fields: tuple[str, ...] = HEADER_FIELDS

    @property
    def has_answer_key(self) -> bool:
        return bool(self.answer_key)

    def to_text(self, include_answer_key: bool = True) -> str:
        lines = [self.title, f"Topic: {self.topic}", "    ".join(self.header_fields), ""]
        for block in self.questions:
            lines.append(f"{block.number}. {block.stem}")
            for option in block.options:
                lines.append(f"   {option.label}")
            for _ in range(block.answer_lines):
                lines.append("   " + "_" * 60)
            lines.append("")
        if include_answer_key and self.answer_key:
            lines.append("Answer Key")
            for entry in self.answer_key:
                lines.append(f"{entry.number}. {entry.answer}")
        return "\n".join(lines).rstrip() + "\n"


def render_question(question: Question, number: int) -> QuestionBlock | None:
    kind = question.question_type

    if kind == QuestionType.MULTIPLE_CHOICE:
        options = [
            RenderedOption(letter=option_letter(i), text=text)
            for i, text in enumerate(question.options or [])
        ]
        return QuestionBlock(number=number, kind=kind, stem=question.question, options=options)

    if kind == QuestionType.FILL_IN_THE_BLANK:
        return QuestionBlock(
            number=number,
            kind=kind,
            stem=question.question.replace(BLANK_MARKER, WIDE_BLANK),
        )

    if kind == QuestionType.OPEN_ENDED:
        return QuestionBlock(
            number=number,
            kind=kind,
            stem=question.question,
            answer_lines=OPEN_ENDED_ANSWER_LINES,
        )

    return None


def render_worksheet(worksheet: Worksheet) -> RenderedWorksheet:
    blocks = []
    for i, question in enumerate(worksheet.questions, 1):
        block = render_question(question, i)
        if block is not None:
            blocks.append(block)

    answer_key = [
        AnswerKeyEntry(number=i, answer=q.answer.strip())
        for i, q in enumerate(worksheet.questions, 1)
        if q.is_answerable
    ]

    return RenderedWorksheet(
        title=worksheet.title,
        topic=worksheet.topic,
        questions=blocks,
        answer_key=answer_key,
    )
