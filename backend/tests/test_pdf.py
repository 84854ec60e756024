"""Tests for the reportlab exporter and download file naming."""
import sys
import os
import io

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from PyPDF2 import PdfReader

from worksheetgen.models.worksheet import Question, Worksheet
from worksheetgen.services.pdf import ReportLabExporter, safe_pdf_filename
from worksheetgen.services.renderer import render_worksheet


def _worksheet(with_answers=True):
    answer = (lambda a: a) if with_answers else (lambda a: None)
    return Worksheet(
        title="Planet Quest — Part 1",
        topic="The Solar System",
        questions=[
            Question(
                question="Which planet is closest to the Sun?",
                type="multiple-choice",
                options=["Mercury", "Venus", "Earth", "Mars"],
                answer=answer("Mercury"),
            ),
            Question(question="The Sun is a ____.", type="fill-in-the-blank", answer=answer("star")),
            Question(question="Why is Mars red? Use <evidence> & reasoning.", type="open-ended"),
        ],
    )


def _page_count(pdf: bytes) -> int:
    return len(PdfReader(io.BytesIO(pdf)).pages)


class TestFilename:
    @pytest.mark.parametrize("title,expected", [
        ("Planet Quest", "Planet_Quest.pdf"),
        ('My: "Title"?', "My___Title__.pdf"),
        ("a\\b/c|d<e>f*g", "a_b_c_d_e_f_g.pdf"),
        ("", "worksheet.pdf"),
        (None, "worksheet.pdf"),
    ])
    def test_unsafe_characters_replaced(self, title, expected):
        assert safe_pdf_filename(title) == expected


class TestExport:
    def test_full_has_answer_key_page(self):
        pdf = ReportLabExporter().export(render_worksheet(_worksheet()), variant="full")
        assert pdf.startswith(b"%PDF")
        assert _page_count(pdf) == 2

    def test_student_copy_is_questions_only(self):
        pdf = ReportLabExporter().export(render_worksheet(_worksheet()), variant="student")
        assert _page_count(pdf) == 1

    def test_full_without_answers_has_no_key_page(self):
        pdf = ReportLabExporter().export(render_worksheet(_worksheet(with_answers=False)), variant="full")
        assert _page_count(pdf) == 1

    def test_answer_key_only(self):
        pdf = ReportLabExporter().export(render_worksheet(_worksheet()), variant="answer_key")
        text = PdfReader(io.BytesIO(pdf)).pages[0].extract_text()
        assert "Answer Key" in text
        assert "Mercury" in text

    def test_question_text_is_printed(self):
        pdf = ReportLabExporter().export(render_worksheet(_worksheet()), variant="student")
        text = PdfReader(io.BytesIO(pdf)).pages[0].extract_text()
        assert "Which planet is closest to the Sun?" in text
        assert "<evidence>" in text
