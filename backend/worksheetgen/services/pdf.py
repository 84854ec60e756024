"""PDF export for rendered worksheets.

Lays out a RenderedWorksheet on A4 pages with reportlab:
- Title, topic line, Name / Date header fields
- Numbered questions, lettered options, widened blanks, ruled writing space
- Answer key on its own page
- Footer with page number on every page
"""

import io
import re
from typing import Literal, Protocol
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import (
    HRFlowable, KeepTogether, PageBreak, Paragraph, SimpleDocTemplate, Spacer,
    Table, TableStyle,
)

from worksheetgen.services.renderer import QuestionBlock, RenderedWorksheet

PdfVariant = Literal["full", "student", "answer_key"]


# ──────────────────────────────────────────────
# Colours
# ──────────────────────────────────────────────
_PRIMARY = colors.Color(0.26, 0.22, 0.79)       # indigo
_MUTED = colors.Color(0.45, 0.45, 0.50)         # grey text
_RULE = colors.Color(0.82, 0.82, 0.86)          # ruled line colour


# Paragraph styles keyed by name; every worksheet variant draws from these.
_WORKSHEET_STYLES = {
    "WorksheetTitle": dict(fontName="Helvetica-Bold", fontSize=20, leading=24, spaceAfter=4,
                           alignment=TA_CENTER, textColor=colors.Color(0.12, 0.12, 0.15)),
    "WorksheetSubtitle": dict(fontName="Helvetica", fontSize=10, textColor=_MUTED,
                              alignment=TA_CENTER, spaceAfter=14),
    "HeaderField": dict(fontName="Helvetica", fontSize=10, leading=13),
    "QuestionText": dict(fontName="Helvetica-Bold", fontSize=11, leading=15, spaceAfter=6),
    "OptionText": dict(fontName="Helvetica", fontSize=10.5, leading=14, leftIndent=20, spaceAfter=3),
    "AnswerKeyTitle": dict(fontName="Helvetica-Bold", fontSize=16, leading=20, spaceBefore=8,
                           spaceAfter=10, alignment=TA_CENTER),
    "AnswerText": dict(fontName="Helvetica", fontSize=9.5, leading=13, spaceAfter=6),
}


# ──────────────────────────────────────────────
# Unicode → latin-1 safe replacements
# ──────────────────────────────────────────────
_UNICODE_REPLACEMENTS = {
    "\u2014": "-",   # em dash
    "\u2013": "-",   # en dash
    "\u2018": "'",   # left single quote
    "\u2019": "'",   # right single quote
    "\u201c": '"',   # left double quote
    "\u201d": '"',   # right double quote
    "\u2026": "...", # ellipsis
    "\u00d7": "x",   # multiplication sign
    "\u00f7": "/",   # division sign
    "\u2264": "<=",  # less than or equal
    "\u2265": ">=",  # greater than or equal
    "\u2260": "!=",  # not equal
    "\u2192": "->",  # right arrow
}


def _sanitize_text(text: str) -> str:
    """Replace Unicode characters that Helvetica/latin-1 cannot encode, then escape markup."""
    if not text:
        return ""
    for char, replacement in _UNICODE_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    text = text.encode("latin-1", errors="replace").decode("latin-1")
    return xml_escape(text)


_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:"*?<>| ]')


def safe_pdf_filename(title: str | None) -> str:
    """Worksheet title -> download name; unsafe characters become underscores."""
    base = _UNSAFE_FILENAME_CHARS.sub("_", title or "") or "worksheet"
    return f"{base}.pdf"


class DocumentExporter(Protocol):
    def export(self, document: RenderedWorksheet, variant: PdfVariant = "full") -> bytes: ...


class ReportLabExporter:
    """Render a RenderedWorksheet to PDF bytes."""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        for name, style in _WORKSHEET_STYLES.items():
            self.styles.add(ParagraphStyle(name=name, **style))

    # ──────────────────────────────────────────
    # Main entry point
    # ──────────────────────────────────────────
    def export(self, document: RenderedWorksheet, variant: PdfVariant = "full") -> bytes:
        """Generate a PDF from a rendered worksheet.

        Args:
            document: output of render_worksheet()
            variant: "full" (questions + answer key), "student" (questions only),
                     "answer_key" (answer key only)

        Returns:
            PDF file as bytes
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=2.0 * cm,
            leftMargin=2.0 * cm,
            topMargin=2.0 * cm,
            bottomMargin=2.0 * cm,
            title=document.title,
        )

        story = []
        if variant == "answer_key":
            self._build_answer_key(story, document)
        else:
            self._build_questions(story, document)
            if variant == "full" and document.has_answer_key:
                story.append(PageBreak())
                self._build_answer_key(story, document)

        doc.build(
            story,
            onFirstPage=self._draw_page_furniture,
            onLaterPages=self._draw_page_furniture,
        )
        buffer.seek(0)
        return buffer.getvalue()

    def _draw_page_furniture(self, canvas, doc):
        """Draw footer with page number on every page."""
        canvas.saveState()
        page_width, _ = A4

        y_footer = 1.0 * cm
        canvas.setFont('Helvetica', 7)
        canvas.setFillColor(_MUTED)
        canvas.drawRightString(page_width - 2.0 * cm, y_footer, f"Page {canvas.getPageNumber()}")

        canvas.setStrokeColor(_RULE)
        canvas.setLineWidth(0.5)
        canvas.line(2.0 * cm, y_footer + 10, page_width - 2.0 * cm, y_footer + 10)
        canvas.restoreState()

    # ──────────────────────────────────────────
    # Questions section
    # ──────────────────────────────────────────
    def _build_questions(self, story: list, document: RenderedWorksheet) -> None:
        story.append(Paragraph(_sanitize_text(document.title), self.styles['WorksheetTitle']))
        story.append(Paragraph(
            f"Topic: {_sanitize_text(document.topic)}",
            self.styles['WorksheetSubtitle'],
        ))

        page_width = A4[0] - 4.0 * cm  # usable width with 2cm margins
        header_table = Table(
            [[Paragraph(f, self.styles['HeaderField']) for f in document.header_fields]],
            colWidths=[page_width / len(document.header_fields)] * len(document.header_fields),
        )
        header_table.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('LINEBELOW', (0, 0), (-1, -1), 0.5, _RULE),
        ]))
        story.append(header_table)
        story.append(Spacer(1, 16))

        for block in document.questions:
            # KeepTogether prevents a question from breaking across pages
            story.append(KeepTogether(self._build_single_question(block)))
            story.append(Spacer(1, 12))

    def _build_single_question(self, block: QuestionBlock) -> list:
        elements = [Paragraph(
            f"{block.number}. {_sanitize_text(block.stem)}",
            self.styles['QuestionText'],
        )]

        for option in block.options:
            elements.append(Paragraph(
                f"<font color='#{_PRIMARY.hexval()[2:]}'>{option.letter}.</font>  "
                f"{_sanitize_text(option.text)}",
                self.styles['OptionText'],
            ))

        # Open-ended writing space
        for _ in range(block.answer_lines):
            elements.append(HRFlowable(
                width="95%", thickness=0.3, color=_RULE,
                spaceBefore=14, spaceAfter=0,
                hAlign='LEFT',
            ))

        return elements

    # ──────────────────────────────────────────
    # Answer key section
    # ──────────────────────────────────────────
    def _build_answer_key(self, story: list, document: RenderedWorksheet) -> None:
        story.append(Paragraph("Answer Key", self.styles['AnswerKeyTitle']))
        story.append(HRFlowable(
            width="100%", thickness=0.5, color=_PRIMARY,
            spaceBefore=2, spaceAfter=14,
        ))
        for entry in document.answer_key:
            story.append(Paragraph(
                f"<b>{entry.number}.</b>  {_sanitize_text(entry.answer)}",
                self.styles['AnswerText'],
            ))


def get_pdf_exporter() -> DocumentExporter:
    return ReportLabExporter()
