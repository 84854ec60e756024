"""Tests for DefaultTextExtractor — real .txt/.pdf/.docx bytes built in memory."""
import sys
import os
import io

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import docx
import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from worksheetgen.core.errors import ExtractionFailure
from worksheetgen.services.text_extraction import (
    MIME_DOCX,
    MIME_PDF,
    MIME_TEXT,
    DefaultTextExtractor,
)


def _pdf_bytes(pages: list[str]) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    for text in pages:
        c.drawString(72, 720, text)
        c.showPage()
    c.save()
    return buffer.getvalue()


def _docx_bytes(paragraphs: list[str]) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        p = document.add_paragraph()
        p.add_run(text).bold = True
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def extractor():
    return DefaultTextExtractor()


class TestPlainText:
    def test_decodes_utf8(self, extractor):
        assert extractor.extract("Café au lait".encode("utf-8"), MIME_TEXT) == "Café au lait"

    def test_strips_bom(self, extractor):
        assert extractor.extract(b"\xef\xbb\xbfHello", MIME_TEXT) == "Hello"

    def test_invalid_utf8_fails(self, extractor):
        with pytest.raises(ExtractionFailure):
            extractor.extract(b"\xff\xfe\xfa", MIME_TEXT)


class TestPdf:
    def test_pages_in_document_order(self, extractor):
        text = extractor.extract(_pdf_bytes(["Chapter one text", "Chapter two text"]), MIME_PDF)
        assert "Chapter one text" in text
        assert "Chapter two text" in text
        assert text.index("Chapter one") < text.index("Chapter two")

    def test_corrupt_pdf_fails(self, extractor):
        with pytest.raises(ExtractionFailure):
            extractor.extract(b"this is not a pdf", MIME_PDF)


class TestDocx:
    def test_paragraph_text_without_formatting(self, extractor):
        text = extractor.extract(_docx_bytes(["Plants need light.", "Roots take in water."]), MIME_DOCX)
        assert "Plants need light.\nRoots take in water." in text

    def test_corrupt_docx_fails(self, extractor):
        with pytest.raises(ExtractionFailure):
            extractor.extract(b"PK-not-really-a-zip", MIME_DOCX)


def test_unknown_mime_type_fails(extractor):
    with pytest.raises(ExtractionFailure):
        extractor.extract(b"GIF89a", "image/gif")
