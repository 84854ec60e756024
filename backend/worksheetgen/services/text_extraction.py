"""Plain-text extraction for uploaded source material (.txt, .pdf, .docx)."""
import io
import logging
from typing import Protocol

import docx
from PyPDF2 import PdfReader

from worksheetgen.core.errors import ExtractionFailure

logger = logging.getLogger("worksheetgen.sources")

MIME_TEXT = "text/plain"
MIME_PDF = "application/pdf"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

SUPPORTED_MIME_TYPES = (MIME_TEXT, MIME_PDF, MIME_DOCX)


class TextExtractor(Protocol):
    def extract(self, content: bytes, mime_type: str) -> str: ...


def extract_text_from_plain(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ExtractionFailure("The text file is not valid UTF-8.") from exc


def extract_text_from_pdf(content: bytes) -> str:
    """Page texts in document order, one newline between pages."""
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as exc:
        raise ExtractionFailure(f"Failed to read PDF: {exc}") from exc
    return "\n".join(pages).strip()


def extract_text_from_docx(content: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(content))
    except Exception as exc:
        raise ExtractionFailure(f"Failed to read Word document: {exc}") from exc
    return "\n".join(p.text for p in document.paragraphs).strip()


class DefaultTextExtractor:
    def extract(self, content: bytes, mime_type: str) -> str:
        if mime_type == MIME_TEXT:
            text = extract_text_from_plain(content)
        elif mime_type == MIME_PDF:
            text = extract_text_from_pdf(content)
        elif mime_type == MIME_DOCX:
            text = extract_text_from_docx(content)
        else:
            raise ExtractionFailure(f"No extractor for {mime_type}")
        logger.info("Extracted %d characters from %s upload", len(text), mime_type)
        return text


def get_text_extractor() -> TextExtractor:
    return DefaultTextExtractor()
