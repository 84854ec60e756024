"""
Form State Controller — the single owner of the user's worksheet request.

All mutation goes through the methods below; each one touches only the
fields it names. Submission freezes the state into a FormSnapshot, runs the
generation pipeline once, and applies the result only if no newer submission
has been issued since (generation token). File ingestion uses its own token
the same way, so a slow extraction can never overwrite a newer upload.
"""
from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from worksheetgen.core.errors import (
    ExtractionFailure,
    FormValidationError,
    GenerationError,
    UnsupportedSourceError,
)
from worksheetgen.models.worksheet import (
    FormSnapshot,
    QuestionType,
    Worksheet,
    WorksheetFormState,
    is_valid_url,
)
from worksheetgen.services.ai import WorksheetGenerationClient
from worksheetgen.services.prompt_builder import build_request
from worksheetgen.services.text_extraction import (
    SUPPORTED_MIME_TYPES,
    DefaultTextExtractor,
    TextExtractor,
)

logger = logging.getLogger("worksheetgen.form")

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

MSG_TOPIC_REQUIRED = "Please enter a topic."
MSG_NO_QUESTION_TYPE = "Please select at least one question type."
MSG_IN_FLIGHT = "A worksheet is already being generated."
MSG_FILE_TOO_LARGE = "File size exceeds 10MB. Please select a smaller file."
MSG_UNSUPPORTED_FILE = "Unsupported file type. Please upload .txt, .pdf, or .docx"
MSG_FILE_READ_ERROR = "There was an error reading the file."
MSG_INVALID_URL = "Please enter a valid URL."
MSG_DUPLICATE_URL = "That link has already been added."


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    return errors[0].get("msg", str(exc))


def submit_blockers(state: WorksheetFormState) -> list[str]:
    """Inline messages explaining why submit is unavailable (empty if it is)."""
    blockers = []
    if not state.topic.strip():
        blockers.append(MSG_TOPIC_REQUIRED)
    if not state.selected_question_types:
        blockers.append(MSG_NO_QUESTION_TYPE)
    return blockers


def check_upload(content: bytes, mime_type: str | None, max_upload_bytes: int = MAX_UPLOAD_BYTES) -> None:
    if len(content) > max_upload_bytes:
        raise UnsupportedSourceError(MSG_FILE_TOO_LARGE, reason="too_large")
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise UnsupportedSourceError(MSG_UNSUPPORTED_FILE)


class WorksheetFormController:
    def __init__(
        self,
        generation_client: WorksheetGenerationClient,
        text_extractor: TextExtractor | None = None,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self.generation_client = generation_client
        self.text_extractor = text_extractor or DefaultTextExtractor()
        self.max_upload_bytes = max_upload_bytes

        self.state = WorksheetFormState()
        self.source_file_name: str | None = None

        self.worksheet: Worksheet | None = None
        self.error: str | None = None
        self.is_loading = False

        self._generation_token = 0
        self._ingest_token = 0

    # ── field updates ─────────────────────────

    def set_field(self, name: str, value) -> None:
        if name not in WorksheetFormState.model_fields:
            raise FormValidationError(f"Unknown field: {name}")
        try:
            setattr(self.state, name, value)
        except ValidationError as exc:
            raise FormValidationError(_first_error(exc)) from exc

    def toggle_question_type(self, question_type: QuestionType) -> None:
        try:
            question_type = QuestionType(question_type)
        except ValueError as exc:
            raise FormValidationError(f"Unknown question type: {question_type}") from exc
        types = dict(self.state.question_types)
        types[question_type] = not types[question_type]
        self.state.question_types = types

    # ── source material ───────────────────────

    async def ingest_file(self, filename: str, content: bytes, mime_type: str) -> str | None:
        """Extract text from an upload into source_text.

        Returns the stored text, or None when a newer upload superseded this
        one while it was being read.
        """
        self._ingest_token += 1
        token = self._ingest_token

        try:
            check_upload(content, mime_type, self.max_upload_bytes)
        except UnsupportedSourceError:
            self.remove_source()
            raise

        try:
            text = await asyncio.to_thread(self.text_extractor.extract, content, mime_type)
        except ExtractionFailure as exc:
            logger.warning("Extraction failed for %r: %s", filename, exc)
            if token == self._ingest_token:
                self.remove_source()
            raise ExtractionFailure(MSG_FILE_READ_ERROR) from exc

        if token != self._ingest_token:
            logger.info("Discarding stale extraction of %r", filename)
            return None

        self.state.source_text = text
        self.source_file_name = filename
        return text

    def remove_source(self) -> None:
        self.state.source_text = None
        self.source_file_name = None

    def add_link(self, url: str) -> None:
        url = (url or "").strip()
        if not is_valid_url(url):
            raise FormValidationError(MSG_INVALID_URL)
        if url in self.state.source_links:
            raise FormValidationError(MSG_DUPLICATE_URL)
        self.state.source_links = [*self.state.source_links, url]

    def remove_link(self, url: str) -> None:
        if url in self.state.source_links:
            self.state.source_links = [link for link in self.state.source_links if link != url]

    # ── submission ────────────────────────────

    def submit_blockers(self) -> list[str]:
        return submit_blockers(self.state)

    @property
    def can_submit(self) -> bool:
        return not self.is_loading and not self.submit_blockers()

    def snapshot(self) -> FormSnapshot:
        blockers = self.submit_blockers()
        if blockers:
            raise FormValidationError(blockers[0])
        return FormSnapshot.of(self.state)

    async def submit(self) -> Worksheet | None:
        """Run one generation for the current form.

        Generation failures are not raised: the generic user message is
        stored in ``error`` and None is returned.
        """
        if self.is_loading:
            raise FormValidationError(MSG_IN_FLIGHT)
        snapshot = self.snapshot()

        self._generation_token += 1
        token = self._generation_token
        self.is_loading = True
        self.worksheet = None
        self.error = None

        try:
            worksheet = await self.generation_client.generate(build_request(snapshot))
        except GenerationError as exc:
            if token == self._generation_token:
                self.error = exc.user_message
            return None
        finally:
            if token == self._generation_token:
                self.is_loading = False

        if token != self._generation_token:
            logger.info("Discarding stale worksheet from submission #%d", token)
            return None

        self.worksheet = worksheet
        return worksheet
