from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel
from typing import Literal
from urllib.parse import quote
import logging
import re
import time

from worksheetgen.core.errors import GenerationError
from worksheetgen.models.worksheet import (
    GRADE_LEVELS,
    MAX_QUESTIONS,
    MIN_QUESTIONS,
    FormSnapshot,
    Worksheet,
    WorksheetFormState,
)
from worksheetgen.prompts.worksheet_generation import QUESTION_TYPE_PHRASES
from worksheetgen.services.ai import WorksheetGenerationClient
from worksheetgen.services.form_state import submit_blockers
from worksheetgen.services.pdf import DocumentExporter, get_pdf_exporter, safe_pdf_filename
from worksheetgen.services.prompt_builder import build_request
from worksheetgen.services.renderer import render_worksheet
from worksheetgen.services.telemetry import emit_event, instrument

router = APIRouter(prefix="/api/worksheets", tags=["worksheets"])

logger = logging.getLogger("worksheetgen.worksheets")


_NON_ASCII = re.compile(r"[^\x20-\x7e]")


def content_disposition(filename: str) -> str:
    """Attachment header that survives non-latin-1 titles.

    Plain `filename` gets an ASCII stand-in; `filename*` (RFC 5987) carries
    the real name for clients that understand it.
    """
    fallback = _NON_ASCII.sub("_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def get_generation_client(request: Request) -> WorksheetGenerationClient:
    """Client built once at startup (see main.lifespan)."""
    return request.app.state.generation_client


# ──────────────────────────────────────────────
# Models
# ──────────────────────────────────────────────

class WorksheetGenerationResponse(BaseModel):
    worksheet: Worksheet
    generation_time_ms: int


class PDFExportRequest(BaseModel):
    worksheet: Worksheet
    pdf_type: Literal["full", "student", "answer_key"] = "full"


# ──────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────

@router.get("/options")
async def get_form_options():
    """Everything the form needs to draw its controls and defaults."""
    return {
        "grade_levels": GRADE_LEVELS,
        "question_types": [
            {"value": value, "description": phrase}
            for value, phrase in QUESTION_TYPE_PHRASES.items()
        ],
        "num_questions": {"min": MIN_QUESTIONS, "max": MAX_QUESTIONS},
        "defaults": WorksheetFormState().model_dump(mode="json"),
    }


@router.post("/generate", response_model=WorksheetGenerationResponse)
@instrument(route="/api/worksheets/generate")
async def generate_worksheet(
    form: WorksheetFormState,
    client: WorksheetGenerationClient = Depends(get_generation_client),
):
    """Generate a worksheet from a submitted form."""
    blockers = submit_blockers(form)
    if blockers:
        raise HTTPException(status_code=422, detail=blockers[0])

    snapshot = FormSnapshot.of(form)
    t0 = time.time()
    try:
        worksheet = await client.generate(build_request(snapshot))
    except GenerationError as e:
        emit_event("generation", route="/api/worksheets/generate", topic=snapshot.topic,
                   error_type=e.kind, ok=False)
        raise HTTPException(status_code=502, detail=e.user_message)

    elapsed_ms = int((time.time() - t0) * 1000)
    emit_event("generation", route="/api/worksheets/generate", topic=snapshot.topic,
               latency_ms=elapsed_ms, ok=True, question_count=len(worksheet.questions))
    return WorksheetGenerationResponse(worksheet=worksheet, generation_time_ms=elapsed_ms)


@router.post("/preview")
async def preview_worksheet(worksheet: Worksheet):
    """Rendered document structure plus its plain-text printable form."""
    document = render_worksheet(worksheet)
    return {"document": document, "text": document.to_text()}


@router.post("/export-pdf")
@instrument(route="/api/worksheets/export-pdf")
async def export_worksheet_pdf(
    request: PDFExportRequest,
    exporter: DocumentExporter = Depends(get_pdf_exporter),
):
    """Export a worksheet as a PDF file."""
    document = render_worksheet(request.worksheet)
    pdf_bytes = exporter.export(document, variant=request.pdf_type)
    emit_event("pdf_export", route="/api/worksheets/export-pdf", ok=True,
               pdf_type=request.pdf_type, size_bytes=len(pdf_bytes))

    filename = safe_pdf_filename(request.worksheet.title)
    if request.pdf_type != "full":
        filename = filename[: -len(".pdf")] + f"_{request.pdf_type}.pdf"

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": content_disposition(filename)
        }
    )
