from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
import asyncio
import logging
import mimetypes

from worksheetgen.core.config import get_settings
from worksheetgen.core.errors import ExtractionFailure, UnsupportedSourceError
from worksheetgen.services.form_state import MSG_FILE_READ_ERROR, MSG_FILE_TOO_LARGE, check_upload
from worksheetgen.services.telemetry import instrument
from worksheetgen.services.text_extraction import TextExtractor, get_text_extractor

router = APIRouter(prefix="/api/sources", tags=["sources"])

logger = logging.getLogger("worksheetgen.sources")


class ExtractedSource(BaseModel):
    file_name: str
    text: str


def _resolve_mime_type(file: UploadFile) -> str | None:
    """Declared content type, falling back to the file extension."""
    content_type = (file.content_type or "").split(";")[0].strip()
    if content_type and content_type != "application/octet-stream":
        return content_type
    guessed, _ = mimetypes.guess_type(file.filename or "")
    return guessed


@router.post("/extract", response_model=ExtractedSource)
@instrument(route="/api/sources/extract")
async def extract_source(
    file: UploadFile = File(...),
    extractor: TextExtractor = Depends(get_text_extractor),
):
    """Turn an uploaded .txt, .pdf or .docx into plain source text."""
    limit = get_settings().max_upload_bytes
    filename = file.filename or "unknown"
    mime_type = _resolve_mime_type(file)

    if file.size is not None and file.size > limit:
        raise HTTPException(status_code=413, detail=MSG_FILE_TOO_LARGE)
    # One byte past the limit is enough for check_upload to reject it
    content = await file.read(limit + 1)

    try:
        check_upload(content, mime_type, limit)
    except UnsupportedSourceError as e:
        status = 413 if e.reason == "too_large" else 415
        raise HTTPException(status_code=status, detail=str(e))

    try:
        text = await asyncio.to_thread(extractor.extract, content, mime_type)
    except ExtractionFailure as e:
        logger.warning("Extraction failed for %r: %s", filename, e)
        raise HTTPException(status_code=422, detail=MSG_FILE_READ_ERROR)

    return ExtractedSource(file_name=filename, text=text)
