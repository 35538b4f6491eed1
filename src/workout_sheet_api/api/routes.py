"""API routes for exercise ingestion and sheet export."""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from workout_sheet_api.config import settings
from workout_sheet_api.models import BrandingConfig, Exercise, WorkoutSheet
from workout_sheet_api.parsers.link_extractor import extract_name_and_link, youtube_embed_url
from workout_sheet_api.parsers.models import ImportResult
from workout_sheet_api.parsers.tokenizer import tokenize_block
from workout_sheet_api.services.export_service import (
    ExportError,
    ExportService,
    pdf_filename,
    png_filename,
    xlsx_filename,
)
from workout_sheet_api.services.ingest_service import (
    ImportLimitError,
    IngestService,
    UnsupportedFileError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

EMPTY_RESULT_MESSAGE = "Nenhum exercício encontrado"

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------


class IngestTextRequest(BaseModel):
    """Request model for POST /ingest/text"""
    text: str = Field(..., description="Pasted block: one exercise per line, cells separated by tabs")
    default_category: Optional[str] = Field(default=None, description="Category before any TREINO marker")
    split_on_spaces: bool = Field(default=False, description="Also split tab-less lines on 2+ spaces")


class IngestRowsRequest(BaseModel):
    """Request model for POST /ingest/rows"""
    rows: List[List[Any]] = Field(..., description="Spreadsheet rows; the first cell holds the name")
    category: Optional[str] = None
    detect_markers: bool = False


class TextRequest(BaseModel):
    text: str


class IngestResponse(BaseModel):
    """Normalized exercises for a paste / row import"""
    success: bool
    exercises: List[Exercise]
    count: int
    message: Optional[str] = None


class ExportRequest(BaseModel):
    sheet: WorkoutSheet
    branding: BrandingConfig = Field(default_factory=BrandingConfig)


def _ingest_response(exercises: List[Exercise]) -> IngestResponse:
    return IngestResponse(
        success=len(exercises) > 0,
        exercises=exercises,
        count=len(exercises),
        message=None if exercises else EMPTY_RESULT_MESSAGE,
    )


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "environment": settings.ENVIRONMENT}


# ---------------------------------------------------------------------------
# Ingest: pasted text / rows / uploaded files
# ---------------------------------------------------------------------------


@router.post("/ingest/text", response_model=IngestResponse)
def ingest_text(request: IngestTextRequest):
    """Normalize a pasted block (TREINO A-E markers switch the category)."""
    try:
        exercises = IngestService().ingest_text(
            request.text,
            request.default_category,
            split_on_spaces=request.split_on_spaces,
        )
    except ImportLimitError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    return _ingest_response(exercises)


@router.post("/ingest/rows", response_model=IngestResponse)
def ingest_rows(request: IngestRowsRequest):
    """Normalize spreadsheet rows; one request = one category unless markers are on."""
    try:
        exercises = IngestService().ingest_rows(
            request.rows,
            request.category,
            detect_markers=request.detect_markers,
        )
    except ImportLimitError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    return _ingest_response(exercises)


@router.post("/ingest/file", response_model=ImportResult)
async def ingest_file(file: UploadFile = File(...)):
    """Import exercises from an uploaded .xlsx, .csv/.tsv or .txt file."""
    content = await file.read()
    try:
        result = await IngestService().parse_file(content, file.filename or "", file.content_type)
    except ImportLimitError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except UnsupportedFileError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc

    logger.info(f"Imported {result.count} exercises from {file.filename}")
    return result


@router.post("/ingest/split-link")
def split_link(request: TextRequest):
    """Split "Name https://youtu.be/..." into name and video link."""
    name, video_link = extract_name_and_link(request.text)
    return {"name": name, "video_link": video_link, "embed_url": youtube_embed_url(video_link)}


@router.post("/ingest/tokenize")
def tokenize(request: TextRequest):
    """Split a pasted block into rows of cells (no classification)."""
    return {"rows": tokenize_block(request.text)}


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


@router.post("/export/xlsx")
def export_xlsx(request: ExportRequest):
    """Export the sheet as an Excel workbook, one worksheet per category."""
    try:
        content = ExportService().render_xlsx(request.sheet)
    except ExportError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _attachment(content, XLSX_MEDIA_TYPE, xlsx_filename(request.sheet))


@router.post("/export/pdf")
def export_pdf(request: ExportRequest):
    """Export the sheet as an A4 PDF."""
    try:
        content = ExportService().render_pdf(request.sheet, request.branding)
    except ExportError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _attachment(content, "application/pdf", pdf_filename(request.sheet))


@router.post("/export/png")
def export_png(request: ExportRequest):
    """Export the sheet as a single PNG image."""
    try:
        content = ExportService().render_png(request.sheet, request.branding)
    except ExportError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _attachment(content, "image/png", png_filename(request.sheet))


@router.post("/export/text")
def export_text(request: ExportRequest):
    """Plain-text version of the sheet for messaging apps."""
    try:
        text = ExportService().render_text(request.sheet, request.branding)
    except ExportError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {"text": text}
