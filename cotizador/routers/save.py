"""
Save endpoints — persist a reviewed quote to Google Sheets.

POST /api/save           — {"project": {...}}
POST /api/save-to-sheets — {"projectData": {...}} (legacy client payload)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..dependencies import get_quote_writer
from ..errors import MissingProjectError
from ..schemas import LegacySaveRequest, Project, SaveRequest, SaveResponse
from ..sheets import QuoteWriter, build_quote_record

logger = logging.getLogger(__name__)

router = APIRouter(tags=["save"])


def _persist(project: Project, writer: QuoteWriter) -> str:
    record = build_quote_record(project)
    ack = writer.write(record)
    logger.info("Quote %s saved to %s (%d pieces)", project.id, ack, len(project.pieces))
    return ack


@router.post("/save", response_model=SaveResponse, response_model_exclude_none=True)
def save(
    request: Optional[SaveRequest] = None,
    writer: QuoteWriter = Depends(get_quote_writer),
):
    """Write the project as a new record. Not idempotent."""
    if request is None or request.project is None:
        raise MissingProjectError()
    sheet = _persist(request.project, writer)
    return SaveResponse(success=True, sheet=sheet)


@router.post("/save-to-sheets", response_model=SaveResponse, response_model_exclude_none=True)
def save_to_sheets(
    request: Optional[LegacySaveRequest] = None,
    writer: QuoteWriter = Depends(get_quote_writer),
):
    if request is None or request.projectData is None:
        raise MissingProjectError("No se recibieron datos del proyecto")
    sheet = _persist(request.projectData, writer)
    return SaveResponse(success=True, sheet=sheet, message="Guardado en Google Sheets")
