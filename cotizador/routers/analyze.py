"""
Analyze endpoint.

POST /api/analyze — multipart form: image + width/height/depth/material/description.
Returns {success, pieces, projectId}.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..analyzer import AnalyzeOrchestrator
from ..dependencies import get_orchestrator
from ..errors import CotizadorError, UpstreamError
from ..schemas import AnalyzeResponse, Measurements

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analyze"])


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze(
    image: Optional[UploadFile] = File(None),
    width: str = Form(""),
    height: str = Form(""),
    depth: str = Form(""),
    material: str = Form(""),
    description: str = Form(""),
    orchestrator: AnalyzeOrchestrator = Depends(get_orchestrator),
):
    """
    Generate a tentative despiece from a furniture photo.

    - 400 when no image is uploaded
    - 413 when the image exceeds MAX_UPLOAD_MB
    - 500 when the vision model call fails (details preserved)
    Unparseable model output never fails the request; the fallback list is returned.
    """
    measurements = Measurements(
        width=width, height=height, depth=depth,
        material=material, description=description,
    )
    image_bytes = orchestrator.read_upload(image.file) if image is not None else None
    filename = image.filename if image is not None else ""

    try:
        result = orchestrator.analyze(measurements, image_bytes, filename or "")
    except CotizadorError:
        raise
    except Exception as e:
        logger.exception("Unexpected error analyzing image")
        raise UpstreamError("Error al procesar la imagen", details=str(e))

    return AnalyzeResponse(success=result.success, pieces=result.pieces, projectId=result.projectId)
