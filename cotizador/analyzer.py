"""
Analyze orchestrator.

One pass per request, nothing retained between requests:
validate image -> stage upload -> build prompt -> call model -> extract -> respond.

The uploaded image is staged under UPLOAD_DIR only for the lifetime of the
request and released on every exit path. A model failure is terminal;
an extraction failure never is (fallback pieces).
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Optional

from .config import Settings
from .despiece import DespieceExtractor
from .errors import ImageTooLargeError, MissingImageError
from .prompts import build_despiece_prompt
from .schemas import AnalysisResult, Measurements
from .vision_client import VisionClient

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
}


def guess_mime_type(filename: str) -> str:
    """MIME type from the file extension, image/jpeg when unknown."""
    ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
    return MIME_TYPES.get(ext, "image/jpeg")


def new_project_id() -> int:
    """Millisecond timestamp. Distinguishes quotes within a session, not globally unique."""
    return int(time.time() * 1000)


class AnalyzeOrchestrator:
    def __init__(self, settings: Settings, client: VisionClient,
                 extractor: Optional[DespieceExtractor] = None):
        self.settings = settings
        self.client = client
        self.extractor = extractor or DespieceExtractor()

    @property
    def max_upload_bytes(self) -> int:
        return self.settings.MAX_UPLOAD_MB * 1024 * 1024

    def read_upload(self, fileobj) -> bytes:
        """Read at most one byte past the limit so oversized uploads are never held whole."""
        return fileobj.read(self.max_upload_bytes + 1)

    def analyze(self, measurements: Measurements, image_bytes: Optional[bytes],
                filename: str = "") -> AnalysisResult:
        """
        Run the despiece pipeline for one request.

        Raises:
            MissingImageError: no image (or an empty one) was uploaded.
            ImageTooLargeError: image exceeds MAX_UPLOAD_MB.
            UpstreamError: the vision model call failed.
        """
        if not image_bytes:
            raise MissingImageError()

        max_bytes = self.max_upload_bytes
        if len(image_bytes) > max_bytes:
            raise ImageTooLargeError(
                "Imagen demasiado grande",
                details="El archivo supera el máximo de %dMB" % self.settings.MAX_UPLOAD_MB,
            )

        staged = self.stage_upload(image_bytes, filename)
        try:
            data = staged.read_bytes()
            prompt = build_despiece_prompt(measurements)
            raw_text = self.client.complete(prompt, data, guess_mime_type(filename))

            pieces = self.extractor.extract(raw_text)
            degraded = pieces is None
            if degraded:
                logger.warning("Returning fallback despiece (width=%r depth=%r)",
                               measurements.width, measurements.depth)
                pieces = self.extractor.fallback_pieces(measurements)

            return AnalysisResult(
                success=True,
                pieces=pieces,
                projectId=new_project_id(),
                degraded=degraded,
            )
        finally:
            self.release_upload(staged)

    def stage_upload(self, image_bytes: bytes, filename: str) -> Path:
        """Write the upload to UPLOAD_DIR under a unique name."""
        upload_dir = Path(self.settings.UPLOAD_DIR)
        upload_dir.mkdir(parents=True, exist_ok=True)
        # only the extension survives; client names can exceed filesystem limits
        suffix = Path(filename or "").suffix[:10]
        path = upload_dir / ("%d-%s%s" % (new_project_id(), uuid.uuid4().hex[:8], suffix))
        path.write_bytes(image_bytes)
        return path

    def release_upload(self, path: Path) -> None:
        """Best-effort delete. Failures are logged, never raised."""
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Could not remove temporary upload %s: %s", path, e)
