"""
Despiece extractor — turns raw model text into a list of pieces.

Extraction looks for a balanced JSON array in the text (one ending the text
first, then the first one anywhere), parses it, and normalizes every item
to the piece schema.
Any failure is logged and absorbed here; the caller gets None and
substitutes the fallback list, so an analyze request that reached the
model always answers with at least one piece.
"""

import json
import logging
from typing import Optional, List, Dict

from .errors import ExtractionFailure
from .schemas import Measurements

logger = logging.getLogger(__name__)

VALID_CUT_METHODS = ("sierra", "CNC")

# Fallback thickness for the placeholder top panel, mm
FALLBACK_THICKNESS = 18

_DECODER = json.JSONDecoder()


class DespieceExtractor:
    """
    Usage:
        extractor = DespieceExtractor()
        pieces = extractor.extract(raw_text)
        if pieces is None:
            pieces = extractor.fallback_pieces(measurements)
    """

    def extract(self, response_text: str) -> Optional[List[Dict]]:
        """Parse and normalize model output. Returns None instead of raising."""
        try:
            return self.normalize(self.parse(response_text))
        except ExtractionFailure as e:
            logger.warning("Despiece extraction failed: %s — using fallback", e)
            return None

    def find_array(self, response_text: str) -> Optional[str]:
        """
        First balanced JSON array in the text, preferring one that ends it.

        Every "[" is tried as the start of a JSON value; brackets in the
        surrounding prose ("[mm]", "[v1]") simply fail to decode and are skipped.
        """
        if not response_text:
            return None

        first = None
        pos = response_text.find("[")
        while pos != -1:
            try:
                value, end = _DECODER.raw_decode(response_text, pos)
            except json.JSONDecodeError:
                pos = response_text.find("[", pos + 1)
                continue
            if isinstance(value, list):
                candidate = response_text[pos:end]
                if not response_text[end:].strip():
                    return candidate
                if first is None:
                    first = candidate
            # nested arrays can't end the text, skip past this one
            pos = response_text.find("[", end)
        return first

    def parse(self, response_text: str) -> list:
        candidate = self.find_array(response_text)
        if candidate is None:
            raise ExtractionFailure("no JSON array in model response")
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            raise ExtractionFailure("invalid JSON array: %s" % e)
        if not isinstance(data, list):
            raise ExtractionFailure("model response is not a list")
        return data

    def normalize(self, items: list) -> List[Dict]:
        """Coerce parsed items into pieces; drop anything that isn't an object."""
        validated = []
        for item in items:
            if not isinstance(item, dict):
                continue

            piece = {
                "pieza": _text(item.get("pieza")) or "Pieza",
                "cantidad": _quantity(item.get("cantidad")),
                "dimensiones": _text(item.get("dimensiones")),
                "espesor": _thickness(item.get("espesor")),
                "corte": normalize_cut_method(item.get("corte")),
                "observaciones": _text(item.get("observaciones")),
            }
            validated.append(piece)

        if not validated:
            raise ExtractionFailure("array contained no piece objects")
        return validated

    def fallback_pieces(self, measurements: Measurements) -> List[Dict]:
        """Single placeholder top panel built from the request's width and depth."""
        return [
            {
                "pieza": "Tapa superior",
                "cantidad": 1,
                "dimensiones": "%sx%sx%d" % (measurements.width, measurements.depth, FALLBACK_THICKNESS),
                "espesor": str(FALLBACK_THICKNESS),
                "corte": "sierra",
                "observaciones": "Ejemplo fallback",
            }
        ]


def normalize_cut_method(value) -> str:
    """Map free-form cut descriptions onto "sierra" or "CNC"."""
    cut = str(value or "").strip().lower()
    if "cnc" in cut or "router" in cut or "fresad" in cut:
        return "CNC"
    return "sierra"


def _quantity(value) -> int:
    try:
        qty = int(float(value))
    except (TypeError, ValueError):
        return 1
    return qty if qty >= 1 else 1


def _thickness(value):
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float, str)):
        return value
    return str(value)


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()
