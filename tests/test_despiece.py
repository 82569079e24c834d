"""
Despiece extractor tests.

Tests:
1-8.   Array location (balanced arrays, ending the text first, brackets in prose)
9-12.  Parsing + normalization (quantities, cut methods, non-object items)
13-15. Fallback list and extract() absorbing failures
"""

import json

import pytest

from cotizador.despiece import DespieceExtractor, normalize_cut_method
from cotizador.errors import ExtractionFailure
from cotizador.schemas import Measurements


def _piece(**overrides):
    piece = {
        "pieza": "Lateral",
        "cantidad": 2,
        "dimensiones": "720x350x18",
        "espesor": "18",
        "corte": "sierra",
        "observaciones": "canto en frente",
    }
    piece.update(overrides)
    return piece


# ============================================================
# Array location
# ============================================================

def test_find_array_prefers_array_ending_the_text():
    extractor = DespieceExtractor()
    text = 'Here you go:\n[{"pieza": "Top"}]\n'
    assert extractor.find_array(text) == '[{"pieza": "Top"}]'


def test_find_array_inside_prose_and_code_fence():
    extractor = DespieceExtractor()
    text = 'Claro:\n```json\n[{"pieza": "Base"}]\n```\nSaludos.'
    assert extractor.find_array(text) == '[{"pieza": "Base"}]'


def test_extract_ignores_bracketed_note_after_array():
    """A trailing "[mm]" in the prose doesn't swallow the array."""
    extractor = DespieceExtractor()
    text = 'Aqui tienes:\n[{"pieza": "Top", "cantidad": 1, "corte": "sierra"}]\nMedidas en [mm].'
    pieces = extractor.extract(text)
    assert pieces is not None
    assert len(pieces) == 1
    assert pieces[0]["pieza"] == "Top"


def test_extract_ignores_bracketed_label_before_array():
    extractor = DespieceExtractor()
    text = 'Respuesta [v1]:\n[{"pieza": "Top", "cantidad": 1, "corte": "sierra"}]'
    assert extractor.find_array(text) == '[{"pieza": "Top", "cantidad": 1, "corte": "sierra"}]'
    pieces = extractor.extract(text)
    assert [p["pieza"] for p in pieces] == ["Top"]


def test_find_array_skips_earlier_array_in_prose():
    """An earlier array in the prose loses to the one that ends the response."""
    extractor = DespieceExtractor()
    text = 'Opciones ["sierra", "CNC"]. Despiece:\n[{"pieza": "Base"}]  \n'
    assert extractor.find_array(text) == '[{"pieza": "Base"}]'


def test_find_array_keeps_nested_arrays_whole():
    extractor = DespieceExtractor()
    text = 'Resultado: [{"pieza": "Base", "notas": ["a", "b"]}] listo.'
    assert extractor.find_array(text) == '[{"pieza": "Base", "notas": ["a", "b"]}]'


def test_find_array_missing_returns_none():
    extractor = DespieceExtractor()
    assert extractor.find_array("I cannot help with that.") is None
    assert extractor.find_array("") is None
    assert extractor.find_array(None) is None


def test_parse_raises_extraction_failure():
    extractor = DespieceExtractor()
    with pytest.raises(ExtractionFailure):
        extractor.parse("no array here")
    with pytest.raises(ExtractionFailure):
        extractor.parse("[not, valid, json]")


# ============================================================
# Parsing + normalization
# ============================================================

def test_extract_single_piece_after_prose():
    """The leading sentence is ignored; one piece named Top comes back."""
    extractor = DespieceExtractor()
    text = 'Here you go:\n[{"pieza":"Top","cantidad":1,"dimensiones":"600x350x18","espesor":"18","corte":"sierra","observaciones":""}]'
    pieces = extractor.extract(text)
    assert pieces is not None
    assert len(pieces) == 1
    assert pieces[0]["pieza"] == "Top"
    assert pieces[0]["cantidad"] == 1


def test_extract_keeps_emission_order():
    extractor = DespieceExtractor()
    items = [_piece(pieza="Tapa"), _piece(pieza="Base"), _piece(pieza="Lateral")]
    pieces = extractor.extract(json.dumps(items))
    assert [p["pieza"] for p in pieces] == ["Tapa", "Base", "Lateral"]


def test_normalize_quantities_and_cut_methods():
    """Bad quantities become 1, cut methods collapse to sierra/CNC."""
    extractor = DespieceExtractor()
    pieces = extractor.normalize([
        _piece(cantidad=0, corte="CNC router"),
        _piece(cantidad=-3, corte="Sierra circular"),
        _piece(cantidad="4", corte="cnc"),
        _piece(cantidad="varias", corte="a mano"),
        _piece(cantidad=2.0, corte=None),
    ])
    assert [p["cantidad"] for p in pieces] == [1, 1, 4, 1, 2]
    assert [p["corte"] for p in pieces] == ["CNC", "sierra", "CNC", "sierra", "sierra"]


def test_normalize_drops_non_objects_and_fills_missing_fields():
    extractor = DespieceExtractor()
    pieces = extractor.normalize(["texto", 3, {"cantidad": 2}])
    assert len(pieces) == 1
    assert pieces[0] == {
        "pieza": "Pieza",
        "cantidad": 2,
        "dimensiones": "",
        "espesor": "",
        "corte": "sierra",
        "observaciones": "",
    }


def test_normalize_rejects_array_without_objects():
    extractor = DespieceExtractor()
    with pytest.raises(ExtractionFailure):
        extractor.normalize([1, 2, 3])
    with pytest.raises(ExtractionFailure):
        extractor.normalize([])


def test_normalize_cut_method_variants():
    assert normalize_cut_method("CNC") == "CNC"
    assert normalize_cut_method("fresadora") == "CNC"
    assert normalize_cut_method("sierra") == "sierra"
    assert normalize_cut_method("") == "sierra"


# ============================================================
# Fallback
# ============================================================

def test_extract_returns_none_without_array():
    extractor = DespieceExtractor()
    assert extractor.extract("I cannot help with that.") is None
    assert extractor.extract('{"pieza": "Top"}') is None
    assert extractor.extract("[]") is None


def test_fallback_uses_width_and_depth():
    extractor = DespieceExtractor()
    pieces = extractor.fallback_pieces(Measurements(width="600", height="720", depth="350"))
    assert len(pieces) == 1
    assert pieces[0]["dimensiones"] == "600x350x18"
    assert pieces[0]["cantidad"] == 1
    assert pieces[0]["corte"] == "sierra"
    assert pieces[0]["espesor"] == "18"
    assert "fallback" in pieces[0]["observaciones"].lower()


def test_fallback_with_empty_measurements():
    """Empty fields interpolate as empty strings."""
    extractor = DespieceExtractor()
    pieces = extractor.fallback_pieces(Measurements())
    assert pieces[0]["dimensiones"] == "xx18"
