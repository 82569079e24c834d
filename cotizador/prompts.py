"""
Prompt construction for despiece generation.

The model is asked for a bare JSON array of pieces. Measurements and the
free-text description go in verbatim, empty fields stay empty.
"""

from .schemas import Measurements

SYSTEM_PROMPT = "Eres un experto en carpintería y fabricación de muebles."

# Exact shape the extractor expects back
OUTPUT_FORMAT = """[
  {
    "pieza": "nombre de la pieza",
    "cantidad": numero entero mayor o igual a 1,
    "dimensiones": "largoxanchoxespesor (mm)",
    "espesor": "18",
    "corte": "sierra|CNC",
    "observaciones": "detalle opcional"
  }
]"""


def build_despiece_prompt(measurements: Measurements) -> str:
    """Build the user instruction for one analyze request. Never fails."""
    return (
        "Eres un experto carpintero. Analiza la imagen adjunta de un mueble y, "
        "con base en las medidas y la descripción, genera un despiece tentativo "
        "(lista de piezas a cortar).\n\n"
        "Especificaciones:\n"
        f"- Medidas (mm): ancho={measurements.width}, alto={measurements.height}, "
        f"profundidad={measurements.depth}\n"
        f"- Material: {measurements.material}\n"
        f"- Descripción: {measurements.description}\n\n"
        "RESPONDE SOLO con un ARRAY JSON en este formato EXACTO:\n"
        f"{OUTPUT_FORMAT}\n\n"
        "Reglas:\n"
        '- "corte" debe ser exactamente "sierra" o "CNC".\n'
        '- "cantidad" es un entero mayor o igual a 1.\n'
        "- Sin texto adicional, sin markdown, sin explicaciones: solo el array JSON."
    )
