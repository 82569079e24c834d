from pydantic import BaseModel
from typing import Optional, List, Union

Scalar = Union[str, int, float]


class Measurements(BaseModel):
    width: Scalar = ""
    height: Scalar = ""
    depth: Scalar = ""
    material: str = ""
    description: str = ""


class Piece(BaseModel):
    pieza: str
    cantidad: int = 1
    dimensiones: str = ""
    espesor: Scalar = ""
    corte: str = "sierra"
    observaciones: str = ""


class AnalysisResult(BaseModel):
    success: bool = True
    pieces: List[Piece]
    projectId: int
    # True when the pieces are the fallback list; kept out of the response body
    degraded: bool = False


class AnalyzeResponse(BaseModel):
    success: bool
    pieces: List[Piece]
    projectId: int


class Project(BaseModel):
    id: Optional[Scalar] = None
    width: Optional[Scalar] = None
    height: Optional[Scalar] = None
    depth: Optional[Scalar] = None
    material: Optional[str] = None
    description: Optional[str] = None
    pieces: List[dict] = []


class SaveRequest(BaseModel):
    project: Optional[Project] = None


class LegacySaveRequest(BaseModel):
    projectData: Optional[Project] = None


class SaveResponse(BaseModel):
    success: bool
    sheet: Optional[str] = None
    message: Optional[str] = None
