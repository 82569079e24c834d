"""
FastAPI dependency providers.

Settings are built once per process; every component gets them through
its constructor. Tests swap these out via app.dependency_overrides.
"""

from fastapi import Depends

from .analyzer import AnalyzeOrchestrator
from .config import Settings, get_settings
from .despiece import DespieceExtractor
from .sheets import QuoteWriter, make_writer
from .vision_client import VisionClient


def get_settings_dep() -> Settings:
    return get_settings()


def get_vision_client(settings: Settings = Depends(get_settings_dep)) -> VisionClient:
    return VisionClient(settings)


def get_orchestrator(
    settings: Settings = Depends(get_settings_dep),
    client: VisionClient = Depends(get_vision_client),
) -> AnalyzeOrchestrator:
    return AnalyzeOrchestrator(settings, client, DespieceExtractor())


def get_quote_writer(settings: Settings = Depends(get_settings_dep)) -> QuoteWriter:
    return make_writer(settings)
