from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from .config import Settings, get_settings
from .dependencies import get_settings_dep
from .errors import CotizadorError
from .routers import analyze, save

logger = logging.getLogger("cotizador")

app = FastAPI(
    title="Cotizador de despieces",
    description="Genera despieces tentativos de muebles a partir de una foto y guarda presupuestos en Google Sheets",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(analyze.router, prefix="/api")
app.include_router(save.router, prefix="/api")


@app.exception_handler(CotizadorError)
async def cotizador_error_handler(request: Request, exc: CotizadorError):
    """Render domain errors as {error, details?} with the error's status."""
    logger.error("%s %s -> %d %s: %s", request.method, request.url.path,
                 exc.status_code, exc.message, exc.details or "")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies/forms get the same {error, details} shape, as a 400."""
    logger.warning("%s %s -> 400 invalid request: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Solicitud inválida", "details": str(exc.errors())},
    )


@app.get("/health")
def health(settings: Settings = Depends(get_settings_dep)):
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "openai_configured": settings.openai_configured,
        "sheets_configured": settings.sheets_configured,
    }


@app.on_event("startup")
def log_configuration():
    """Startup banner. Missing credentials only fail at call time."""
    settings = get_settings()
    logger.info("Cotizador listening on port %s", settings.PORT)
    logger.info("  OpenAI API: %s (model %s)",
                "configured" if settings.openai_configured else "NOT configured",
                settings.OPENAI_MODEL)
    logger.info("  Google Sheets: %s (mode %s)",
                "configured" if settings.sheets_configured else "NOT configured",
                settings.SHEETS_MODE)
