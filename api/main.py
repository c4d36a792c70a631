"""
FastAPI application initialization
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from api.routes import health, sources, stories, stats, export
from core.config import settings
from core.database import create_tables
from core.exceptions import (
    CurationException,
    InvalidStageError,
    InvalidRecordError,
    ResourceNotFoundError,
    StageTransitionError,
)
from core.logging import setup_logging
from schemas.api import ErrorResponse
import logging
from api.middleware import RequestContextMiddleware, get_request_id
from curation.scheduler import ExportScheduler

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Historical Map Curation API",
    description="Backend service for curating historical geographic sources and their timeline",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Created on startup when EXPORT_SCHEDULE_ENABLED is set
scheduler = None


# Include routers
app.include_router(health.router)
app.include_router(sources.router)
app.include_router(stories.router)
app.include_router(stats.router)
app.include_router(export.router)


def _error_response(status_code: int, error: str, exc: CurationException, violations=None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=exc.message, violations=violations)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


@app.exception_handler(ResourceNotFoundError)
async def not_found_handler(request: Request, exc: ResourceNotFoundError):
    logger.info(f"[{get_request_id(request)}] {exc.message}")
    return _error_response(404, "Not found", exc)


@app.exception_handler(StageTransitionError)
async def stage_transition_handler(request: Request, exc: StageTransitionError):
    logger.warning(f"[{get_request_id(request)}] {exc.message}: {'; '.join(exc.violations)}")
    return _error_response(409, "Stage transition blocked", exc, violations=exc.violations)


@app.exception_handler(InvalidStageError)
async def invalid_stage_handler(request: Request, exc: InvalidStageError):
    logger.warning(f"[{get_request_id(request)}] {exc.message}")
    return _error_response(400, "Invalid stage", exc)


@app.exception_handler(InvalidRecordError)
async def invalid_record_handler(request: Request, exc: InvalidRecordError):
    logger.warning(f"[{get_request_id(request)}] {exc.message}")
    return _error_response(422, "Invalid record", exc)


@app.exception_handler(CurationException)
async def curation_error_handler(request: Request, exc: CurationException):
    logger.error(f"[{get_request_id(request)}] {exc}", extra={"error_context": exc.to_dict()})
    return _error_response(500, "Internal error", exc)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    global scheduler

    logger.info("Starting Historical Map Curation API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")
    logger.info(f"Stage gates enforced on updates: {settings.ENFORCE_STAGE_GATES}")

    await create_tables()

    if settings.EXPORT_SCHEDULE_ENABLED:
        scheduler = ExportScheduler()
        scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Historical Map Curation API")
    if scheduler is not None:
        await scheduler.stop()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Historical Map Curation API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "sources": "/api/sources",
            "stories": "/api/stories",
            "stats": "/api/stats",
            "export": "/api/export/config"
        }
    }
