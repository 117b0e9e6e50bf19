"""Main FastAPI application with modularized routes."""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from certprep.config import LOG_LEVEL
from certprep.database import init_db
from certprep.routes import attempts, auth, dashboard, goals, history, tests
from certprep.services.cleanup_service import schedule_sessions_cleanup
from certprep.utils import ExamIdsDecodeError
from core.logging_setup import setup_console_logging

setup_console_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Certification Prep API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database and schedule session cleanup on startup."""
    init_db()
    schedule_sessions_cleanup()


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query parameters are plain 400s."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(ExamIdsDecodeError)
async def exam_ids_error_handler(request: Request, exc: ExamIdsDecodeError) -> JSONResponse:
    logger.error(f"Corrupt goal exam list on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Stored goal data is corrupt"})


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# Include routers
app.include_router(auth.router)
app.include_router(tests.router)
app.include_router(attempts.router)
app.include_router(history.router)
app.include_router(dashboard.router)
app.include_router(goals.router)
