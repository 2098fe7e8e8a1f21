"""FastAPI application entry point. Registers middleware, routers and error handlers."""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.config import settings
from app.database import Base, engine
import app.models  # noqa: F401 - registers model metadata
from app.routers import auth, courses, degrees, enrollments, notifications, timeline
from app.workflow.errors import LineageIntegrityError, Unavailable, WorkflowError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Curriculum Workflow Service",
    description="Versioned courses and degrees with approval workflows and two-stage enrollment approval",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(courses.router)
app.include_router(degrees.router)
app.include_router(enrollments.router)
app.include_router(timeline.router)
app.include_router(notifications.router)


@app.on_event("startup")
def ensure_schema():
    Base.metadata.create_all(bind=engine)


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    headers = None
    if isinstance(exc, Unavailable):
        logger.warning("[api] %s %s unavailable: %s", request.method, request.url.path, exc.reason)
        headers = {"Retry-After": "5"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_response(), headers=headers)


def _fault_response(request: Request, exc: Exception) -> JSONResponse:
    correlation_id = uuid.uuid4().hex
    logger.error(
        "[api] unhandled %s on %s %s (correlation_id=%s)",
        type(exc).__name__, request.method, request.url.path, correlation_id,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "correlation_id": correlation_id},
    )


@app.exception_handler(LineageIntegrityError)
async def lineage_integrity_handler(request: Request, exc: LineageIntegrityError):
    return _fault_response(request, exc)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    return _fault_response(request, exc)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "Curriculum Workflow Service"}
