"""
FastAPI application entry point for the job board.

This is the main app that:
- Initializes FastAPI with CORS
- Registers all API routers
- Renders every error in the same envelope
- Provides health check endpoint
- Sets up database connection lifecycle
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from jobboard.config import get_settings
from jobboard import database
from jobboard.errors import (
    ForbiddenError,
    JobBoardError,
    NotFoundError,
    StorageError,
    UnauthenticatedError,
    ValidationError,
)
from jobboard.schemas.common import ErrorResponse
# Import API routers
from jobboard.api import applications, auth, bookmarks, jobs, recommendations

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    On startup: Database connection is already handled by engine
    On shutdown: Close database connections gracefully
    """
    # Startup
    logger.info("Starting job board API...")
    logger.info(f"Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else 'configured'}")
    logger.info(f"Debug mode: {settings.debug}")

    yield

    # Shutdown
    logger.info("Shutting down job board API...")
    await database.engine.dispose()


# Initialize FastAPI app
app = FastAPI(
    title="Job Board API",
    description="Job postings, bookmarks, applications and recommendations",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
# Set ALLOWED_ORIGINS environment variable with comma-separated domains
allowed_origins = [
    "http://localhost:3000",  # Local development
]

if settings.allowed_origins:
    allowed_origins.extend(settings.allowed_origins.split(','))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(exc: JobBoardError) -> JSONResponse:
    body = ErrorResponse(
        kind=exc.kind,
        message=exc.message,
        code=exc.status_code,
        error=exc.detail,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


# Errors raised by the framework itself (unknown route, wrong method)
HTTP_ERROR_KINDS = {
    401: UnauthenticatedError.kind,
    403: ForbiddenError.kind,
    404: NotFoundError.kind,
}


@app.exception_handler(JobBoardError)
async def job_board_error_handler(request: Request, exc: JobBoardError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
    return error_response(exc)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        kind = JobBoardError.kind
    else:
        kind = HTTP_ERROR_KINDS.get(exc.status_code, ValidationError.kind)
    body = ErrorResponse(kind=kind, message=str(exc.detail), code=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
    return error_response(ValidationError(message))


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Unhandled storage error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    return error_response(StorageError("Storage failure", detail=str(exc)))


# Health check endpoint
@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {
        "status": "healthy",
        "service": "Job Board API",
        "version": "1.0.0",
    }


# Register API routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(bookmarks.router, prefix="/api/bookmarks", tags=["bookmarks"])
app.include_router(applications.router, prefix="/api/applications", tags=["applications"])
app.include_router(recommendations.router, prefix="/api/recommendations", tags=["recommendations"])
