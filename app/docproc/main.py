"""
FastAPI application for the document processing service.

Provides endpoints for:
- Uploading a PDF or image together with the subject's details
- Polling, listing and deleting processing jobs
- Retrieving stored uploads
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .database import check_database, init_db
from .models import HealthResponse
from .routers import files, results, upload
from .services.exceptions import JobValidationError, StorageError
from .services.job_manager import get_job_manager

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Document Processing Service...")
    # Note: In production, use Alembic migrations instead of init_db()
    init_db()
    manager = get_job_manager()
    await manager.start()
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down Document Processing Service...")
    await manager.stop()


# Create FastAPI application
app = FastAPI(
    title="Document Processing API",
    description="Text extraction and AI structuring for identity documents",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        message="Document Processing API is running",
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint. Reports 503 when the database is unreachable."""
    if await asyncio.to_thread(check_database):
        return HealthResponse(
            status="healthy",
            version=__version__,
            message="Service is healthy",
            database="connected",
        )

    logger.error("Health check failed: database unreachable")
    unhealthy = HealthResponse(
        status="unhealthy",
        version=__version__,
        message="Database unreachable",
        database="disconnected",
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=unhealthy.model_dump(),
    )


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(upload.router)
app.include_router(results.router)
app.include_router(files.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(JobValidationError)
async def job_validation_error_handler(request, exc: JobValidationError):
    """Handle malformed submissions."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


@app.exception_handler(StorageError)
async def storage_error_handler(request, exc: StorageError):
    """Handle blob store and job store failures."""
    logger.error("Storage error while handling %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )
