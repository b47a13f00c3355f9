"""
FastAPI application for the credit application OCR service.

Provides endpoints for:
- Uploading a credit application and extracting its business fields
- Health checks
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .models import HealthResponse
from .routers import ocr
from .services.assembler import assemble_error, assemble_internal_failure
from .services.exceptions import MissingFile, OCRServiceError
from .services.pipeline import close_pipeline, get_pipeline

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Credit Application OCR Service...")
    pipeline = get_pipeline()
    logger.info(
        "Pipeline ready: mode=%s schema=%s/v%s max_upload_bytes=%d media_types=%s",
        pipeline.adapter.mode,
        pipeline.schema.name,
        pipeline.schema.version,
        pipeline.policy.max_size_bytes,
        sorted(pipeline.policy.effective_media_types),
    )
    yield
    logger.info("Shutting down Credit Application OCR Service...")
    await close_pipeline()


# Create FastAPI application
app = FastAPI(
    title="Credit Application OCR API",
    description="Extracts business fields from credit applications using AI",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/", response_model=HealthResponse)
async def root() -> HealthResponse:
    """Root endpoint - health check."""
    return HealthResponse(
        status="healthy", message="OCR server is running.", version=__version__
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", message="Service is healthy", version=__version__)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(ocr.router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(OCRServiceError)
async def ocr_service_error_handler(request: Request, exc: OCRServiceError):
    """Handle pipeline errors raised outside the pipeline boundary."""
    response = assemble_error(exc, request_id=request.headers.get("x-request-id"))
    return JSONResponse(status_code=response.status_code, content=response.body)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Treat a `file` form part that is not an upload as no file at all."""
    if not any(tuple(error.get("loc", ()))[-1:] == ("file",) for error in exc.errors()):
        return await request_validation_exception_handler(request, exc)

    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    logger.warning("OCR request_id=%s: 'file' part is not an upload", request_id)
    response = assemble_error(MissingFile(), request_id=request_id)
    return JSONResponse(
        status_code=response.status_code,
        content=response.body,
        headers={"X-Request-ID": request_id},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Handle anything else as an internal failure."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    response = assemble_internal_failure(
        exc,
        request_id=request.headers.get("x-request-id"),
        expose_details=get_settings().debug,
    )
    return JSONResponse(status_code=response.status_code, content=response.body)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
