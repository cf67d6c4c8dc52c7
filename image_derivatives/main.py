import logging
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import UploadFile

from image_derivatives.dependencies import (
    get_orchestrator,
    get_transform_params,
    get_upload_normalizer,
    get_worker_pool,
    reset_dependencies,
)
from image_derivatives.errors import ImageServiceError, ProcessingTimeoutError
from image_derivatives.normalizer import UPLOAD_TIMED_OUT, UploadNormalizer
from image_derivatives.orchestrator import ServingOrchestrator
from image_derivatives.schemas import TransformParams, UploadOutcome
from image_derivatives.workers import WorkerPool
from config import get_settings

# Get settings and configure logging before anything else
settings = get_settings()
settings.configure_logging()

# Create logger for this module
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Storage root: {settings.storage_root}")
    logger.info(f"Worker threads: {settings.worker_threads}, task timeout: {settings.task_timeout}s")

    # Ensure storage directory exists
    settings.storage_root.mkdir(parents=True, exist_ok=True)

    yield

    # Shutdown
    logger.info("Shutting down application")
    reset_dependencies()


# Create FastAPI app with settings
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Simple health-check endpoint."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": settings.app_version,
    }


@app.get("/config")
def get_config() -> dict[str, Any]:
    """Get current configuration (non-sensitive values only)."""
    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "environment": settings.environment,
        "debug": settings.debug,
        "canonical_cache_keys": settings.canonical_cache_keys,
        "log_level": settings.log_level,
        "log_json": settings.log_json,
        "max_upload_size": settings.max_upload_size,
        "worker_threads": settings.worker_threads,
        "task_timeout": settings.task_timeout,
    }


@app.post("/upload", response_model=list[UploadOutcome])
async def upload_images(
    request: Request,
    normalizer: UploadNormalizer = Depends(get_upload_normalizer),
    pool: WorkerPool = Depends(get_worker_pool),
) -> list[UploadOutcome]:
    """Upload one or more images as parts of a multipart form.

    Each part is stored as a canonical lossless WebP named after the part's
    filename without its extension. Parts are processed independently: a
    rejected part never stops the ones after it.

    Returns:
        list[UploadOutcome]: One outcome per form part, in submission order.
        The status is 200 even when every part failed.
    """
    outcomes: list[UploadOutcome] = []

    async with request.form() as form:
        for field_name, value in form.multi_items():
            if isinstance(value, UploadFile):
                filename = value.filename
                content = await value.read()
            else:
                # A plain form field has no filename in its Content-Disposition
                logger.debug(f"Form field {field_name!r} is not a file")
                filename, content = None, None

            try:
                outcome = await pool.run(normalizer.ingest, filename, content)
            except ProcessingTimeoutError:
                # The worker keeps running and may still create the canonical file
                logger.warning(f"Upload of {filename!r} timed out")
                outcome = UploadOutcome(filename=filename or None).with_error(UPLOAD_TIMED_OUT)
            except ImageServiceError as e:
                outcome = UploadOutcome(filename=filename or None).with_error(e.message)
            outcomes.append(outcome)

    accepted = sum(1 for outcome in outcomes if outcome.ok)
    logger.info(f"Upload finished: {accepted} of {len(outcomes)} parts stored")
    return outcomes


@app.get("/{base_name}.{extension}")
async def fetch_image(
    base_name: str,
    extension: str,
    request: Request,
    params: TransformParams = Depends(get_transform_params),
    orchestrator: ServingOrchestrator = Depends(get_orchestrator),
) -> Response:
    """Serve an image, converted and resized according to the query string.

    Args:
        base_name: Name the image was uploaded under, without extension
        extension: Output format: webp, png or jpeg
        params: Optional w, h, stretch and sampling query parameters
        orchestrator: Cache-aware serving pipeline

    Returns:
        Response: Raw image bytes with ``content-type: image/{extension}``

    Raises:
        HTTPException: 400 for an unsupported extension, 404 if the image
            was never uploaded, 500 for decode or storage failures, 503 if
            processing timed out.
    """
    try:
        content, output_format = await orchestrator.serve(
            base_name,
            extension,
            request.url.query,
            params,
        )
    except ImageServiceError as e:
        if e.status_code >= 500:
            logger.error(f"Failed to serve {base_name}.{extension}: {e.message}")
        else:
            logger.warning(f"Rejected request for {base_name}.{extension}: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return Response(content=content, media_type=output_format.media_type)


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
