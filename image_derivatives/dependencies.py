"""FastAPI dependency injection configuration."""

import logging
from typing import Optional

from fastapi import Depends, Query

from config import Settings, get_settings
from image_derivatives.cache import DerivativeCache
from image_derivatives.normalizer import UploadNormalizer
from image_derivatives.orchestrator import ServingOrchestrator
from image_derivatives.schemas import TransformParams
from image_derivatives.storage.base import StorageClient
from image_derivatives.storage.local import LocalStorageClient
from image_derivatives.transformer import ImageTransformer
from image_derivatives.workers import WorkerPool

logger = logging.getLogger(__name__)


# Global instance for storage client
_storage_client: StorageClient | None = None

# Global instance for the worker pool
_worker_pool: WorkerPool | None = None


def get_storage_client(settings: Settings = Depends(get_settings)) -> StorageClient:
    """Get the storage client rooted at the configured storage directory.

    Args:
        settings: Application settings providing ``storage_root``

    Returns:
        StorageClient: The shared storage client instance
    """
    global _storage_client

    if _storage_client is None:
        _storage_client = LocalStorageClient(settings.storage_root)
        logger.info(f"Created local storage client with root: {settings.storage_root}")

    return _storage_client


def get_worker_pool(settings: Settings = Depends(get_settings)) -> WorkerPool:
    """Get the shared worker pool for blocking image and file work."""
    global _worker_pool

    if _worker_pool is None:
        _worker_pool = WorkerPool(
            max_workers=settings.worker_threads,
            timeout=settings.task_timeout,
        )

    return _worker_pool


def get_transformer(settings: Settings = Depends(get_settings)) -> ImageTransformer:
    return ImageTransformer(jpeg_quality=settings.jpeg_quality)


def get_derivative_cache(
    settings: Settings = Depends(get_settings),
    storage: StorageClient = Depends(get_storage_client),
) -> DerivativeCache:
    return DerivativeCache(storage, canonicalize=settings.canonical_cache_keys)


def get_upload_normalizer(
    settings: Settings = Depends(get_settings),
    storage: StorageClient = Depends(get_storage_client),
) -> UploadNormalizer:
    return UploadNormalizer(storage, max_upload_size=settings.max_upload_size)


def get_orchestrator(
    storage: StorageClient = Depends(get_storage_client),
    cache: DerivativeCache = Depends(get_derivative_cache),
    transformer: ImageTransformer = Depends(get_transformer),
    pool: WorkerPool = Depends(get_worker_pool),
) -> ServingOrchestrator:
    """Get a serving orchestrator wired to the shared storage and pool.

    Built per request; it holds no state of its own.
    """
    return ServingOrchestrator(storage, cache, transformer, pool)


def reset_dependencies() -> None:
    """Drop the shared instances so the next request rebuilds them from settings.

    Shuts the worker pool down. Used on application shutdown and in tests.
    """
    global _storage_client, _worker_pool

    if _worker_pool is not None:
        _worker_pool.shutdown(wait=False)
    _storage_client = None
    _worker_pool = None


def get_transform_params(
    w: Optional[int] = Query(None, gt=0, description="Target width in pixels"),
    h: Optional[int] = Query(None, gt=0, description="Target height in pixels"),
    stretch: bool = Query(False, description="Ignore the aspect ratio and resize exactly"),
    sampling: Optional[str] = Query(None, description="Resampling filter name"),
) -> TransformParams:
    """Collect the fetch query parameters into a TransformParams value."""
    return TransformParams(w=w, h=h, stretch=stretch, sampling=sampling)
