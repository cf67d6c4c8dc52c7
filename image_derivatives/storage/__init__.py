"""Storage module for canonical image and derivative persistence."""

from .base import StorageClient, StorageError
from .local import LocalStorageClient

__all__ = ["StorageClient", "StorageError", "LocalStorageClient"]
