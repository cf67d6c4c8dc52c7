"""Storage client interface for canonical images and derivatives."""

from typing import Protocol, runtime_checkable

from image_derivatives.errors import StorageError


@runtime_checkable
class StorageClient(Protocol):
    """Abstract interface for blob storage under a single root.

    Blobs are addressed by a flat name (no directories). Canonical images
    and cached derivatives share the same namespace.
    """

    def exists(self, name: str) -> bool:
        """Check whether a blob with this name is stored.

        Args:
            name: Blob name relative to the storage root.

        Returns:
            bool: True if the blob exists, False otherwise.
        """
        ...

    def read(self, name: str) -> bytes:
        """Read a blob.

        Args:
            name: Blob name relative to the storage root.

        Returns:
            bytes: Stored content.

        Raises:
            FileNotFoundError: If the blob does not exist.
            StorageError: If the blob exists but cannot be read.
        """
        ...

    def write(self, name: str, content: bytes) -> None:
        """Write a blob, replacing any existing content.

        Raises:
            StorageError: If the blob cannot be written.
        """
        ...

    def create(self, name: str, content: bytes) -> None:
        """Create a blob that must not already exist.

        Creation is atomic with respect to other ``create`` calls for the
        same name: exactly one of them succeeds.

        Raises:
            FileExistsError: If a blob with this name already exists.
            StorageError: If the blob cannot be created or written.
        """
        ...


__all__ = ["StorageClient", "StorageError"]
