"""Local filesystem implementation of StorageClient."""
import logging
from pathlib import Path

from .base import StorageClient, StorageError

logger = logging.getLogger(__name__)


class LocalStorageClient(StorageClient):
    """Local filesystem storage implementation.

    Every blob is a file directly inside ``storage_root``. Names that would
    resolve outside the root are rejected.
    """

    def __init__(self, storage_root: str | Path):
        """Initialize local storage client.

        Args:
            storage_root: Root directory for canonical images and derivatives.
        """
        self.storage_root = Path(storage_root)
        self._ensure_storage_dir()
        logger.info(f"Initialized LocalStorageClient with root: {self.storage_root}")

    def _ensure_storage_dir(self) -> None:
        """Ensure the storage directory exists."""
        try:
            self.storage_root.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured storage directory exists: {self.storage_root}")
        except OSError as e:
            logger.error(f"Failed to create storage directory: {e}")
            raise StorageError(f"Failed to create storage directory: {e}")

    def path_for(self, name: str) -> Path:
        """Resolve a blob name to its file path.

        Raises:
            ValueError: If the name is empty or is not a plain file name.
        """
        if not name:
            raise ValueError("Blob name cannot be empty")
        if name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
            raise ValueError(f"Invalid blob name: {name!r}")
        return self.storage_root / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def read(self, name: str) -> bytes:
        """Read a file from the storage root.

        Raises:
            FileNotFoundError: If the file does not exist.
            StorageError: If the file cannot be read.
        """
        file_path = self.path_for(name)
        try:
            content = file_path.read_bytes()
        except FileNotFoundError:
            logger.debug(f"Blob not found: {file_path}")
            raise
        except OSError as e:
            logger.error(f"Failed to read {file_path}: {e}")
            raise StorageError(f"Failed to read {name}: {e}")

        logger.debug(f"Read {len(content)} bytes from: {file_path}")
        return content

    def write(self, name: str, content: bytes) -> None:
        """Write a file, overwriting whatever is there.

        Raises:
            StorageError: If the file cannot be written.
        """
        file_path = self.path_for(name)
        try:
            file_path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to write {file_path}: {e}")
            raise StorageError(f"Failed to write {name}: {e}")

        logger.debug(f"Wrote {len(content)} bytes to: {file_path}")

    def create(self, name: str, content: bytes) -> None:
        """Create a new file with exclusive-create semantics.

        A file left half-written by a failed write is removed so the name
        can be uploaded again.

        Raises:
            FileExistsError: If the file already exists.
            StorageError: If the file cannot be created or written.
        """
        file_path = self.path_for(name)
        try:
            f = open(file_path, "xb")
        except FileExistsError:
            logger.debug(f"Refusing to overwrite existing file: {file_path}")
            raise
        except OSError as e:
            logger.error(f"Failed to create {file_path}: {e}")
            raise StorageError("New file could not be created.")

        try:
            with f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to write {file_path}: {e}")
            try:
                file_path.unlink(missing_ok=True)
            except OSError:
                logger.warning(f"Could not remove partially written file: {file_path}")
            raise StorageError("File contents could not be saved.")

        logger.debug(f"Created {file_path} ({len(content)} bytes)")
