"""Normalize uploaded files into canonical lossless WebP images."""

import logging
from typing import Iterable, List, Optional, Tuple

from image_derivatives.codecs import decode_image, encode_image, sniff_format
from image_derivatives.errors import (
    ConflictError,
    ImageServiceError,
    UnsupportedFormatError,
    ValidationError,
)
from image_derivatives.formats import CANONICAL_FORMAT, ImageFormat, canonical_name
from image_derivatives.schemas import UploadOutcome
from image_derivatives.storage.base import StorageClient

logger = logging.getLogger(__name__)

ACCEPTED_UPLOAD_FORMATS = frozenset({ImageFormat.PNG, ImageFormat.JPEG, ImageFormat.WEBP})

# "?" separates the base name from the query in derivative keys
FORBIDDEN_FILENAME_CHARS = ("/", "\\", "\x00", "?")

MISSING_FILENAME = "The multi-part form was improperly formatted: A filename was not provided"
EMPTY_FILE = "No file data was provided."
DUPLICATE_NAME = "Another file with this name already exists."
UPLOAD_TIMED_OUT = ("Image processing timed out. The file may still be stored "
                    "once processing finishes.")
UNSUPPORTED_UPLOAD = ("Unsupported file format. Try converting to "
                      ".png, .jpeg, or .webp before uploading.")


def strip_extension(filename: str) -> str:
    """Remove the text after the final dot: ``"example.png"`` -> ``"example"``.

    A filename with no dot is returned unchanged.
    """
    base, dot, _ = filename.rpartition(".")
    return base if dot else filename


class UploadNormalizer:
    """Validates one uploaded file and stores it as a canonical image."""

    def __init__(self, storage: StorageClient, max_upload_size: Optional[int] = None):
        """Initialize the normalizer.

        Args:
            storage: Storage client holding canonical images.
            max_upload_size: Largest accepted payload in bytes, or None for no limit.
        """
        self.storage = storage
        self.max_upload_size = max_upload_size

    def ingest(self, filename: Optional[str], content: Optional[bytes]) -> UploadOutcome:
        """Ingest one form part.

        Never raises for bad input: every failure becomes an entry in the
        returned outcome's ``errors`` list.

        Args:
            filename: Filename from the part's Content-Disposition, if any.
            content: Raw bytes of the part.

        Returns:
            UploadOutcome: The filename and an empty error list on success.
        """
        outcome = UploadOutcome(filename=filename or None)
        try:
            self._store_canonical(filename, content)
        except ImageServiceError as e:
            logger.warning(f"Rejected upload {filename!r}: {e.message}")
            return outcome.with_error(e.message)

        logger.info(f"Stored canonical image for upload {filename!r}")
        return outcome

    def ingest_all(self, parts: Iterable[Tuple[Optional[str], Optional[bytes]]]) -> List[UploadOutcome]:
        """Ingest every part independently, one outcome per part, in order."""
        return [self.ingest(filename, content) for filename, content in parts]

    def _store_canonical(self, filename: Optional[str], content: Optional[bytes]) -> str:
        if not filename:
            raise ValidationError(MISSING_FILENAME)

        base_name = strip_extension(filename)
        if not base_name or any(char in filename for char in FORBIDDEN_FILENAME_CHARS):
            raise ValidationError(f"Invalid filename: {filename!r}")
        name = canonical_name(base_name)

        if not content:
            raise ValidationError(EMPTY_FILE)
        if self.max_upload_size is not None and len(content) > self.max_upload_size:
            raise ValidationError(
                f"File exceeds the maximum upload size of {self.max_upload_size} bytes."
            )

        # Early exit only; create() below is what actually enforces uniqueness
        if self.storage.exists(name):
            raise ConflictError(DUPLICATE_NAME)

        source_format = sniff_format(content)
        if source_format not in ACCEPTED_UPLOAD_FORMATS:
            raise UnsupportedFormatError(UNSUPPORTED_UPLOAD)

        image = decode_image(content, formats=(source_format.pil_format,))
        logger.debug(f"Decoded {filename!r} as {source_format.value} {image.size[0]}x{image.size[1]}")

        data = encode_image(image, CANONICAL_FORMAT)

        try:
            self.storage.create(name, data)
        except FileExistsError:
            raise ConflictError(DUPLICATE_NAME)
        return name
