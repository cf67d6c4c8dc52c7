"""Error kinds raised by the image pipeline.

Every error carries the HTTP status the fetch route answers with. Upload
errors never reach the client as a status code; their message becomes an
entry in the part's ``errors`` list instead.
"""


class ImageServiceError(Exception):
    """Base exception for image service failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ImageServiceError):
    """Request data is missing or malformed."""

    status_code = 400


class UnsupportedFormatError(ImageServiceError):
    """Input or output format is not one of PNG, JPEG or WEBP."""

    status_code = 400


class ConflictError(ImageServiceError):
    """A canonical image with the same base name already exists."""

    status_code = 409


class DecodeError(ImageServiceError):
    """Bytes could not be parsed as the expected image format."""

    status_code = 500


class StorageError(ImageServiceError):
    """Filesystem create, write or read failure."""

    status_code = 500


class NotFoundError(ImageServiceError):
    """No canonical image exists for the requested base name."""

    status_code = 404


class ProcessingTimeoutError(ImageServiceError):
    """A worker task did not finish within the configured timeout."""

    status_code = 503


class EncodeError(ImageServiceError):
    """A decoded image could not be encoded in the requested format."""

    status_code = 500
