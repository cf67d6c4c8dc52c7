"""Closed set of image formats the service reads and writes."""

from enum import Enum
from typing import Optional

from image_derivatives.errors import UnsupportedFormatError


class ImageFormat(str, Enum):
    """Image formats accepted on upload and produced on fetch.

    The value is the URL extension; ``pil_format`` is the name Pillow uses.
    """

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def pil_format(self) -> str:
        return self.name

    @property
    def media_type(self) -> str:
        return f"image/{self.value}"

    @classmethod
    def from_extension(cls, extension: str) -> "ImageFormat":
        """Resolve a URL extension to a format.

        Raises:
            UnsupportedFormatError: If the extension is not png, jpeg or webp.
        """
        try:
            return cls(extension)
        except ValueError:
            raise UnsupportedFormatError(
                f"Unsupported file format: {extension!r}. "
                f"Supported formats are {', '.join(f.value for f in cls)}."
            )

    @classmethod
    def from_pil_format(cls, pil_format: Optional[str]) -> Optional["ImageFormat"]:
        """Map the format Pillow sniffed from file bytes, or None if unsupported."""
        if pil_format is None:
            return None
        name = pil_format.upper()
        # Pillow reports multi-picture JPEGs from cameras as MPO
        if name == "MPO":
            name = "JPEG"
        return cls.__members__.get(name)


CANONICAL_FORMAT = ImageFormat.WEBP


def canonical_name(base_name: str) -> str:
    """Blob name of the canonical image for a base name."""
    return f"{base_name}.{CANONICAL_FORMAT.extension}"
