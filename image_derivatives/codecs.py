"""Pillow-backed sniffing, decoding and encoding for the supported formats."""

import io
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from image_derivatives.errors import DecodeError, EncodeError, UnsupportedFormatError
from image_derivatives.formats import ImageFormat

SUPPORTED_PIL_FORMATS = tuple(f.pil_format for f in ImageFormat)


def sniff_format(content: bytes) -> Optional[ImageFormat]:
    """Identify the format of encoded image bytes from their header.

    Only the header is parsed. Returns None when the bytes are not PNG,
    JPEG or WEBP.
    """
    try:
        with Image.open(io.BytesIO(content), formats=SUPPORTED_PIL_FORMATS) as image:
            return ImageFormat.from_pil_format(image.format)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None


def decode_image(content: bytes, formats: Optional[Tuple[str, ...]] = None) -> Image.Image:
    """Decode image bytes fully into memory.

    Args:
        content: Encoded image bytes.
        formats: Pillow format names to try, or None to let Pillow sniff.

    Raises:
        DecodeError: If the bytes are not a decodable image.
    """
    try:
        image = Image.open(io.BytesIO(content), formats=formats)
        image.load()
    except Image.DecompressionBombError as e:
        raise DecodeError(f"Image is too large to decode: {e}")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise DecodeError(f"File data could not be decoded: {e}")
    return image


def encode_image(image: Image.Image, output_format: ImageFormat, jpeg_quality: int = 100) -> bytes:
    """Encode an image in one of the supported formats.

    WEBP is always lossless. JPEG has no alpha channel, so anything that is
    not already RGB or greyscale is converted to RGB first.

    Raises:
        UnsupportedFormatError: If ``output_format`` is not a known format.
        EncodeError: If Pillow cannot encode the image, e.g. a side longer
            than the 16383 pixels WebP allows.
    """
    buffer = io.BytesIO()
    try:
        if output_format is ImageFormat.WEBP:
            image.save(buffer, format="WEBP", lossless=True)
        elif output_format is ImageFormat.PNG:
            image.save(buffer, format="PNG")
        elif output_format is ImageFormat.JPEG:
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")
            image.save(buffer, format="JPEG", quality=jpeg_quality)
        else:
            raise UnsupportedFormatError(f"Unsupported output format: {output_format!r}")
    except (OSError, ValueError) as e:
        raise EncodeError(
            f"Image could not be encoded as {output_format.value}: {e}"
        )
    return buffer.getvalue()
