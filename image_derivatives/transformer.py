"""Decode, resize and re-encode canonical images.

Everything in this module is pure: bytes in, bytes out, no filesystem
access and no shared state, so a single ``ImageTransformer`` can be used
from any number of worker threads at once.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

from PIL import Image

from image_derivatives.codecs import decode_image, encode_image
from image_derivatives.errors import UnsupportedFormatError, ValidationError
from image_derivatives.formats import CANONICAL_FORMAT, ImageFormat
from image_derivatives.schemas import TransformParams

logger = logging.getLogger(__name__)


class SamplingFilter(str, Enum):
    """Named resampling kernels accepted in the ``sampling`` query parameter."""

    NEAREST = "nearest"
    TRIANGLE = "triangle"
    CATMULLROM = "catmullrom"
    GAUSSIAN = "gaussian"
    LANCZOS3 = "lanczos3"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "SamplingFilter":
        """Resolve a filter name; unknown or missing names mean nearest-neighbor."""
        if name is None:
            return cls.NEAREST
        try:
            return cls(name)
        except ValueError:
            return cls.NEAREST

    @property
    def resample(self) -> Image.Resampling:
        return _PIL_RESAMPLING[self]


# Pillow has no Gaussian kernel; Hamming is the closest smooth windowed filter.
_PIL_RESAMPLING = {
    SamplingFilter.NEAREST: Image.Resampling.NEAREST,
    SamplingFilter.TRIANGLE: Image.Resampling.BILINEAR,
    SamplingFilter.CATMULLROM: Image.Resampling.BICUBIC,
    SamplingFilter.GAUSSIAN: Image.Resampling.HAMMING,
    SamplingFilter.LANCZOS3: Image.Resampling.LANCZOS,
}


def fit_within(size: Tuple[int, int], box: Tuple[int, int]) -> Tuple[int, int]:
    """Scale ``size`` by a single ratio so it fits inside ``box``.

    The ratio is ``min(box_w / w, box_h / h)``, so the result can be larger
    than ``size`` when the box is. Each side is rounded and kept at least
    one pixel.
    """
    width, height = size
    box_width, box_height = box
    ratio = min(box_width / width, box_height / height)
    return (
        max(round(width * ratio), 1),
        max(round(height * ratio), 1),
    )


class ImageTransformer:
    """Turns a canonical image plus transform parameters into output bytes."""

    def __init__(self, jpeg_quality: int = 100):
        self.jpeg_quality = jpeg_quality

    def transform(self, source: bytes, params: TransformParams, output_format: ImageFormat) -> bytes:
        """Produce a derivative of a canonical image.

        Args:
            source: Canonical (lossless WebP) image bytes.
            params: Requested dimensions, stretch mode and sampling filter.
            output_format: Format to encode the result in.

        Returns:
            bytes: The encoded derivative.

        Raises:
            DecodeError: If ``source`` is not a valid canonical image.
            UnsupportedFormatError: If ``output_format`` is not supported.
            ValidationError: If the target has more than
                ``Image.MAX_IMAGE_PIXELS`` pixels.
            EncodeError: If the result cannot be encoded in ``output_format``.
        """
        if not isinstance(output_format, ImageFormat):
            raise UnsupportedFormatError(f"Unsupported output format: {output_format!r}")

        image = decode_image(source, formats=(CANONICAL_FORMAT.pil_format,))

        width, height = image.size
        new_width = params.w or width
        new_height = params.h or height

        if (new_width, new_height) != (width, height):
            sampling = SamplingFilter.from_name(params.sampling)
            if params.stretch:
                target = (new_width, new_height)
            else:
                target = fit_within((width, height), (new_width, new_height))

            if Image.MAX_IMAGE_PIXELS is not None and target[0] * target[1] > Image.MAX_IMAGE_PIXELS:
                raise ValidationError(
                    f"Requested size {target[0]}x{target[1]} exceeds the limit of "
                    f"{Image.MAX_IMAGE_PIXELS} pixels"
                )

            if target != (width, height):
                logger.debug(
                    f"Resizing {width}x{height} -> {target[0]}x{target[1]} "
                    f"(sampling={sampling.value}, stretch={params.stretch})"
                )
                image = image.resize(target, resample=sampling.resample)

        return encode_image(image, output_format, jpeg_quality=self.jpeg_quality)
