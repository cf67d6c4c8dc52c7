"""Write-through cache of transformed images, keyed by request."""

import logging
from typing import Optional
from urllib.parse import parse_qsl, urlencode

from image_derivatives.formats import ImageFormat
from image_derivatives.storage.base import StorageClient, StorageError

logger = logging.getLogger(__name__)


def canonicalize_query(raw_query: str) -> str:
    """Sort query pairs so that parameter order does not change the key."""
    pairs = parse_qsl(raw_query, keep_blank_values=True)
    return urlencode(sorted(pairs))


class DerivativeCache:
    """Stores derivatives next to the canonical images they came from.

    A derivative is addressed by the base name, the raw query string of the
    request and the output extension. By default the query string is used
    verbatim, so ``?w=1&h=2`` and ``?h=2&w=1`` are cached separately.
    """

    def __init__(self, storage: StorageClient, canonicalize: bool = False):
        """Initialize the cache.

        Args:
            storage: Storage client shared with the canonical images.
            canonicalize: Sort query parameters before building keys.
        """
        self.storage = storage
        self.canonicalize = canonicalize

    def key(self, base_name: str, raw_query: str, output_format: ImageFormat) -> str:
        """Build the blob name for a derivative.

        ``<base>?<query>.<ext>``, or ``<base>.<ext>`` for an empty query.
        Slashes in the query are percent-escaped so the key never names a
        subdirectory.
        """
        if self.canonicalize:
            raw_query = canonicalize_query(raw_query)
        suffix = f"?{raw_query}" if raw_query else ""
        suffix = suffix.replace("/", "%2F").replace("\\", "%5C")
        return f"{base_name}{suffix}.{output_format.extension}"

    def lookup(self, base_name: str, raw_query: str, output_format: ImageFormat) -> Optional[bytes]:
        """Return cached derivative bytes, or None if there is no usable copy."""
        key = self.key(base_name, raw_query, output_format)
        try:
            content = self.storage.read(key)
        except FileNotFoundError:
            logger.debug(f"Cache miss: {key}")
            return None
        except (StorageError, ValueError) as e:
            logger.warning(f"Treating unreadable cache entry {key!r} as a miss: {e}")
            return None

        logger.debug(f"Cache hit: {key}")
        return content

    def store(self, base_name: str, raw_query: str, output_format: ImageFormat, content: bytes) -> None:
        """Write a derivative, replacing any existing copy.

        Raises:
            StorageError: If the derivative cannot be written.
        """
        key = self.key(base_name, raw_query, output_format)
        try:
            self.storage.write(key, content)
        except ValueError as e:
            raise StorageError(f"Invalid cache key {key!r}: {e}")
        logger.debug(f"Cached derivative: {key}")
