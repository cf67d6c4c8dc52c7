"""End-to-end fetch path: cache lookup, transform on miss, write-through."""

import logging
from typing import Tuple

from image_derivatives.cache import DerivativeCache
from image_derivatives.errors import NotFoundError, ProcessingTimeoutError, StorageError
from image_derivatives.formats import ImageFormat, canonical_name
from image_derivatives.schemas import TransformParams
from image_derivatives.storage.base import StorageClient
from image_derivatives.transformer import ImageTransformer
from image_derivatives.workers import WorkerPool

logger = logging.getLogger(__name__)


class ServingOrchestrator:
    """Serves derivatives, computing and caching them on first request.

    Per request: look up the cache; on a hit respond with the cached bytes.
    On a miss, load the canonical image, transform it, store the result and
    respond. Nothing is retried. A failed cache write is logged and the
    freshly computed bytes are still returned.
    """

    def __init__(
        self,
        storage: StorageClient,
        cache: DerivativeCache,
        transformer: ImageTransformer,
        pool: WorkerPool,
    ):
        self.storage = storage
        self.cache = cache
        self.transformer = transformer
        self.pool = pool

    async def serve(
        self,
        base_name: str,
        extension: str,
        raw_query: str,
        params: TransformParams,
    ) -> Tuple[bytes, ImageFormat]:
        """Produce the bytes for ``GET /{base_name}.{extension}?{raw_query}``.

        Args:
            base_name: Requested name without extension.
            extension: Requested output extension.
            raw_query: Query string exactly as received.
            params: Parsed transform parameters.

        Returns:
            Tuple of the image bytes and the format they are encoded in.

        Raises:
            UnsupportedFormatError: If the extension is not png, jpeg or webp.
            NotFoundError: If no canonical image exists for ``base_name``.
            StorageError: If the canonical image exists but cannot be read.
            DecodeError: If the canonical image cannot be decoded.
            ValidationError: If the requested size is too large.
            EncodeError: If the derivative cannot be encoded.
            ProcessingTimeoutError: If a worker task times out.
        """
        output_format = ImageFormat.from_extension(extension)

        cached = await self.pool.run(self.cache.lookup, base_name, raw_query, output_format)
        if cached is not None:
            return cached, output_format

        try:
            source = await self.pool.run(self.storage.read, canonical_name(base_name))
        except (FileNotFoundError, ValueError):
            raise NotFoundError("Requested image does not exist")

        result = await self.pool.run(self.transformer.transform, source, params, output_format)
        logger.info(
            f"Generated derivative of {base_name!r} as {output_format.value} "
            f"({len(result)} bytes, query={raw_query!r})"
        )

        try:
            await self.pool.run(self.cache.store, base_name, raw_query, output_format, result)
        except (StorageError, ProcessingTimeoutError) as e:
            logger.warning(f"Serving uncached derivative of {base_name!r}: {e}")

        return result, output_format
