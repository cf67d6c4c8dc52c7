"""Bounded thread pool for blocking codec and filesystem work."""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

from image_derivatives.errors import ProcessingTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkerPool:
    """Runs blocking callables off the event loop with a per-task timeout.

    At most ``max_workers`` tasks run at once; further submissions queue.
    When a task times out the awaiting request fails, but the thread keeps
    running until the callable returns because Python threads cannot be
    interrupted.
    """

    def __init__(self, max_workers: int, timeout: Optional[float] = None):
        """Initialize the pool.

        Args:
            max_workers: Number of worker threads.
            timeout: Seconds to wait for each task, or None to wait forever.
        """
        self.max_workers = max_workers
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="image-worker",
        )
        logger.info(f"Started worker pool with {max_workers} threads (timeout={timeout}s)")

    async def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``func(*args, **kwargs)`` on a worker thread and await the result.

        Raises:
            ProcessingTimeoutError: If the task does not finish within the timeout.
        """
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, functools.partial(func, *args, **kwargs))
        try:
            return await asyncio.wait_for(future, timeout=self.timeout)
        except asyncio.TimeoutError:
            name = getattr(func, "__qualname__", repr(func))
            logger.error(f"Worker task {name} did not finish within {self.timeout}s")
            raise ProcessingTimeoutError("Image processing timed out")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting tasks and release the worker threads."""
        self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.info("Worker pool shut down")
