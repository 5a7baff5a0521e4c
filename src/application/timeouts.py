"""Bounded waits on external collaborators.

Ports are plain blocking calls. `call_with_timeout` runs one on a worker
thread and stops waiting after the deadline, surfacing UpstreamTimeoutError.
The worker is abandoned, not cancelled: an HTTP adapter still finishes (or
times out) on its own, bounded by the timeout it was given.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TypeVar

from domain.errors import UpstreamTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def call_with_timeout(
    fn: Callable[[], T], *, timeout_s: float | None, operation: str
) -> T:
    """Run fn, waiting at most timeout_s seconds (None waits forever).

    Exceptions raised by fn propagate unchanged.

    Raises:
        UpstreamTimeoutError: fn did not finish in time
    """
    if timeout_s is None:
        return fn()
    if timeout_s <= 0:
        raise UpstreamTimeoutError(operation, timeout_s)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="bounded-call")
    try:
        future = executor.submit(fn)
        done, _ = wait([future], timeout=timeout_s)
        if not done:
            logger.error("%s did not finish within %.1fs", operation, timeout_s)
            raise UpstreamTimeoutError(operation, timeout_s)
        return future.result()
    finally:
        executor.shutdown(wait=False)
