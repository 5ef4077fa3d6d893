"""Bounded retry for single batch fetches."""

import logging
import random
import time
from typing import Callable, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry(
    func: Callable[[], T],
    *,
    attempts: int = 1,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    jitter: float = 0.2,
    exceptions: Iterable[type[Exception]] = (Exception,),
) -> T:
    """Call `func`, retrying up to `attempts` times with exponential backoff.

    The last exception propagates once attempts run out. Callers must pass a
    callable that is safe to repeat (same offset, same size).
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except tuple(exceptions) as exc:
            if attempt >= attempts:
                raise
            delay = min(max_delay, base_delay * (2 ** (attempt - 1)))
            if jitter:
                delay += random.uniform(0, jitter)
            logger.warning(f"Attempt {attempt}/{attempts} failed ({exc}); retrying in {delay:.1f}s")
            time.sleep(delay)
    raise ValueError("attempts must be at least 1")
