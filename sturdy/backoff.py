import random as _random
from typing import Callable

from .util import clamp


MAX_BACKOFF = 30000
"""
Upper bound of any single retry delay, in milliseconds.
"""

JITTER_RATIO = 0.3


def calculate_backoff(attempt: int, base_delay: float, random: Callable[[], float] = _random.random) -> float:
    """
    Compute how long to wait before retrying.

    The delay doubles with every attempt and gets up to 30% of random jitter on
    top, so that clients failing together do not retry together.

    @param attempt
      The 0-based index of the attempt that just failed.
    @param base_delay
      The delay before the first retry, in milliseconds.
    @param random
      Source of uniform values in [0, 1).
    @return
      The delay in milliseconds, never more than `MAX_BACKOFF`.
    """
    exponential = base_delay * 2 ** attempt
    jitter = random() * JITTER_RATIO * exponential
    return clamp(exponential + jitter, 0, MAX_BACKOFF)
