"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: http/backoff.py.
"""

from __future__ import annotations

from collections.abc import Callable
from random import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .retry import RetryConfig

JITTER_RATIO = 0.3


def backoff_delay(
    attempt: int,
    config: "RetryConfig",
    *,
    rand: Callable[[], float] = random,
) -> float:
    """
    Capped exponential delay plus up to 30% uniform jitter, in seconds.

    ``attempt`` is zero-based: the first retry uses ``attempt=0``.
    """
    try:
        grown = config.initial_delay_s * (config.backoff_multiplier ** max(0, attempt))
    except OverflowError:
        grown = config.max_delay_s
    base = min(grown, config.max_delay_s)
    return base + rand() * JITTER_RATIO * base
