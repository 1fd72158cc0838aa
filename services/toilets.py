"""Public toilet usage counters."""

from __future__ import annotations

import random
from dataclasses import replace
from typing import Optional

from models.records import Toilet, UsageSample
from services.generators import random_int
from services.history import USAGE_CAPACITY, append_bounded
from services.readings import Clock, utc_now

USAGE_CEILING = 200
MAX_USAGE_STEP = 5


def next_usage(current: int, delta: int) -> int:
    """Add ``delta`` visits; a counter pushed past the ceiling resets to zero."""
    usage = current + delta
    if usage > USAGE_CEILING:
        return 0
    return usage


def advance_usage(
    toilet: Toilet,
    rng: Optional[random.Random] = None,
    clock: Optional[Clock] = None,
    capacity: int = USAGE_CAPACITY,
) -> Toilet:
    usage = next_usage(toilet.usage, random_int(0, MAX_USAGE_STEP, rng=rng))
    sample = UsageSample(timestamp=(clock or utc_now)(), usage=usage)
    return replace(
        toilet,
        usage=usage,
        history=append_bounded(toilet.history, sample, capacity),
    )
