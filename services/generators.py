"""Bounded random draws underlying every synthetic metric."""

from __future__ import annotations

import random
from typing import Optional


def random_float(
    minimum: float,
    maximum: float,
    decimals: int = 1,
    rng: Optional[random.Random] = None,
) -> float:
    """Uniform float in ``[minimum, maximum]`` rounded to ``decimals`` places."""
    source = rng or random
    return round(source.uniform(minimum, maximum), decimals)


def random_int(minimum: int, maximum: int, rng: Optional[random.Random] = None) -> int:
    """Uniform integer in ``[minimum, maximum]``, both ends inclusive."""
    source = rng or random
    return source.randint(minimum, maximum)
