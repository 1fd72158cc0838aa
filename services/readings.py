"""Synthetic water-quality reading generation."""

from __future__ import annotations

import itertools
import random
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Optional, Tuple

from models.records import WaterReading
from services.classifier import bacteria_probability, classify_status
from services.generators import random_float

Clock = Callable[[], datetime]

PH_RANGE = (6.3, 8.8)
TURBIDITY_RANGE = (0.0, 15.0)
TEMPERATURE_RANGE = (20.0, 35.0)
DEFAULT_SEED_COUNT = 12


class IdSequence:
    """Thread-safe, monotonically increasing integer identifiers."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


_reading_ids = IdSequence()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_reading(
    rng: Optional[random.Random] = None,
    clock: Optional[Clock] = None,
    ids: Optional[IdSequence] = None,
) -> WaterReading:
    """Draw one complete reading; bacteria and status derive from the draws."""
    ph = random_float(*PH_RANGE, decimals=2, rng=rng)
    turbidity = random_float(*TURBIDITY_RANGE, decimals=1, rng=rng)
    temperature = random_float(*TEMPERATURE_RANGE, decimals=1, rng=rng)
    bacteria = bacteria_probability(turbidity, rng=rng)
    return WaterReading(
        id=(ids or _reading_ids).next(),
        timestamp=(clock or utc_now)(),
        ph=ph,
        turbidity=turbidity,
        temperature=temperature,
        bacteria_probability=bacteria,
        status=classify_status(ph, turbidity, bacteria),
    )


def seed_readings(
    n: int = DEFAULT_SEED_COUNT,
    rng: Optional[random.Random] = None,
    clock: Optional[Clock] = None,
    ids: Optional[IdSequence] = None,
) -> Tuple[WaterReading, ...]:
    return tuple(generate_reading(rng=rng, clock=clock, ids=ids) for _ in range(n))
