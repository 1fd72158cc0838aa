"""Domain records shared across services.

Every record is frozen and every history is a tuple: an update always builds a
new record, so a snapshot handed to a reader can never change underneath it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class WaterStatus(str, Enum):
    """Safety classification of a single water reading."""

    safe = "Safe"
    warning = "Warning"
    contaminated = "Contaminated"


@dataclass(frozen=True, slots=True)
class WaterReading:
    """One synthetic water-quality sample."""

    id: int
    timestamp: datetime
    ph: float
    turbidity: float
    temperature: float
    bacteria_probability: int
    status: WaterStatus


@dataclass(frozen=True, slots=True)
class WaterBody:
    id: int
    name: str
    readings: Tuple[WaterReading, ...] = ()

    @property
    def latest(self) -> Optional[WaterReading]:
        return self.readings[-1] if self.readings else None


@dataclass(frozen=True, slots=True)
class UsageSample:
    timestamp: datetime
    usage: int


@dataclass(frozen=True, slots=True)
class Toilet:
    id: int
    name: str
    usage: int = 0
    history: Tuple[UsageSample, ...] = ()


@dataclass(frozen=True, slots=True)
class ContaminationEvent:
    """A water body whose status just crossed into Contaminated."""

    water_body_id: int
    water_body_name: str
    reading: WaterReading
    previous_status: Optional[WaterStatus]
    detected_at: datetime
