"""Contamination model and safety classification for water readings."""

from __future__ import annotations

import random
from typing import Optional

from models.records import WaterStatus
from services.generators import random_int

PH_SAFE_MIN = 6.5
PH_SAFE_MAX = 8.5
TURBIDITY_LIMIT = 5.0
BACTERIA_LIMIT = 20

# (inclusive turbidity upper bound, probability draw range); last tier is open.
_BACTERIA_TIERS = (
    (5.0, (0, 20)),
    (10.0, (20, 50)),
)
_BACTERIA_TOP_TIER = (50, 100)


def bacteria_probability(turbidity: float, rng: Optional[random.Random] = None) -> int:
    """Estimate a contamination probability (percent) from turbidity.

    Each turbidity tier maps to its own uniform draw, so the estimate jumps at
    the tier boundaries rather than rising smoothly. Boundary values belong to
    the lower tier.
    """
    for upper_bound, (low, high) in _BACTERIA_TIERS:
        if turbidity <= upper_bound:
            return random_int(low, high, rng=rng)
    low, high = _BACTERIA_TOP_TIER
    return random_int(low, high, rng=rng)


def risk_score(ph: float, turbidity: float, bacteria_probability: int) -> int:
    score = 0
    if ph < PH_SAFE_MIN or ph > PH_SAFE_MAX:
        score += 1
    if turbidity > TURBIDITY_LIMIT:
        score += 1
    # Bacterial risk is the most direct hazard, so it counts double.
    if bacteria_probability > BACTERIA_LIMIT:
        score += 2
    return score


def classify_status(ph: float, turbidity: float, bacteria_probability: int) -> WaterStatus:
    """Map the combined risk score onto Safe / Warning / Contaminated."""
    score = risk_score(ph, turbidity, bacteria_probability)
    if score <= 1:
        return WaterStatus.safe
    if score == 2:
        return WaterStatus.warning
    return WaterStatus.contaminated
