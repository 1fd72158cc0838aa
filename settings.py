from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_TICK_INTERVAL_ENV = "SIM_TICK_INTERVAL"
_SEED_COUNT_ENV = "SIM_SEED_COUNT"
_READING_CAPACITY_ENV = "SIM_READING_CAPACITY"
_USAGE_CAPACITY_ENV = "SIM_USAGE_CAPACITY"
_RANDOM_SEED_ENV = "SIM_RANDOM_SEED"
_AUTOSTART_ENV = "SIM_AUTOSTART"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    tick_interval: float
    seed_count: int
    reading_capacity: int
    usage_capacity: int
    random_seed: Optional[int]
    autostart: bool
    log_level: str


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_interval(default: float) -> float:
    value = os.getenv(_TICK_INTERVAL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        return int(candidate)
    except ValueError:
        return None


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        tick_interval=_read_interval(2.0),
        seed_count=_read_positive_int(_SEED_COUNT_ENV, 12),
        reading_capacity=_read_positive_int(_READING_CAPACITY_ENV, 60),
        usage_capacity=_read_positive_int(_USAGE_CAPACITY_ENV, 20),
        random_seed=_read_optional_int(_RANDOM_SEED_ENV),
        autostart=_read_bool(_AUTOSTART_ENV, True),
        log_level=_read_log_level("INFO"),
    )
