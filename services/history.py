"""Fixed-capacity chronological buffers."""

from __future__ import annotations

from typing import Tuple, TypeVar

T = TypeVar("T")

READING_CAPACITY = 60
USAGE_CAPACITY = 20


def append_bounded(buffer: Tuple[T, ...], item: T, capacity: int) -> Tuple[T, ...]:
    """Return the last ``capacity`` items of ``buffer`` with ``item`` appended.

    ``buffer`` is left untouched; the oldest entries are evicted first.
    """
    if capacity <= 0:
        raise ValueError(f"History capacity must be positive, got {capacity}.")
    return (tuple(buffer) + (item,))[-capacity:]
