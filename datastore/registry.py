from __future__ import annotations

import logging
import random
from functools import lru_cache
from threading import Lock
from typing import Callable, Dict, Optional

from models.records import Toilet, WaterBody
from services.history import READING_CAPACITY
from services.readings import DEFAULT_SEED_COUNT, IdSequence, seed_readings
from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_WATER_BODIES = ("Lake A", "River B")
DEFAULT_TOILETS = ("Toilet 1", "Toilet 2")


class EntityRegistry:
    """In-memory home of every simulated water body and toilet.

    Records are immutable, so reads hand out the stored objects directly. Each
    update reads, transforms and replaces one entity while holding the lock,
    which keeps a reader from ever seeing a half-applied tick for that entity.
    """

    def __init__(
        self,
        seed_count: int = DEFAULT_SEED_COUNT,
        reading_capacity: int = READING_CAPACITY,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.seed_count = seed_count
        self.reading_capacity = reading_capacity
        self._rng = rng
        self._ids = IdSequence()
        self._water_bodies: Dict[int, WaterBody] = {}
        self._toilets: Dict[int, Toilet] = {}
        self._lock = Lock()

    @property
    def rng(self) -> Optional[random.Random]:
        """Random source shared with anything that should continue its stream."""
        return self._rng

    def add_water_body(self, name: Optional[str] = None) -> WaterBody:
        readings = seed_readings(self.seed_count, rng=self._rng)[-self.reading_capacity:]
        with self._lock:
            label = name or f"Water Body {len(self._water_bodies) + 1}"
            body = WaterBody(id=self._ids.next(), name=label, readings=readings)
            self._water_bodies[body.id] = body
        logger.info("Added water body %s", body.name, extra={"water_body_id": body.id})
        return body

    def add_toilet(self, name: Optional[str] = None) -> Toilet:
        with self._lock:
            label = name or f"Toilet {len(self._toilets) + 1}"
            toilet = Toilet(id=self._ids.next(), name=label)
            self._toilets[toilet.id] = toilet
        logger.info("Added toilet %s", toilet.name, extra={"toilet_id": toilet.id})
        return toilet

    def remove_water_body(self, water_body_id: int) -> bool:
        with self._lock:
            removed = self._water_bodies.pop(water_body_id, None)
        if removed is not None:
            logger.info("Removed water body %s", removed.name, extra={"water_body_id": water_body_id})
        return removed is not None

    def remove_toilet(self, toilet_id: int) -> bool:
        with self._lock:
            removed = self._toilets.pop(toilet_id, None)
        if removed is not None:
            logger.info("Removed toilet %s", removed.name, extra={"toilet_id": toilet_id})
        return removed is not None

    def get_water_body(self, water_body_id: int) -> Optional[WaterBody]:
        with self._lock:
            return self._water_bodies.get(water_body_id)

    def get_toilet(self, toilet_id: int) -> Optional[Toilet]:
        with self._lock:
            return self._toilets.get(toilet_id)

    def list_water_bodies(self) -> list[WaterBody]:
        with self._lock:
            return list(self._water_bodies.values())

    def list_toilets(self) -> list[Toilet]:
        with self._lock:
            return list(self._toilets.values())

    def update_water_bodies(self, update: Callable[[WaterBody], WaterBody]) -> list[WaterBody]:
        """Replace every water body with ``update(current)``; returns the new records."""
        return self._update_each(self._water_bodies, update)

    def update_toilets(self, update: Callable[[Toilet], Toilet]) -> list[Toilet]:
        return self._update_each(self._toilets, update)

    def _update_each(self, entities: Dict[int, object], update: Callable) -> list:
        with self._lock:
            ids = list(entities)
        updated = []
        for entity_id in ids:
            with self._lock:
                current = entities.get(entity_id)
                # Removed since the id snapshot was taken.
                if current is None:
                    continue
                replacement = update(current)
                entities[entity_id] = replacement
            updated.append(replacement)
        return updated


@lru_cache
def build_default_registry(seed_count: Optional[int] = None) -> EntityRegistry:
    settings = get_settings()
    count = settings.seed_count if seed_count is None else seed_count
    rng = random.Random(settings.random_seed) if settings.random_seed is not None else None
    registry = EntityRegistry(
        seed_count=count, reading_capacity=settings.reading_capacity, rng=rng
    )
    for name in DEFAULT_WATER_BODIES:
        registry.add_water_body(name)
    for name in DEFAULT_TOILETS:
        registry.add_toilet(name)
    return registry
