"""Periodic driver that advances every simulated entity."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from functools import lru_cache
from threading import Event, Lock, Thread
from typing import Callable, List, Optional

from datastore.registry import EntityRegistry, build_default_registry
from models.records import ContaminationEvent, Toilet, WaterBody, WaterReading, WaterStatus
from services.alerts import Alerter, build_default_alerter
from services.history import READING_CAPACITY, USAGE_CAPACITY, append_bounded
from services.readings import Clock, generate_reading, utc_now
from services.toilets import advance_usage
from settings import get_settings

logger = logging.getLogger(__name__)

Listener = Callable[[ContaminationEvent], None]
ReadingFactory = Callable[[], WaterReading]


@dataclass
class TickReport:
    tick: int
    water_bodies: List[WaterBody] = field(default_factory=list)
    toilets: List[Toilet] = field(default_factory=list)
    events: List[ContaminationEvent] = field(default_factory=list)


def is_new_contamination(previous: Optional[WaterReading], current: WaterReading) -> bool:
    """Only the crossing into Contaminated counts, not staying there."""
    if current.status is not WaterStatus.contaminated:
        return False
    return previous is None or previous.status is not WaterStatus.contaminated


class SimulationEngine:
    """Owns the tick loop over an :class:`EntityRegistry`."""

    def __init__(
        self,
        registry: EntityRegistry,
        alerter: Optional[Alerter] = None,
        rng: Optional[random.Random] = None,
        interval: float = 2.0,
        reading_capacity: int = READING_CAPACITY,
        usage_capacity: int = USAGE_CAPACITY,
        reading_factory: Optional[ReadingFactory] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.registry = registry
        self.alerter = alerter
        self.interval = interval
        self.reading_capacity = reading_capacity
        self.usage_capacity = usage_capacity
        self._rng = rng
        self._clock = clock or utc_now
        self._reading_factory = reading_factory or (lambda: generate_reading(rng=rng, clock=self._clock))
        self._listeners: List[Listener] = []
        self._tick_count = 0
        self._tick_lock = Lock()
        self._stop_event = Event()
        self._thread: Optional[Thread] = None
        if alerter is not None:
            self.subscribe(alerter.notify)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def tick(self) -> TickReport:
        """Advance every water body and toilet by one step.

        Transitions already written to the registry are dispatched even when a
        later entity fails, and the failure is then re-raised.
        """
        events: List[ContaminationEvent] = []
        try:
            with self._tick_lock:
                self._tick_count += 1
                report = TickReport(tick=self._tick_count, events=events)

                def advance_water_body(body: WaterBody) -> WaterBody:
                    previous = body.latest
                    reading = self._reading_factory()
                    if is_new_contamination(previous, reading):
                        events.append(
                            ContaminationEvent(
                                water_body_id=body.id,
                                water_body_name=body.name,
                                reading=reading,
                                previous_status=previous.status if previous else None,
                                detected_at=reading.timestamp,
                            )
                        )
                    return replace(
                        body,
                        readings=append_bounded(body.readings, reading, self.reading_capacity),
                    )

                def advance_toilet(toilet: Toilet) -> Toilet:
                    return advance_usage(
                        toilet, rng=self._rng, clock=self._clock, capacity=self.usage_capacity
                    )

                report.water_bodies = self.registry.update_water_bodies(advance_water_body)
                report.toilets = self.registry.update_toilets(advance_toilet)
        finally:
            for event in events:
                self._dispatch(event)

        logger.debug(
            "Tick complete: %d water bodies, %d toilets",
            len(report.water_bodies),
            len(report.toilets),
            extra={"tick": report.tick},
        )
        return report

    def start(self) -> None:
        thread = self._thread
        if thread is not None and thread.is_alive():
            if not self._stop_event.is_set():
                return
            # a timed-out stop left the old ticker finishing its last tick
            thread.join()
        self._stop_event = Event()
        self._thread = Thread(
            target=self._run, args=(self._stop_event,), name="simulation-ticker", daemon=True
        )
        self._thread.start()
        logger.info("Simulation started (interval=%.2fs)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the ticker; no tick starts once this returns.

        When ``timeout`` expires during a tick, that tick still completes in the
        background and ``running`` stays true until it does.
        """
        thread = self._thread
        self._stop_event.set()
        if thread is None:
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning("Simulation ticker still finishing a tick", extra={"tick": self._tick_count})
            return
        self._thread = None
        logger.info("Simulation stopped after %d ticks", self._tick_count)

    def _run(self, stop_event: Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Simulation tick failed", extra={"tick": self._tick_count})

    def _dispatch(self, event: ContaminationEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001 - listeners must not break the tick
                logger.warning(
                    "Contamination listener failed",
                    exc_info=True,
                    extra={"water_body_id": event.water_body_id},
                )


@lru_cache
def build_default_simulator() -> SimulationEngine:
    """Factory that wires the engine with the shared registry and alerter.

    The engine draws from the registry's random source, so a seeded run keeps
    one stream instead of replaying the seeding draws on the first tick.
    """
    settings = get_settings()
    registry = build_default_registry()
    return SimulationEngine(
        registry=registry,
        alerter=build_default_alerter(),
        rng=registry.rng,
        interval=settings.tick_interval,
        reading_capacity=settings.reading_capacity,
        usage_capacity=settings.usage_capacity,
    )
