"""Tests for the periodic update protocol and contamination transitions."""

from __future__ import annotations

import itertools
import logging
import random
import threading
import time
from datetime import datetime, timezone
from typing import Iterable, Iterator

import pytest

from datastore.registry import EntityRegistry
from models.records import WaterBody, WaterReading, WaterStatus
from services.alerts import Alerter
from services.simulator import SimulationEngine, is_new_contamination

_ids = itertools.count(1)

_STATUS_INPUTS = {
    WaterStatus.safe: (7.0, 3.0, 15),
    WaterStatus.warning: (6.0, 6.0, 10),
    WaterStatus.contaminated: (7.0, 12.0, 60),
}


def _reading(status: WaterStatus) -> WaterReading:
    ph, turbidity, bacteria = _STATUS_INPUTS[status]
    return WaterReading(
        id=next(_ids),
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ph=ph,
        turbidity=turbidity,
        temperature=25.0,
        bacteria_probability=bacteria,
        status=status,
    )


def _scripted(statuses: Iterable[WaterStatus]):
    sequence: Iterator[WaterStatus] = iter(statuses)
    return lambda: _reading(next(sequence))


def _registry_with_body(*statuses: WaterStatus) -> tuple[EntityRegistry, WaterBody]:
    registry = EntityRegistry(seed_count=0)
    body = registry.add_water_body("Lake A")
    if statuses:
        seeded = tuple(_reading(status) for status in statuses)
        registry.update_water_bodies(lambda current: WaterBody(current.id, current.name, seeded))
    return registry, registry.get_water_body(body.id)


def test_is_new_contamination_only_on_crossing() -> None:
    safe = _reading(WaterStatus.safe)
    warning = _reading(WaterStatus.warning)
    contaminated = _reading(WaterStatus.contaminated)

    assert is_new_contamination(safe, contaminated) is True
    assert is_new_contamination(warning, contaminated) is True
    assert is_new_contamination(None, contaminated) is True
    assert is_new_contamination(contaminated, contaminated) is False
    assert is_new_contamination(safe, warning) is False
    assert is_new_contamination(contaminated, safe) is False


def test_tick_fires_event_once_per_transition() -> None:
    registry, body = _registry_with_body(WaterStatus.safe)
    engine = SimulationEngine(
        registry,
        reading_factory=_scripted(
            [
                WaterStatus.contaminated,
                WaterStatus.contaminated,
                WaterStatus.warning,
                WaterStatus.contaminated,
            ]
        ),
    )
    received = []
    engine.subscribe(received.append)

    reports = [engine.tick() for _ in range(4)]

    assert [len(report.events) for report in reports] == [1, 0, 0, 1]
    assert len(received) == 2
    assert received[0].water_body_id == body.id
    assert received[0].previous_status is WaterStatus.safe
    assert received[1].previous_status is WaterStatus.warning


def test_tick_appends_reading_and_bounds_history() -> None:
    registry, body = _registry_with_body(*([WaterStatus.safe] * 5))
    engine = SimulationEngine(
        registry,
        reading_capacity=6,
        reading_factory=_scripted([WaterStatus.warning] * 3),
    )

    for _ in range(3):
        engine.tick()

    readings = registry.get_water_body(body.id).readings
    assert len(readings) == 6
    assert [reading.status for reading in readings] == [WaterStatus.safe] * 3 + [WaterStatus.warning] * 3
    assert body.readings != readings


def test_tick_advances_toilets() -> None:
    registry = EntityRegistry(seed_count=0)
    toilet = registry.add_toilet()
    engine = SimulationEngine(registry, rng=random.Random(9))

    for _ in range(25):
        engine.tick()

    updated = registry.get_toilet(toilet.id)
    assert len(updated.history) == 20
    assert updated.usage == updated.history[-1].usage
    assert 0 <= updated.usage <= 200


def test_listener_failure_does_not_break_tick(caplog) -> None:
    registry, _ = _registry_with_body(WaterStatus.safe)
    engine = SimulationEngine(registry, reading_factory=_scripted([WaterStatus.contaminated]))
    received = []

    def broken(_event) -> None:
        raise RuntimeError("speaker unplugged")

    engine.subscribe(broken)
    engine.subscribe(received.append)

    with caplog.at_level(logging.WARNING):
        report = engine.tick()

    assert len(report.events) == 1
    assert len(received) == 1
    assert "Contamination listener failed" in caplog.text


def test_alerter_is_subscribed() -> None:
    registry, _ = _registry_with_body(WaterStatus.warning)
    alerter = Alerter()
    engine = SimulationEngine(
        registry, alerter=alerter, reading_factory=_scripted([WaterStatus.contaminated])
    )

    engine.tick()

    assert len(alerter.recent_events()) == 1


def test_start_and_stop_ticker() -> None:
    registry = EntityRegistry(seed_count=1)
    registry.add_water_body()
    engine = SimulationEngine(registry, interval=0.01)

    engine.start()
    engine.start()
    deadline = time.monotonic() + 5
    while engine.tick_count < 3 and time.monotonic() < deadline:
        time.sleep(0.01)
    engine.stop()

    assert engine.running is False
    assert engine.tick_count >= 3
    ticks_at_stop = engine.tick_count
    time.sleep(0.05)
    assert engine.tick_count == ticks_at_stop


def test_stop_without_start_is_safe() -> None:
    engine = SimulationEngine(EntityRegistry())

    engine.stop()

    assert engine.running is False


def test_failed_tick_still_notifies_recorded_transitions() -> None:
    registry = EntityRegistry(seed_count=0)
    first = registry.add_water_body("Lake A")
    second = registry.add_water_body("River B")
    produced = []

    def flaky_sensor() -> WaterReading:
        if produced:
            raise RuntimeError("sensor offline")
        produced.append(_reading(WaterStatus.contaminated))
        return produced[-1]

    engine = SimulationEngine(registry, reading_factory=flaky_sensor)
    received = []
    engine.subscribe(received.append)

    with pytest.raises(RuntimeError):
        engine.tick()

    assert [event.water_body_id for event in received] == [first.id]
    assert registry.get_water_body(first.id).readings == tuple(produced)
    assert registry.get_water_body(second.id).readings == ()


def _ticker_threads() -> list:
    return [thread for thread in threading.enumerate() if thread.name == "simulation-ticker"]


def test_restart_after_timed_out_stop_keeps_single_ticker() -> None:
    registry = EntityRegistry(seed_count=0)
    registry.add_water_body()
    in_tick = threading.Event()

    def slow_sensor() -> WaterReading:
        in_tick.set()
        time.sleep(0.3)
        return _reading(WaterStatus.safe)

    engine = SimulationEngine(registry, interval=0.01, reading_factory=slow_sensor)
    engine.start()
    assert in_tick.wait(5)

    engine.stop(timeout=0.01)
    assert engine.running is True

    engine.start()
    try:
        assert engine.running is True
        assert len(_ticker_threads()) == 1
    finally:
        engine.stop()

    assert engine.running is False
    assert _ticker_threads() == []
