"""Audible alerting for contamination events.

The simulation engine only emits events. Whether an event makes a sound is
decided here, behind a readiness state machine: a tone sink cannot play until
an explicit ``enable()`` (the user's gesture) has created and resumed it.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from threading import Lock
from typing import Callable, Optional, Protocol, Sequence, TextIO, Tuple

from models.records import ContaminationEvent
from services.history import append_bounded

logger = logging.getLogger(__name__)

RECENT_EVENT_CAPACITY = 50


class AlertState(str, Enum):
    uninitialized = "uninitialized"
    armed = "armed"
    active = "active"


@dataclass(frozen=True)
class Tone:
    frequency_hz: float
    duration_s: float
    offset_s: float = 0.0


# Two descending beeps so a transition is hard to miss.
CONTAMINATION_PATTERN: Tuple[Tone, ...] = (
    Tone(frequency_hz=880, duration_s=0.15),
    Tone(frequency_hz=660, duration_s=0.12, offset_s=0.18),
)


class ToneSink(Protocol):
    def resume(self) -> None: ...

    def play(self, tones: Sequence[Tone]) -> None: ...


class TerminalBellSink:
    """Rings the terminal bell once per tone."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self.resumed = False

    def resume(self) -> None:
        self.resumed = True

    def play(self, tones: Sequence[Tone]) -> None:
        stream = self._stream or sys.stderr
        for tone in tones:
            logger.info(
                "Beep %.2fs at +%.2fs",
                tone.duration_s,
                tone.offset_s,
                extra={"frequency_hz": tone.frequency_hz},
            )
            stream.write("\a")
        stream.flush()


SinkFactory = Callable[[], ToneSink]


class Alerter:
    """Receives contamination events and sounds them once enabled."""

    def __init__(
        self,
        sink_factory: SinkFactory = TerminalBellSink,
        capacity: int = RECENT_EVENT_CAPACITY,
    ) -> None:
        self._sink_factory = sink_factory
        self._sink: Optional[ToneSink] = None
        self._state = AlertState.uninitialized
        self._capacity = capacity
        self._events: Tuple[ContaminationEvent, ...] = ()
        self._lock = Lock()

    @property
    def state(self) -> AlertState:
        return self._state

    def recent_events(self) -> Tuple[ContaminationEvent, ...]:
        return self._events

    def enable(self) -> AlertState:
        """Advance towards ``active``; a failing step leaves the state where it stopped."""
        with self._lock:
            if self._state is AlertState.uninitialized:
                try:
                    self._sink = self._sink_factory()
                except Exception:
                    logger.exception("Unable to create tone sink", extra={"alert_state": self._state.value})
                    return self._state
                self._state = AlertState.armed

            if self._state is AlertState.armed and self._sink is not None:
                try:
                    self._sink.resume()
                except Exception:
                    logger.exception("Unable to resume tone sink", extra={"alert_state": self._state.value})
                    return self._state
                self._state = AlertState.active
                logger.info("Sound alerts enabled", extra={"alert_state": self._state.value})
            return self._state

    def notify(self, event: ContaminationEvent) -> None:
        with self._lock:
            self._events = append_bounded(self._events, event, self._capacity)
            sink = self._sink if self._state is AlertState.active else None

        logger.warning(
            "%s is newly contaminated",
            event.water_body_name,
            extra={
                "water_body_id": event.water_body_id,
                "status": event.reading.status.value,
                "previous_status": event.previous_status.value if event.previous_status else None,
            },
        )
        if sink is None:
            return
        try:
            sink.play(CONTAMINATION_PATTERN)
        except Exception:  # noqa: BLE001 - playback is best effort
            logger.warning("Tone playback failed", exc_info=True)


@lru_cache
def build_default_alerter() -> Alerter:
    return Alerter()
