from __future__ import annotations

import io
import logging
from datetime import datetime, timezone
from typing import List, Sequence

from models.records import ContaminationEvent, WaterReading, WaterStatus
from services.alerts import CONTAMINATION_PATTERN, Alerter, AlertState, TerminalBellSink, Tone


class RecordingSink:
    def __init__(self, fail_resume: bool = False, fail_play: bool = False) -> None:
        self.fail_resume = fail_resume
        self.fail_play = fail_play
        self.resumed = 0
        self.played: List[Sequence[Tone]] = []

    def resume(self) -> None:
        self.resumed += 1
        if self.fail_resume:
            raise RuntimeError("audio device busy")

    def play(self, tones: Sequence[Tone]) -> None:
        if self.fail_play:
            raise RuntimeError("audio device gone")
        self.played.append(tones)


def _event(water_body_id: int = 1) -> ContaminationEvent:
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    reading = WaterReading(
        id=1,
        timestamp=stamp,
        ph=7.0,
        turbidity=12.0,
        temperature=25.0,
        bacteria_probability=60,
        status=WaterStatus.contaminated,
    )
    return ContaminationEvent(
        water_body_id=water_body_id,
        water_body_name="Lake A",
        reading=reading,
        previous_status=WaterStatus.safe,
        detected_at=stamp,
    )


def test_events_are_recorded_but_silent_until_enabled() -> None:
    sink = RecordingSink()
    alerter = Alerter(sink_factory=lambda: sink)

    alerter.notify(_event())

    assert alerter.state is AlertState.uninitialized
    assert len(alerter.recent_events()) == 1
    assert sink.played == []


def test_enable_moves_to_active_and_plays_pattern() -> None:
    sink = RecordingSink()
    alerter = Alerter(sink_factory=lambda: sink)

    assert alerter.enable() is AlertState.active
    alerter.notify(_event())

    assert sink.resumed == 1
    assert sink.played == [CONTAMINATION_PATTERN]
    assert [tone.frequency_hz for tone in CONTAMINATION_PATTERN] == [880, 660]


def test_failed_resume_leaves_alerter_armed_then_retries() -> None:
    sink = RecordingSink(fail_resume=True)
    alerter = Alerter(sink_factory=lambda: sink)

    assert alerter.enable() is AlertState.armed
    alerter.notify(_event())
    assert sink.played == []

    sink.fail_resume = False
    assert alerter.enable() is AlertState.active


def test_failed_sink_creation_stays_uninitialized(caplog) -> None:
    def factory():
        raise OSError("no audio backend")

    alerter = Alerter(sink_factory=factory)

    with caplog.at_level(logging.ERROR):
        assert alerter.enable() is AlertState.uninitialized

    assert "Unable to create tone sink" in caplog.text


def test_enable_when_active_does_not_resume_again() -> None:
    sink = RecordingSink()
    created = []

    def factory() -> RecordingSink:
        created.append(sink)
        return sink

    alerter = Alerter(sink_factory=factory)

    assert alerter.enable() is AlertState.active
    assert alerter.enable() is AlertState.active

    assert len(created) == 1
    assert sink.resumed == 1


def test_playback_failure_is_swallowed(caplog) -> None:
    sink = RecordingSink(fail_play=True)
    alerter = Alerter(sink_factory=lambda: sink)
    alerter.enable()

    with caplog.at_level(logging.WARNING):
        alerter.notify(_event())

    assert len(alerter.recent_events()) == 1
    assert "Tone playback failed" in caplog.text


def test_recent_events_are_bounded() -> None:
    alerter = Alerter(capacity=3)

    for water_body_id in range(5):
        alerter.notify(_event(water_body_id))

    assert [event.water_body_id for event in alerter.recent_events()] == [2, 3, 4]


def test_terminal_bell_sink_rings_once_per_tone() -> None:
    stream = io.StringIO()
    sink = TerminalBellSink(stream=stream)

    sink.resume()
    sink.play(CONTAMINATION_PATTERN)

    assert sink.resumed is True
    assert stream.getvalue() == "\a\a"
