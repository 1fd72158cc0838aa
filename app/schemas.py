"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import ContaminationEvent, Toilet, UsageSample, WaterBody, WaterReading, WaterStatus
from services.alerts import AlertState


class ReadingOut(BaseModel):
    """One water-quality sample as exposed to chart consumers."""

    id: int
    timestamp: datetime
    ph: float
    turbidity: float = Field(..., description="Turbidity in NTU.")
    temperature: float = Field(..., description="Water temperature in degrees Celsius.")
    bacteria_probability: int = Field(..., ge=0, le=100)
    status: WaterStatus

    @classmethod
    def from_record(cls, reading: WaterReading) -> "ReadingOut":
        return cls(
            id=reading.id,
            timestamp=reading.timestamp,
            ph=reading.ph,
            turbidity=reading.turbidity,
            temperature=reading.temperature,
            bacteria_probability=reading.bacteria_probability,
            status=reading.status,
        )


class WaterBodyOut(BaseModel):
    id: int
    name: str
    latest: Optional[ReadingOut] = None
    readings: List[ReadingOut] = Field(default_factory=list)

    @classmethod
    def from_record(cls, body: WaterBody) -> "WaterBodyOut":
        readings = [ReadingOut.from_record(reading) for reading in body.readings]
        return cls(
            id=body.id,
            name=body.name,
            latest=readings[-1] if readings else None,
            readings=readings,
        )


class UsageSampleOut(BaseModel):
    timestamp: datetime
    usage: int = Field(..., ge=0)

    @classmethod
    def from_record(cls, sample: UsageSample) -> "UsageSampleOut":
        return cls(timestamp=sample.timestamp, usage=sample.usage)


class ToiletOut(BaseModel):
    id: int
    name: str
    usage: int = Field(..., ge=0)
    history: List[UsageSampleOut] = Field(default_factory=list)

    @classmethod
    def from_record(cls, toilet: Toilet) -> "ToiletOut":
        return cls(
            id=toilet.id,
            name=toilet.name,
            usage=toilet.usage,
            history=[UsageSampleOut.from_record(sample) for sample in toilet.history],
        )


class CreateEntityRequest(BaseModel):
    """Optional display name; the registry picks a numbered default otherwise."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class ContaminationEventOut(BaseModel):
    water_body_id: int
    water_body_name: str
    previous_status: Optional[WaterStatus] = None
    detected_at: datetime
    reading: ReadingOut

    @classmethod
    def from_record(cls, event: ContaminationEvent) -> "ContaminationEventOut":
        return cls(
            water_body_id=event.water_body_id,
            water_body_name=event.water_body_name,
            previous_status=event.previous_status,
            detected_at=event.detected_at,
            reading=ReadingOut.from_record(event.reading),
        )


class TickReportOut(BaseModel):
    tick: int = Field(..., ge=1)
    water_bodies: List[WaterBodyOut] = Field(default_factory=list)
    toilets: List[ToiletOut] = Field(default_factory=list)
    events: List[ContaminationEventOut] = Field(default_factory=list)


class AlertStatusOut(BaseModel):
    state: AlertState
    recent_events: List[ContaminationEventOut] = Field(default_factory=list)
