"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from app.schemas import (
    AlertStatusOut,
    ContaminationEventOut,
    CreateEntityRequest,
    ReadingOut,
    TickReportOut,
    ToiletOut,
    WaterBodyOut,
)
from datastore.registry import EntityRegistry
from services.alerts import Alerter
from services.simulator import SimulationEngine, build_default_simulator

router = APIRouter()


def get_simulator() -> SimulationEngine:
    return build_default_simulator()


def get_registry(simulator: SimulationEngine = Depends(get_simulator)) -> EntityRegistry:
    return simulator.registry


def get_alerter(simulator: SimulationEngine = Depends(get_simulator)) -> Alerter:
    if simulator.alerter is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No alerter is attached to the simulation.",
        )
    return simulator.alerter


def _alert_status(alerter: Alerter) -> AlertStatusOut:
    return AlertStatusOut(
        state=alerter.state,
        recent_events=[ContaminationEventOut.from_record(event) for event in alerter.recent_events()],
    )


@router.get(
    "/water-bodies",
    response_model=list[WaterBodyOut],
    summary="List every water body with its reading history.",
)
async def list_water_bodies(
    registry: EntityRegistry = Depends(get_registry),
) -> list[WaterBodyOut]:
    return [WaterBodyOut.from_record(body) for body in registry.list_water_bodies()]


@router.post(
    "/water-bodies",
    status_code=status.HTTP_201_CREATED,
    response_model=WaterBodyOut,
    summary="Add a water body seeded with synthetic history.",
)
async def create_water_body(
    payload: Optional[CreateEntityRequest] = Body(default=None),
    registry: EntityRegistry = Depends(get_registry),
) -> WaterBodyOut:
    body = registry.add_water_body(payload.name if payload else None)
    return WaterBodyOut.from_record(body)


@router.get(
    "/water-bodies/{water_body_id}",
    response_model=WaterBodyOut,
    summary="Fetch one water body and its readings.",
)
async def get_water_body(
    water_body_id: int,
    registry: EntityRegistry = Depends(get_registry),
) -> WaterBodyOut:
    body = registry.get_water_body(water_body_id)
    if body is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Water body {water_body_id} not found.",
        )
    return WaterBodyOut.from_record(body)


@router.get(
    "/water-bodies/{water_body_id}/latest",
    response_model=ReadingOut,
    summary="Fetch the most recent reading of a water body.",
)
async def get_latest_reading(
    water_body_id: int,
    registry: EntityRegistry = Depends(get_registry),
) -> ReadingOut:
    body = registry.get_water_body(water_body_id)
    if body is None or body.latest is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No readings for water body {water_body_id}.",
        )
    return ReadingOut.from_record(body.latest)


@router.delete(
    "/water-bodies/{water_body_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a water body; unknown ids are ignored.",
)
async def delete_water_body(
    water_body_id: int,
    registry: EntityRegistry = Depends(get_registry),
) -> Response:
    registry.remove_water_body(water_body_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/toilets",
    response_model=list[ToiletOut],
    summary="List every toilet with its usage history.",
)
async def list_toilets(
    registry: EntityRegistry = Depends(get_registry),
) -> list[ToiletOut]:
    return [ToiletOut.from_record(toilet) for toilet in registry.list_toilets()]


@router.post(
    "/toilets",
    status_code=status.HTTP_201_CREATED,
    response_model=ToiletOut,
    summary="Add a toilet with zero usage.",
)
async def create_toilet(
    payload: Optional[CreateEntityRequest] = Body(default=None),
    registry: EntityRegistry = Depends(get_registry),
) -> ToiletOut:
    toilet = registry.add_toilet(payload.name if payload else None)
    return ToiletOut.from_record(toilet)


@router.get(
    "/toilets/{toilet_id}",
    response_model=ToiletOut,
    summary="Fetch one toilet and its usage history.",
)
async def get_toilet(
    toilet_id: int,
    registry: EntityRegistry = Depends(get_registry),
) -> ToiletOut:
    toilet = registry.get_toilet(toilet_id)
    if toilet is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Toilet {toilet_id} not found.",
        )
    return ToiletOut.from_record(toilet)


@router.delete(
    "/toilets/{toilet_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a toilet; unknown ids are ignored.",
)
async def delete_toilet(
    toilet_id: int,
    registry: EntityRegistry = Depends(get_registry),
) -> Response:
    registry.remove_toilet(toilet_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/simulation/tick",
    response_model=TickReportOut,
    summary="Run one simulation step immediately.",
)
async def run_tick(
    simulator: SimulationEngine = Depends(get_simulator),
) -> TickReportOut:
    report = simulator.tick()
    return TickReportOut(
        tick=report.tick,
        water_bodies=[WaterBodyOut.from_record(body) for body in report.water_bodies],
        toilets=[ToiletOut.from_record(toilet) for toilet in report.toilets],
        events=[ContaminationEventOut.from_record(event) for event in report.events],
    )


@router.get(
    "/alerts",
    response_model=AlertStatusOut,
    summary="Alert readiness and recent contamination events.",
)
async def get_alerts(alerter: Alerter = Depends(get_alerter)) -> AlertStatusOut:
    return _alert_status(alerter)


@router.post(
    "/alerts/enable",
    response_model=AlertStatusOut,
    summary="Enable audible contamination alerts.",
)
async def enable_alerts(alerter: Alerter = Depends(get_alerter)) -> AlertStatusOut:
    alerter.enable()
    return _alert_status(alerter)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    simulator: SimulationEngine = Depends(get_simulator),
) -> dict[str, str]:
    return {"status": "ok", "simulation": "running" if simulator.running else "stopped"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
