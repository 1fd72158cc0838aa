from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from models.records import WaterStatus
from services.simulator import SimulationEngine, build_default_simulator


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

_STATUS_CLASSES = {
    WaterStatus.safe: "status-safe",
    WaterStatus.warning: "status-warning",
    WaterStatus.contaminated: "status-contaminated",
}


def get_simulator() -> SimulationEngine:
    return build_default_simulator()


def _time_label(value: Optional[datetime]) -> str:
    return value.strftime("%H:%M:%S") if value is not None else "--"


templates.env.filters["time_label"] = _time_label


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    simulator: SimulationEngine = Depends(get_simulator),
) -> HTMLResponse:
    registry = simulator.registry
    alerter = simulator.alerter
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "water_bodies": registry.list_water_bodies(),
            "toilets": registry.list_toilets(),
            "status_classes": _STATUS_CLASSES,
            "alert_state": alerter.state.value if alerter else None,
            "refresh_seconds": max(1, round(simulator.interval)),
        },
    )
