from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from app.web import router as web_router
from datastore.registry import build_default_registry
from logging_config import configure_logging
from services.alerts import build_default_alerter
from services.simulator import build_default_simulator
from settings import get_settings


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    simulator = build_default_simulator()
    if get_settings().autostart:
        simulator.start()
    try:
        yield
    finally:
        simulator.stop()
        build_default_simulator.cache_clear()
        build_default_registry.cache_clear()
        build_default_alerter.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Community Health Monitor",
        description="Simulated water-quality and public-toilet usage feed.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    app.include_router(web_router)
    return app

app = create_app()
