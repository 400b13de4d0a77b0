"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from transit_monitor.api import insight, routes, stops, vehicles, ws
from transit_monitor.config import settings
from transit_monitor.core.broadcaster import Broadcaster
from transit_monitor.core.engine import MonitorEngine

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def wire(engine: MonitorEngine | None, broadcaster: Broadcaster | None) -> None:
    """Point every API module at the given engine and broadcaster."""
    ws.broadcaster = broadcaster
    ws.engine = engine
    stops.engine = engine
    vehicles.engine = engine
    routes.engine = engine
    insight.engine = engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    broadcaster = Broadcaster()
    engine = MonitorEngine(settings, broadcaster=broadcaster)
    wire(engine, broadcaster)

    # First tick right away so the dashboard is not empty for a full interval
    await engine.poll()
    engine.start()
    logger.info(
        "Transit Monitor started - %d stops, %d routes, tick every %ss",
        len(engine.topology.stops), len(engine.topology.routes), settings.tick_interval_seconds,
    )

    yield

    # Shutdown
    engine.stop()
    await broadcaster.close()
    wire(None, None)
    logger.info("Transit Monitor shut down")


app = FastAPI(
    title="Transit Flow Monitor",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stops.router)
app.include_router(vehicles.router)
app.include_router(routes.router)
app.include_router(insight.router)
app.include_router(ws.router)


@app.get("/api/health")
async def health():
    status = {"status": "ok"}
    if stops.engine is not None:
        status["tick"] = stops.engine.snapshot.tick
        status["running"] = stops.engine.running
    return status
