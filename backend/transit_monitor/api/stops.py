"""Stop REST API endpoints."""

from fastapi import APIRouter, HTTPException, Query

from transit_monitor.core.engine import UnknownStopError
from transit_monitor.schemas.stop import (
    FlowChart,
    FlowPoint,
    SelectStopRequest,
    StopData,
    StopMetrics,
)

router = APIRouter(prefix="/api/stops", tags=["stops"])

# Will be set by main.py
engine = None


def _require_engine():
    if engine is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return engine


@router.get("", response_model=list[StopData])
async def list_stops():
    """Latest sample for every stop, in definition order."""
    if engine is None:
        return []
    return list(engine.stops)


@router.get("/ranking", response_model=list[StopData])
async def get_ranking(limit: int = Query(default=5, ge=1, le=50)):
    """Busiest stops first."""
    if engine is None:
        return []
    return engine.ranking(limit)


@router.get("/selected", response_model=StopData | None)
async def get_selected():
    """Latest sample for the currently selected stop."""
    return _require_engine().selected_stop()


@router.put("/selected", response_model=StopData | None)
async def select_stop(body: SelectStopRequest):
    """Change the selected stop. Unknown stop ids are rejected with 404."""
    eng = _require_engine()
    try:
        eng.select_stop(body.stop_id)
    except UnknownStopError:
        raise HTTPException(status_code=404, detail="Stop not found")
    await eng.broadcast()
    return eng.get_stop(body.stop_id)


@router.get("/{stop_id}", response_model=StopData)
async def get_stop(stop_id: str):
    eng = _require_engine()
    try:
        stop = eng.get_stop(stop_id)
    except UnknownStopError:
        raise HTTPException(status_code=404, detail="Stop not found")
    if stop is None:
        raise HTTPException(status_code=404, detail="No sample yet")
    return stop


@router.get("/{stop_id}/history", response_model=list[FlowPoint])
async def get_history(stop_id: str):
    """Raw bounded flow history for a stop, oldest first."""
    eng = _require_engine()
    try:
        return list(eng.history(stop_id))
    except UnknownStopError:
        raise HTTPException(status_code=404, detail="Stop not found")


@router.get("/{stop_id}/chart", response_model=FlowChart)
async def get_chart(stop_id: str, interval_minutes: int | None = Query(default=None, ge=1)):
    """Flow history averaged into fixed-width intervals."""
    eng = _require_engine()
    try:
        return eng.chart(stop_id, interval_minutes)
    except UnknownStopError:
        raise HTTPException(status_code=404, detail="Stop not found")


@router.get("/{stop_id}/metrics", response_model=StopMetrics)
async def get_metrics(stop_id: str):
    """Current occupancy compared against last week and last month."""
    eng = _require_engine()
    try:
        metrics = eng.stop_metrics(stop_id)
    except UnknownStopError:
        raise HTTPException(status_code=404, detail="Stop not found")
    if metrics is None:
        raise HTTPException(status_code=404, detail="No sample yet")
    return metrics
