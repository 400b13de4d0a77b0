"""Vehicle REST API endpoints."""

from fastapi import APIRouter

from transit_monitor.schemas.vehicle import Bus

router = APIRouter(prefix="/api/vehicles", tags=["vehicles"])

# Will be set by main.py
engine = None


@router.get("", response_model=list[Bus])
async def list_vehicles(route: str | None = None):
    """Get all simulated buses with their interpolated positions."""
    if engine is None:
        return []
    buses = list(engine.buses)
    if route:
        buses = [b for b in buses if b.route_id == route]
    return buses


@router.get("/{bus_id}", response_model=Bus | None)
async def get_vehicle(bus_id: str):
    """Get a specific bus by ID."""
    if engine is None:
        return None
    return engine.get_bus(bus_id)
