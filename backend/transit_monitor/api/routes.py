"""Route REST API endpoints."""

from fastapi import APIRouter, HTTPException

from transit_monitor.schemas.route import RouteGeometry

router = APIRouter(prefix="/api/routes", tags=["routes"])

# Will be set by main.py
engine = None


@router.get("", response_model=list[RouteGeometry])
async def list_routes():
    """Ordered stop coordinates of every route, for drawing paths."""
    if engine is None:
        return []
    return engine.route_geometry()


@router.get("/{route_id}", response_model=RouteGeometry)
async def get_route(route_id: str):
    if engine is not None:
        for geometry in engine.route_geometry():
            if geometry.route_id == route_id:
                return geometry
    raise HTTPException(status_code=404, detail="Route not found")
