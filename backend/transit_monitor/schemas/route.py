from pydantic import BaseModel

from transit_monitor.schemas.vehicle import LatLng


class RouteGeometry(BaseModel):
    route_id: str
    coordinates: list[LatLng] = []
