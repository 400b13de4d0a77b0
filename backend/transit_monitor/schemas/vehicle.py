from pydantic import BaseModel, ConfigDict


class LatLng(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class Bus(BaseModel):
    model_config = ConfigDict(frozen=True)

    bus_id: str
    route_id: str
    location: LatLng
    segment: int
    progress: float
