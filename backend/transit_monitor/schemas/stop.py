import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class OccupancyStatus(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CameraStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class Camera(BaseModel):
    model_config = ConfigDict(frozen=True)

    camera_id: str
    status: CameraStatus
    url: str


class StopLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    lat: float
    lng: float


class Historical(BaseModel):
    model_config = ConfigDict(frozen=True)

    last_week: int
    last_month: int


class StopData(BaseModel):
    """One occupancy sample for a stop, replaced wholesale every tick."""

    model_config = ConfigDict(frozen=True)

    stop_id: str
    timestamp: datetime.datetime
    location: StopLocation
    status: OccupancyStatus
    person_count: int
    avg_wait_time_minutes: float
    eta_minutes: int
    historical: Historical
    cameras: tuple[Camera, ...] = ()


class FlowPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime.datetime
    count: int


class FlowChart(BaseModel):
    stop_id: str
    interval_minutes: int
    points: list[FlowPoint] = []
    # False when there are fewer than two buckets to draw a trend through
    has_trend: bool = False


class StopMetrics(BaseModel):
    stop_id: str
    current: int
    vs_last_week_pct: float
    vs_last_month_pct: float


class SelectStopRequest(BaseModel):
    stop_id: str
