import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

from transit_monitor.schemas.stop import StopData
from transit_monitor.schemas.vehicle import Bus


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AiInsight(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    message: str
    suggestion: str
    severity: Severity


class Snapshot(BaseModel):
    """Engine state as of one tick. Published once, never mutated."""

    model_config = ConfigDict(frozen=True)

    tick: int
    timestamp: datetime.datetime
    stops: tuple[StopData, ...] = ()
    buses: tuple[Bus, ...] = ()
    insight: AiInsight
