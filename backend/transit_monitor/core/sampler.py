"""Synthesizes per-stop occupancy samples.

Each tick is drawn independently from the static stop definitions and the
random source; no state carries over from the previous tick.
"""

import datetime
import logging
import math
import random

from transit_monitor.core.topology import StopDefinition
from transit_monitor.schemas.stop import (
    Camera,
    CameraStatus,
    Historical,
    OccupancyStatus,
    StopData,
    StopLocation,
)

logger = logging.getLogger(__name__)

WAIT_TIME_RANGE = (4.0, 16.0)  # minutes
ETA_RANGE = (2, 11)  # minutes, inclusive
LAST_WEEK_FACTOR = (0.8, 1.2)
LAST_MONTH_FACTOR = (0.7, 1.3)
SECONDARY_CAMERA_OFFLINE_PROB = 0.15

_CAMERA_FEEDS = ("bus,street", "people,street")


def classify_status(person_count: int, medium_threshold: int, high_threshold: int) -> OccupancyStatus:
    """Status tier for a head count. Thresholds are exclusive lower bounds."""
    if person_count > high_threshold:
        return OccupancyStatus.HIGH
    if person_count > medium_threshold:
        return OccupancyStatus.MEDIUM
    return OccupancyStatus.LOW


class StopSampler:
    def __init__(
        self,
        rng: random.Random,
        medium_threshold: int = 25,
        high_threshold: int = 55,
        count_range: tuple[int, int] = (5, 79),
    ) -> None:
        self.rng = rng
        self.medium_threshold = medium_threshold
        self.high_threshold = high_threshold
        self.count_range = count_range

    def sample(self, stops: tuple[StopDefinition, ...] | list[StopDefinition], now: datetime.datetime) -> list[StopData]:
        """One fresh sample per stop, in definition order."""
        return [self._sample_stop(stop, now) for stop in stops]

    def _sample_stop(self, stop: StopDefinition, now: datetime.datetime) -> StopData:
        rng = self.rng
        person_count = rng.randint(*self.count_range)
        return StopData(
            stop_id=stop.stop_id,
            timestamp=now,
            location=StopLocation(address=stop.address, lat=stop.lat, lng=stop.lng),
            status=classify_status(person_count, self.medium_threshold, self.high_threshold),
            person_count=person_count,
            avg_wait_time_minutes=round(rng.uniform(*WAIT_TIME_RANGE), 1),
            eta_minutes=rng.randint(*ETA_RANGE),
            historical=Historical(
                last_week=math.floor(person_count * rng.uniform(*LAST_WEEK_FACTOR)),
                last_month=math.floor(person_count * rng.uniform(*LAST_MONTH_FACTOR)),
            ),
            cameras=self._sample_cameras(stop.stop_id),
        )

    def _sample_cameras(self, stop_id: str) -> tuple[Camera, ...]:
        # First camera is always online; the second drops out now and then
        secondary = (
            CameraStatus.OFFLINE
            if self.rng.random() < SECONDARY_CAMERA_OFFLINE_PROB
            else CameraStatus.ONLINE
        )
        statuses = (CameraStatus.ONLINE, secondary)
        return tuple(
            Camera(
                camera_id=f"{stop_id}-cam-{i:02d}",
                status=status,
                url=self._placeholder_url(feed),
            )
            for i, (status, feed) in enumerate(zip(statuses, _CAMERA_FEEDS), start=1)
        )

    def _placeholder_url(self, tags: str) -> str:
        return f"https://loremflickr.com/640/480/{tags}?random={self.rng.getrandbits(32):08x}"
