"""Builders shared by the test modules."""

import datetime
import random

from transit_monitor.core.sampler import classify_status
from transit_monitor.core.topology import Route, StopDefinition, Topology
from transit_monitor.schemas.stop import Historical, StopData, StopLocation

T0 = datetime.datetime(2026, 3, 2, 8, 0, tzinfo=datetime.timezone.utc)


def make_line_topology() -> Topology:
    """Three stops on a straight east-west line, one route through them."""
    stops = [
        StopDefinition("a", "Stop A", -33.40, -70.60),
        StopDefinition("b", "Stop B", -33.40, -70.62),
        StopDefinition("c", "Stop C", -33.40, -70.64),
    ]
    return Topology(stops, [Route("L1", ("a", "b", "c"))])


def make_stop(stop_id: str, count: int, address: str | None = None) -> StopData:
    return StopData(
        stop_id=stop_id,
        timestamp=T0,
        location=StopLocation(address=address or f"Address {stop_id}", lat=-33.4, lng=-70.6),
        status=classify_status(count, 25, 55),
        person_count=count,
        avg_wait_time_minutes=5.0,
        eta_minutes=3,
        historical=Historical(last_week=count, last_month=count),
    )


class StepClock:
    """Returns T0, T0 + step, T0 + 2*step, ... on successive calls."""

    def __init__(self, step: datetime.timedelta = datetime.timedelta(seconds=5)) -> None:
        self.step = step
        self.now = T0 - step

    def __call__(self) -> datetime.datetime:
        self.now += self.step
        return self.now


class FixedCounts(random.Random):
    """Random source whose head counts come from a script, in order."""

    def __init__(self, counts, count_range=(5, 79)) -> None:
        super().__init__(1234)
        self._counts = list(counts)
        self._count_range = count_range

    def randint(self, a, b):
        if (a, b) == self._count_range and self._counts:
            return self._counts.pop(0)
        return super().randint(a, b)
