"""Moves simulated buses along their routes, one segment fraction per tick."""

import logging
from dataclasses import dataclass

from transit_monitor.core.topology import Topology
from transit_monitor.schemas.vehicle import Bus, LatLng

logger = logging.getLogger(__name__)

# Reported for a bus whose route or stops cannot be resolved
FALLBACK_LOCATION = LatLng(lat=0.0, lng=0.0)

# Float sums of the speed may stop just short of 1.0 at a segment boundary
_BOUNDARY_TOLERANCE = 1e-9


@dataclass
class BusState:
    bus_id: str
    route_id: str
    progress: float = 0.0  # fraction of the current segment, 0.0 <= p < 1.0
    segment: int = 0  # index of the segment's start stop


def initial_fleet() -> list[BusState]:
    return [
        BusState(bus_id="bus-01", route_id="R1", progress=0.0, segment=0),
        BusState(bus_id="bus-02", route_id="R1", progress=0.5, segment=2),
    ]


class MotionSimulator:
    """Advances bus progress and interpolates positions between stops."""

    def __init__(self, topology: Topology, speed_per_tick: float) -> None:
        if not 0 < speed_per_tick <= 1:
            raise ValueError(f"speed_per_tick must be in (0, 1], got {speed_per_tick}")
        self.topology = topology
        self.speed_per_tick = speed_per_tick

    def advance(self, buses: list[BusState]) -> None:
        """Move every bus forward by one tick, in place."""
        for bus in buses:
            route = self.topology.get_route(bus.route_id)
            if route is None:
                logger.warning("Bus %s references unknown route %s", bus.bus_id, bus.route_id)
                continue

            bus.progress += self.speed_per_tick
            if bus.progress + _BOUNDARY_TOLERANCE >= 1:
                bus.progress = 0.0
                bus.segment = (bus.segment + 1) % route.segment_count
            elif bus.segment >= route.segment_count:
                # Restored or hand-built state outside the route
                bus.segment %= route.segment_count

    def locate(self, bus: BusState) -> LatLng:
        """Linear interpolation between the segment's start and end stops."""
        route = self.topology.get_route(bus.route_id)
        if route is None or not 0 <= bus.segment < route.segment_count:
            logger.warning(
                "Bus %s has no valid segment %s on route %s, using fallback position",
                bus.bus_id, bus.segment, bus.route_id,
            )
            return FALLBACK_LOCATION

        start = self.topology.get_stop(route.stop_ids[bus.segment])
        end = self.topology.get_stop(route.stop_ids[bus.segment + 1])
        if start is None or end is None:
            logger.warning(
                "Bus %s: route %s segment %d references a missing stop, using fallback position",
                bus.bus_id, bus.route_id, bus.segment,
            )
            return FALLBACK_LOCATION

        lat = start.lat + (end.lat - start.lat) * bus.progress
        lng = start.lng + (end.lng - start.lng) * bus.progress
        return LatLng(lat=lat, lng=lng)

    def snapshot(self, buses: list[BusState]) -> tuple[Bus, ...]:
        return tuple(
            Bus(
                bus_id=bus.bus_id,
                route_id=bus.route_id,
                location=self.locate(bus),
                segment=bus.segment,
                progress=bus.progress,
            )
            for bus in buses
        )
