"""Static stop and route definitions for the simulated network."""

import logging
from dataclasses import dataclass

from transit_monitor.schemas.route import RouteGeometry
from transit_monitor.schemas.vehicle import LatLng

logger = logging.getLogger(__name__)


class TopologyError(ValueError):
    """Raised when stops or routes are defined inconsistently."""


@dataclass(frozen=True)
class StopDefinition:
    stop_id: str
    address: str
    lat: float
    lng: float


@dataclass(frozen=True)
class Route:
    route_id: str
    stop_ids: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.stop_ids) < 2:
            raise TopologyError(
                f"Route {self.route_id!r} needs at least 2 stops, got {len(self.stop_ids)}"
            )

    @property
    def segment_count(self) -> int:
        return len(self.stop_ids) - 1


class Topology:
    """Immutable stop set plus the routes that run through it.

    Stop order is the definition order and is used as the canonical order
    everywhere (sampling, insight tie-breaks, API listings).
    """

    def __init__(self, stops: list[StopDefinition], routes: list[Route]) -> None:
        self._stops: tuple[StopDefinition, ...] = tuple(stops)
        self._by_id: dict[str, StopDefinition] = {}
        for stop in self._stops:
            if stop.stop_id in self._by_id:
                raise TopologyError(f"Duplicate stop id {stop.stop_id!r}")
            self._by_id[stop.stop_id] = stop

        self._routes: dict[str, Route] = {}
        for route in routes:
            if route.route_id in self._routes:
                raise TopologyError(f"Duplicate route id {route.route_id!r}")
            missing = [sid for sid in route.stop_ids if sid not in self._by_id]
            if missing:
                # Not fatal: the simulator falls back per vehicle at runtime
                logger.warning("Route %s references unknown stops: %s", route.route_id, missing)
            self._routes[route.route_id] = route

    @property
    def stops(self) -> tuple[StopDefinition, ...]:
        return self._stops

    @property
    def routes(self) -> dict[str, Route]:
        return dict(self._routes)

    def has_stop(self, stop_id: str) -> bool:
        return stop_id in self._by_id

    def get_stop(self, stop_id: str) -> StopDefinition | None:
        return self._by_id.get(stop_id)

    def get_route(self, route_id: str) -> Route | None:
        return self._routes.get(route_id)

    def route_geometry(self) -> list[RouteGeometry]:
        """Ordered coordinates of each route's stops, for path rendering only.

        Unresolvable stop references are skipped.
        """
        result = []
        for route_id, route in self._routes.items():
            coords = [
                LatLng(lat=stop.lat, lng=stop.lng)
                for stop in (self._by_id.get(sid) for sid in route.stop_ids)
                if stop is not None
            ]
            result.append(RouteGeometry(route_id=route_id, coordinates=coords))
        return result


# Santiago network used by the dashboard
DEFAULT_STOPS = [
    # Providencia corridor
    StopDefinition("stop-prov-1", "Metro Tobalaba, Providencia", -33.4180, -70.5985),
    StopDefinition("stop-prov-2", "Metro Los Leones, Providencia", -33.4215, -70.6080),
    StopDefinition("stop-prov-3", "Metro Pedro de Valdivia", -33.4248, -70.6160),
    StopDefinition("stop-prov-4", "Metro Manuel Montt", -33.4285, -70.6245),
    StopDefinition("stop-prov-5", "Metro Salvador", -33.4318, -70.6310),
    # Other Santiago stops
    StopDefinition("stop-stgo-1", "Plaza de Armas, Santiago", -33.4379, -70.6505),
    StopDefinition("stop-stgo-2", "Parque O'Higgins", -33.4650, -70.6580),
    StopDefinition("stop-stgo-3", "Metro La Cisterna", -33.5350, -70.6610),
]

DEFAULT_ROUTES = [
    Route("R1", ("stop-prov-1", "stop-prov-2", "stop-prov-3", "stop-prov-4", "stop-prov-5")),
]


def default_topology() -> Topology:
    return Topology(DEFAULT_STOPS, DEFAULT_ROUTES)
