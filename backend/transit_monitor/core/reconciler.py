"""Keep a rendering layer's stateful entities in step with the engine's data.

The map widget itself lives outside this package. It is reached only through
the ``MapSurface`` protocol, so the diffing here does not depend on any
particular map library.
"""

import logging
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

from transit_monitor.schemas.route import RouteGeometry
from transit_monitor.schemas.stop import OccupancyStatus, StopData
from transit_monitor.schemas.vehicle import Bus

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")
H = TypeVar("H")

STATUS_COLORS = {
    OccupancyStatus.LOW: "#4ade80",
    OccupancyStatus.MEDIUM: "#fb923c",
    OccupancyStatus.HIGH: "#f87171",
}
BASE_STOP_RADIUS = 6.0
SELECTED_ZOOM = 15


@dataclass
class ReconcileResult(Generic[K]):
    created: list[K] = field(default_factory=list)
    updated: list[K] = field(default_factory=list)
    removed: list[K] = field(default_factory=list)

    @property
    def operations(self) -> int:
        return len(self.created) + len(self.updated) + len(self.removed)


def reconcile(
    tracked: dict[K, H],
    desired: Iterable[T],
    key: Callable[[T], K],
    create: Callable[[T], H],
    update: Callable[[H, T], None],
    remove: Callable[[H], None],
) -> ReconcileResult[K]:
    """Make ``tracked`` hold exactly one handle per desired identity.

    Existing handles are updated in place, never recreated. Handles whose
    identity is no longer desired are removed first. ``tracked`` is mutated.
    If ``desired`` repeats an identity, the last entity wins.
    """
    wanted: dict[K, T] = {}
    for entity in desired:
        wanted[key(entity)] = entity

    result: ReconcileResult[K] = ReconcileResult()

    for ident in [k for k in tracked if k not in wanted]:
        remove(tracked.pop(ident))
        result.removed.append(ident)

    for ident, entity in wanted.items():
        if ident in tracked:
            update(tracked[ident], entity)
            result.updated.append(ident)
        else:
            tracked[ident] = create(entity)
            result.created.append(ident)

    return result


@dataclass(frozen=True)
class MarkerStyle:
    color: str
    fill_color: str
    radius: float
    weight: int = 2
    opacity: float = 0.6
    fill_opacity: float = 0.6


def stop_marker_style(status: OccupancyStatus, person_count: int, selected: bool = False) -> MarkerStyle:
    """Color by status, radius grows with head count, selection emphasised."""
    color = STATUS_COLORS[status]
    return MarkerStyle(
        color=color,
        fill_color=color,
        radius=BASE_STOP_RADIUS + person_count / 10,
        weight=4 if selected else 2,
        opacity=1.0 if selected else 0.6,
    )


ROUTE_STYLE = {"color": "#38bdf8", "weight": 3, "opacity": 0.7, "dash_array": "5, 10"}


class MapSurface(Protocol):
    """What a rendering layer must offer for the map synchronizer."""

    def add_stop_marker(self, lat: float, lng: float, style: MarkerStyle) -> Any: ...

    def update_stop_marker(self, handle: Any, lat: float, lng: float, style: MarkerStyle) -> None: ...

    def add_bus_marker(self, lat: float, lng: float) -> Any: ...

    def move_bus_marker(self, handle: Any, lat: float, lng: float) -> None: ...

    def add_route_line(self, coords: list[tuple[float, float]], style: dict) -> Any: ...

    def update_route_line(self, handle: Any, coords: list[tuple[float, float]]) -> None: ...

    def remove(self, handle: Any) -> None: ...

    def fly_to(self, lat: float, lng: float, zoom: int) -> None: ...


def _coords(route: RouteGeometry) -> list[tuple[float, float]]:
    return [(c.lat, c.lng) for c in route.coordinates]


class MapSynchronizer:
    """Tracks stop, bus and route handles on a ``MapSurface``."""

    def __init__(self, surface: MapSurface) -> None:
        self.surface = surface
        self.stop_markers: dict[str, Any] = {}
        self.bus_markers: dict[str, Any] = {}
        self.route_lines: dict[str, Any] = {}
        # Stop the camera last flew to; a new fly-to only happens on change
        self._focused_stop_id: str | None = None

    def sync_stops(self, stops: Iterable[StopData], selected_stop_id: str | None = None) -> ReconcileResult[str]:
        stops = list(stops)

        def style_for(stop: StopData) -> MarkerStyle:
            return stop_marker_style(stop.status, stop.person_count, stop.stop_id == selected_stop_id)

        result = reconcile(
            self.stop_markers,
            stops,
            key=lambda s: s.stop_id,
            create=lambda s: self.surface.add_stop_marker(s.location.lat, s.location.lng, style_for(s)),
            update=lambda h, s: self.surface.update_stop_marker(h, s.location.lat, s.location.lng, style_for(s)),
            remove=self.surface.remove,
        )

        if selected_stop_id is None:
            self._focused_stop_id = None
        elif selected_stop_id != self._focused_stop_id:
            target = next((s for s in stops if s.stop_id == selected_stop_id), None)
            if target is not None:
                self.surface.fly_to(target.location.lat, target.location.lng, SELECTED_ZOOM)
                self._focused_stop_id = selected_stop_id
        return result

    def sync_buses(self, buses: Iterable[Bus]) -> ReconcileResult[str]:
        return reconcile(
            self.bus_markers,
            buses,
            key=lambda b: b.bus_id,
            create=lambda b: self.surface.add_bus_marker(b.location.lat, b.location.lng),
            update=lambda h, b: self.surface.move_bus_marker(h, b.location.lat, b.location.lng),
            remove=self.surface.remove,
        )

    def sync_routes(self, routes: Iterable[RouteGeometry]) -> ReconcileResult[str]:
        return reconcile(
            self.route_lines,
            routes,
            key=lambda r: r.route_id,
            create=lambda r: self.surface.add_route_line(_coords(r), dict(ROUTE_STYLE)),
            update=lambda h, r: self.surface.update_route_line(h, _coords(r)),
            remove=self.surface.remove,
        )

    def close(self) -> None:
        """Remove every visual entity this synchronizer created."""
        for tracked in (self.stop_markers, self.bus_markers, self.route_lines):
            for handle in tracked.values():
                self.surface.remove(handle)
            tracked.clear()
        self._focused_stop_id = None
        logger.debug("Map synchronizer released all layers")
