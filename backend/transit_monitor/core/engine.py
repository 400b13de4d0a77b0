"""Main orchestrator: advances buses, samples stops, derives insight, records history."""

import datetime
import logging
import random
from collections.abc import Callable
from dataclasses import replace

from transit_monitor.config import Settings, settings as default_settings
from transit_monitor.core.broadcaster import Broadcaster
from transit_monitor.core import dashboard
from transit_monitor.core.history import FlowHistory, bucket_flow, has_trend
from transit_monitor.core.insights import NORMAL_INSIGHT, derive_insight
from transit_monitor.core.motion import BusState, MotionSimulator, initial_fleet
from transit_monitor.core.sampler import StopSampler
from transit_monitor.core.scheduler import create_scheduler
from transit_monitor.core.topology import Topology, default_topology
from transit_monitor.schemas.route import RouteGeometry
from transit_monitor.schemas.snapshot import AiInsight, Snapshot
from transit_monitor.schemas.stop import FlowChart, FlowPoint, StopData, StopMetrics
from transit_monitor.schemas.vehicle import Bus

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[Snapshot], None]


class UnknownStopError(LookupError):
    """Raised when a stop id is not part of the topology."""

    def __init__(self, stop_id: str) -> None:
        super().__init__(f"Unknown stop {stop_id!r}")
        self.stop_id = stop_id


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class MonitorEngine:
    """Owns all simulation state and publishes one immutable snapshot per tick.

    Randomness and time are injected so ticks can be replayed in tests.
    Consumers only ever see frozen snapshots and tuples.
    """

    def __init__(
        self,
        config: Settings | None = None,
        topology: Topology | None = None,
        broadcaster: Broadcaster | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
        fleet: list[BusState] | None = None,
    ) -> None:
        self.config = config or default_settings
        self.topology = topology or default_topology()
        self.broadcaster = broadcaster
        self.rng = rng or random.Random(self.config.random_seed)
        self.clock = clock or _utcnow

        self.motion = MotionSimulator(self.topology, self.config.bus_speed_per_tick)
        self.sampler = StopSampler(
            self.rng,
            medium_threshold=self.config.medium_threshold,
            high_threshold=self.config.high_threshold,
            count_range=(self.config.person_count_min, self.config.person_count_max),
        )
        self.flow_history = FlowHistory(self.config.max_history)

        self._buses: list[BusState] = list(fleet) if fleet is not None else initial_fleet()
        self._snapshot = Snapshot(
            tick=0,
            timestamp=self.clock(),
            buses=self.motion.snapshot(self._buses),
            insight=NORMAL_INSIGHT,
        )
        self._selected_stop_id: str | None = None
        self._listeners: list[SnapshotListener] = []
        self._scheduler = None

    # --- lifecycle ---

    def start(self) -> None:
        """Schedule periodic ticks. Must be called with an event loop running."""
        if self._scheduler is not None:
            return
        self._scheduler = create_scheduler(self, self.config.tick_interval_seconds)
        self._scheduler.start()
        logger.info("Engine started - ticking every %ss", self.config.tick_interval_seconds)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Engine stopped after %d ticks", self._snapshot.tick)

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    # --- tick ---

    def tick(self) -> Snapshot | None:
        """Run one simulation cycle.

        Returns the new snapshot, or None if the cycle failed. A failed cycle
        leaves every piece of engine state as it was before the call.
        """
        try:
            now = self.clock()
            buses = [replace(bus) for bus in self._buses]
            self.motion.advance(buses)
            stops = self.sampler.sample(self.topology.stops, now)
            insight = derive_insight(
                stops,
                high_cutoff=self.config.insight_high_cutoff,
                medium_cutoff=self.config.insight_medium_cutoff,
            )
            snapshot = Snapshot(
                tick=self._snapshot.tick + 1,
                timestamp=now,
                stops=tuple(stops),
                buses=self.motion.snapshot(buses),
                insight=insight,
            )
        except Exception:
            logger.exception("Tick %d failed - keeping previous snapshot", self._snapshot.tick + 1)
            return None

        self._buses = buses
        for stop in snapshot.stops:
            self.flow_history.record(stop.stop_id, FlowPoint(timestamp=now, count=stop.person_count))
        self._snapshot = snapshot

        if self._selected_stop_id is None and snapshot.stops:
            self._selected_stop_id = snapshot.stops[0].stop_id

        logger.debug("Tick %d: insight=%s", snapshot.tick, insight.id)
        self._notify(snapshot)
        return snapshot

    async def poll(self) -> None:
        """Scheduler job: tick, then push the snapshot to subscribers."""
        if self.tick() is not None:
            await self.broadcast()

    def state_message(self) -> dict:
        """Latest snapshot plus the current selection, JSON-ready."""
        message = self._snapshot.model_dump(mode="json")
        message["selected_stop_id"] = self._selected_stop_id
        return message

    async def broadcast(self) -> None:
        """Push the current state to subscribers, if a broadcaster is attached."""
        if self.broadcaster is None:
            return
        try:
            await self.broadcaster.publish(self.state_message())
        except Exception:
            logger.exception("Failed to broadcast tick %d", self._snapshot.tick)

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, snapshot: Snapshot) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener %r failed", listener)

    # --- read side ---

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def stops(self) -> tuple[StopData, ...]:
        return self._snapshot.stops

    @property
    def buses(self) -> tuple[Bus, ...]:
        return self._snapshot.buses

    @property
    def insight(self) -> AiInsight:
        return self._snapshot.insight

    def _require_stop(self, stop_id: str) -> None:
        if not self.topology.has_stop(stop_id):
            raise UnknownStopError(stop_id)

    def get_stop(self, stop_id: str) -> StopData | None:
        """Latest sample for a stop, None before the first tick."""
        self._require_stop(stop_id)
        return next((s for s in self._snapshot.stops if s.stop_id == stop_id), None)

    def get_bus(self, bus_id: str) -> Bus | None:
        return next((b for b in self._snapshot.buses if b.bus_id == bus_id), None)

    def history(self, stop_id: str) -> tuple[FlowPoint, ...]:
        self._require_stop(stop_id)
        return self.flow_history.series(stop_id)

    def chart(self, stop_id: str, interval_minutes: int | None = None) -> FlowChart:
        """Bucketed flow for a stop. Empty points mean not enough data yet."""
        self._require_stop(stop_id)
        interval = self.config.chart_bucket_minutes if interval_minutes is None else interval_minutes
        points = bucket_flow(self.flow_history.series(stop_id), interval)
        trend = has_trend(points)
        return FlowChart(
            stop_id=stop_id,
            interval_minutes=interval,
            points=points if trend else [],
            has_trend=trend,
        )

    def route_geometry(self) -> list[RouteGeometry]:
        return self.topology.route_geometry()

    def ranking(self, limit: int = 5) -> list[StopData]:
        return dashboard.rank_stops(self._snapshot.stops, limit)

    def stop_metrics(self, stop_id: str) -> StopMetrics | None:
        stop = self.get_stop(stop_id)
        return dashboard.stop_metrics(stop) if stop is not None else None

    # --- selection ---

    @property
    def selected_stop_id(self) -> str | None:
        return self._selected_stop_id

    def select_stop(self, stop_id: str) -> None:
        """Change the selected stop. Unknown ids are rejected, selection unchanged."""
        if not self.topology.has_stop(stop_id):
            logger.warning("Rejected selection of unknown stop %s", stop_id)
            raise UnknownStopError(stop_id)
        self._selected_stop_id = stop_id

    def selected_stop(self) -> StopData | None:
        selected = self._selected_stop_id
        if selected is None:
            return None
        return self.get_stop(selected)
