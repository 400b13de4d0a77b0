"""Tests for MonitorEngine."""

import asyncio
import datetime
import random

import orjson
import pytest
from pydantic import ValidationError

from helpers import T0, FixedCounts, StepClock, make_line_topology
from transit_monitor.config import Settings
from transit_monitor.core.broadcaster import Broadcaster
from transit_monitor.core.engine import MonitorEngine, UnknownStopError
from transit_monitor.core.motion import BusState
from transit_monitor.schemas.snapshot import Severity
from transit_monitor.schemas.stop import OccupancyStatus


def make_engine(config=None, **kwargs) -> MonitorEngine:
    kwargs.setdefault("rng", random.Random(99))
    kwargs.setdefault("clock", StepClock())
    return MonitorEngine(config or Settings(), **kwargs)


def test_initial_snapshot_is_empty_but_has_insight():
    engine = make_engine()
    assert engine.snapshot.tick == 0
    assert engine.stops == ()
    assert len(engine.buses) == 2
    assert engine.insight.severity == Severity.LOW
    assert engine.selected_stop_id is None


def test_tick_publishes_snapshot_in_definition_order():
    engine = make_engine()
    snapshot = engine.tick()

    assert snapshot is engine.snapshot
    assert snapshot.tick == 1
    assert [s.stop_id for s in snapshot.stops] == [s.stop_id for s in engine.topology.stops]
    # First stop gets selected once data exists
    assert engine.selected_stop_id == "stop-prov-1"


def test_end_to_end_counts_statuses_and_insight():
    engine = make_engine(topology=make_line_topology(), rng=FixedCounts([10, 40, 70]), fleet=[])
    snapshot = engine.tick()

    assert [s.status for s in snapshot.stops] == [
        OccupancyStatus.LOW, OccupancyStatus.MEDIUM, OccupancyStatus.HIGH,
    ]
    assert snapshot.insight.severity == Severity.HIGH
    assert "Stop C" in snapshot.insight.message


def test_end_to_end_bus_on_three_stop_route():
    engine = make_engine(
        Settings(bus_speed_per_tick=0.5),
        topology=make_line_topology(),
        fleet=[BusState(bus_id="bus-x", route_id="L1")],
    )
    engine.tick()
    engine.tick()
    (bus,) = engine.buses
    assert (bus.segment, bus.progress) == (1, 0.0)
    assert bus.location.lng == pytest.approx(-70.62)

    engine.tick()
    engine.tick()
    (bus,) = engine.buses
    assert (bus.segment, bus.progress) == (0, 0.0)


def test_history_bounded_to_max():
    engine = make_engine(Settings(max_history=5))
    stamps = [engine.tick().timestamp for _ in range(8)]
    history = engine.history("stop-prov-3")
    assert len(history) == 5
    assert [p.timestamp for p in history] == stamps[-5:]


def test_failed_tick_keeps_previous_state(caplog):
    engine = make_engine()
    before = engine.tick()
    buses_before = engine.buses
    history_before = engine.history("stop-prov-1")

    def broken(*args, **kwargs):
        raise RuntimeError("sensor synthesis failed")

    engine.sampler.sample = broken
    assert engine.tick() is None
    assert engine.snapshot is before
    assert engine.buses == buses_before
    assert engine.history("stop-prov-1") == history_before
    assert "keeping previous snapshot" in caplog.text

    del engine.sampler.sample
    assert engine.tick().tick == 2


def test_snapshot_is_immutable():
    snapshot = make_engine().tick()
    with pytest.raises(ValidationError):
        snapshot.tick = 99
    with pytest.raises(ValidationError):
        snapshot.stops[0].person_count = 0


def test_select_unknown_stop_rejected():
    engine = make_engine()
    engine.tick()
    engine.select_stop("stop-stgo-2")

    with pytest.raises(UnknownStopError):
        engine.select_stop("stop-nowhere")
    assert engine.selected_stop_id == "stop-stgo-2"
    assert engine.selected_stop().stop_id == "stop-stgo-2"


def test_selection_before_first_tick():
    engine = make_engine()
    engine.select_stop("stop-stgo-3")
    assert engine.selected_stop() is None
    engine.tick()
    # Explicit choice survives the first tick's auto-selection
    assert engine.selected_stop().stop_id == "stop-stgo-3"


def test_unknown_stop_reads_rejected():
    engine = make_engine()
    with pytest.raises(UnknownStopError):
        engine.history("stop-nowhere")
    with pytest.raises(UnknownStopError):
        engine.chart("stop-nowhere")


def test_chart_needs_two_buckets():
    engine = make_engine()
    for _ in range(3):
        engine.tick()
    # Three ticks 5 s apart fall into one 10-minute bucket
    chart = engine.chart("stop-prov-1")
    assert chart.has_trend is False
    assert chart.points == []


def test_chart_buckets_history():
    # The constructor reads the clock once, so ticks land at 5, 10, 15, 20 minutes
    engine = make_engine(clock=StepClock(datetime.timedelta(minutes=5)))
    counts = [engine.tick().stops[0].person_count for _ in range(4)]
    chart = engine.chart("stop-prov-1", interval_minutes=10)
    minutes = datetime.timedelta(minutes=1)
    assert chart.has_trend is True
    assert [p.timestamp for p in chart.points] == [T0, T0 + 10 * minutes, T0 + 20 * minutes]
    assert chart.points[0].count == counts[0]
    assert chart.points[1].count == int((counts[1] + counts[2]) / 2 + 0.5)
    assert chart.points[2].count == counts[3]


def test_chart_rejects_zero_interval():
    engine = make_engine()
    engine.tick()
    with pytest.raises(ValueError):
        engine.chart("stop-prov-1", interval_minutes=0)


def test_listeners_notified_and_isolated():
    engine = make_engine()
    seen = []

    def bad_listener(snapshot):
        raise ValueError("boom")

    engine.add_listener(bad_listener)
    engine.add_listener(lambda s: seen.append(s.tick))
    engine.tick()
    engine.tick()
    assert seen == [1, 2]

    engine.remove_listener(bad_listener)
    engine.tick()
    assert seen == [1, 2, 3]


def test_ranking_and_metrics():
    engine = make_engine(topology=make_line_topology(), rng=FixedCounts([10, 40, 70]), fleet=[])
    engine.tick()
    assert [s.stop_id for s in engine.ranking(2)] == ["c", "b"]
    metrics = engine.stop_metrics("c")
    assert metrics.current == 70


def test_poll_broadcasts_snapshot():
    async def scenario():
        broadcaster = Broadcaster()
        engine = make_engine(broadcaster=broadcaster)
        queue = broadcaster.subscribe()
        await engine.poll()
        message = orjson.loads(queue.get_nowait())
        current = orjson.loads(await broadcaster.get_current_state())
        return message, current

    message, current = asyncio.run(scenario())
    assert message["type"] == "update"
    assert message["tick"] == 1
    assert len(message["stops"]) == 8
    assert current["insight"]["id"] == message["insight"]["id"]


def test_published_state_carries_selection():
    async def scenario():
        broadcaster = Broadcaster()
        engine = make_engine(broadcaster=broadcaster)
        queue = broadcaster.subscribe()
        await engine.poll()
        engine.select_stop("stop-stgo-2")
        await engine.broadcast()
        return orjson.loads(queue.get_nowait()), orjson.loads(queue.get_nowait())

    after_tick, after_select = asyncio.run(scenario())
    assert after_tick["selected_stop_id"] == "stop-prov-1"
    assert after_select["type"] == "update"
    assert after_select["selected_stop_id"] == "stop-stgo-2"
    assert after_select["tick"] == after_tick["tick"]


def test_start_and_stop_lifecycle():
    async def scenario():
        engine = make_engine(Settings(tick_interval_seconds=0.05))
        engine.start()
        assert engine.running
        await asyncio.sleep(0.3)
        engine.stop()
        engine.stop()
        return engine

    engine = asyncio.run(scenario())
    assert not engine.running
    assert engine.snapshot.tick >= 1
