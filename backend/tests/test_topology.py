"""Tests for Topology."""

import pytest

from helpers import make_line_topology
from transit_monitor.core.topology import Route, StopDefinition, Topology, TopologyError, default_topology


def test_route_geometry_follows_stop_order():
    (geometry,) = make_line_topology().route_geometry()
    assert geometry.route_id == "L1"
    assert [c.lng for c in geometry.coordinates] == [-70.60, -70.62, -70.64]


def test_route_geometry_skips_unknown_stops():
    stops = [StopDefinition("a", "A", 1.0, 2.0), StopDefinition("b", "B", 3.0, 4.0)]
    topology = Topology(stops, [Route("R", ("a", "ghost", "b"))])
    (geometry,) = topology.route_geometry()
    assert [(c.lat, c.lng) for c in geometry.coordinates] == [(1.0, 2.0), (3.0, 4.0)]


def test_duplicate_stop_ids_rejected():
    stops = [StopDefinition("a", "A", 1.0, 2.0), StopDefinition("a", "A again", 3.0, 4.0)]
    with pytest.raises(TopologyError):
        Topology(stops, [])


def test_default_network():
    topology = default_topology()
    assert len(topology.stops) == 8
    assert topology.stops[0].stop_id == "stop-prov-1"
    assert topology.get_route("R1").segment_count == 4
