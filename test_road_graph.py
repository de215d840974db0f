"""Tests for road graph construction."""

import networkx as nx
import pytest

from road_graph import RoadGraph, build_graph, geodesic_meters, vertex_key
from road_ingest import LatLon, RoadDataError

P1, P2, P3 = LatLon(52.0, 4.0), LatLon(52.0, 4.001), LatLon(52.0, 4.002)
Q = LatLon(52.001, 4.001)


def _line(*pts):
    return {
        "type": "Feature",
        "properties": {},
        "geometry": {"type": "LineString", "coordinates": [[p.lon, p.lat] for p in pts]},
    }


def _fc(*features):
    return {"type": "FeatureCollection", "features": list(features)}


# P1-P2-P3 along a parallel, plus a side street P2-Q
NETWORK = _fc(_line(P1, P2), _line(P2, P3), _line(P2, Q))


def test_vertex_key_renders_lat_then_lon():
    assert vertex_key(LatLon(52.0, 4.001)) == "52.0,4.001"
    assert vertex_key(LatLon(-0.0, 0.0)) == "0.0,0.0"
    assert vertex_key(LatLon(52.123456789, 4.5), precision=3) == "52.123,4.500"


def test_shared_endpoints_become_one_vertex():
    g = build_graph(NETWORK)
    assert len(g) == 4
    assert g.number_of_edges() == 3
    assert set(g.neighbors(vertex_key(P2))) == {vertex_key(P1), vertex_key(P3), vertex_key(Q)}


def test_edge_weights_are_positive_and_symmetric():
    g = build_graph(NETWORK)
    for key in g.keys():
        for nbr, w in g.neighbors(key).items():
            assert w > 0
            assert g.neighbors(nbr)[key] == w


def test_edge_weight_is_geodesic_length():
    g = build_graph(NETWORK)
    w = g.neighbors(vertex_key(P1))[vertex_key(P2)]
    assert w == pytest.approx(geodesic_meters(P1, P2))
    assert 60.0 < w < 75.0  # ~68.5 m per 0.001 deg lon at 52N


def test_build_is_idempotent():
    a, b = build_graph(NETWORK), build_graph(NETWORK)
    assert a.keys() == b.keys()
    for key in a.keys():
        assert a.neighbors(key) == b.neighbors(key)


def test_zero_length_segment_keeps_vertex_without_edge():
    g = build_graph(_fc(_line(P1, P1)))
    assert vertex_key(P1) in g
    assert g.neighbors(vertex_key(P1)) == {}
    assert g.number_of_edges() == 0


def test_precision_merges_nearby_coordinates():
    near_p2 = LatLon(52.0000001, 4.0010001)
    doc = _fc(_line(P1, P2), _line(near_p2, P3))
    assert len(build_graph(doc)) == 4
    merged = build_graph(doc, precision=6)
    assert len(merged) == 3
    assert merged.point("52.000000,4.001000") == P2  # first-seen coordinate kept


def test_rounded_key_has_no_negative_zero():
    assert vertex_key(LatLon(-1e-7, 4.0), 6) == vertex_key(LatLon(1e-7, 4.0), 6) == "0.000000,4.000000"


def test_rounding_joins_lines_across_the_equator():
    a, b, c = LatLon(0.0, 3.999), LatLon(-1e-7, 4.0), LatLon(1e-7, 4.0)
    doc = _fc(_line(a, b), _line(c, LatLon(0.0, 4.001)))
    g = build_graph(doc, precision=6)
    assert len(g) == 3
    assert g.number_of_edges() == 2


def test_vertices_keep_insertion_order():
    g = build_graph(NETWORK)
    assert g.keys() == [vertex_key(P1), vertex_key(P2), vertex_key(P3), vertex_key(Q)]
    assert g.point(vertex_key(Q)) == Q


def test_graph_is_frozen():
    g = build_graph(NETWORK)
    with pytest.raises(nx.NetworkXError):
        g.G.add_edge("a", "b", weight=1.0)


def test_wraps_prebuilt_graph():
    G = nx.Graph()
    G.add_node("A", lat=0.0, lon=0.0)
    G.add_node("B", lat=0.0, lon=1.0)
    G.add_edge("A", "B", weight=3.0)
    g = RoadGraph(G)
    assert g.neighbors("A") == {"B": 3.0}
    assert "C" not in g
    # the caller's graph is left mutable
    G.add_edge("B", "C", weight=1.0)
    assert "C" not in g
    assert not nx.is_frozen(G)


def test_empty_and_malformed_documents():
    assert len(build_graph(_fc())) == 0
    with pytest.raises(RoadDataError):
        build_graph({"features": None})
