"""Road graph construction.

Vertices are keyed by a canonical rendering of their coordinate, so two road
lines that share an endpoint share a vertex and intersections fall out of the
data without any explicit detection. Edges are undirected and weighted by the
geodesic length of the segment in meters.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import networkx as nx
from pyproj import Geod

from config import EARTH_R_M
from road_ingest import LatLon, iter_segments

logger = logging.getLogger("roads.graph")

# great-circle distances on the mean-radius sphere, as web map clients measure them
GEOD = Geod(a=EARTH_R_M, b=EARTH_R_M)


# -------------------------- Utilities -------------------------

def vertex_key(pt: LatLon, precision: Optional[int] = None) -> str:
    """Canonical vertex identity "lat,lon".

    ``precision=None`` keeps the shortest exact float rendering; an int rounds
    both components to that many decimals.
    """
    lat, lon = pt[0], pt[1]
    if precision is None:
        return f"{lat + 0.0!r},{lon + 0.0!r}"  # -0.0 -> 0.0
    # round before normalizing so -1e-9 and 1e-9 both render as zero
    lat, lon = round(lat, precision) + 0.0, round(lon, precision) + 0.0
    return f"{lat:.{precision}f},{lon:.{precision}f}"


def geodesic_meters(a: LatLon, b: LatLon, geod: Geod = GEOD) -> float:
    """Return geodesic distance in meters between two (lat, lon) points."""
    _, _, d = geod.inv(a[1], a[0], b[1], b[0])
    return float(d)


# -------------------------- Graph -----------------------------

class RoadGraph:
    """Read-only view over a frozen undirected ``nx.Graph``.

    Node attributes: ``lat``, ``lon``. Edge attribute: ``weight`` (meters).
    """

    def __init__(self, G: nx.Graph):
        # an unfrozen graph is copied so the caller keeps a mutable original
        self.G = G if nx.is_frozen(G) else nx.freeze(G.copy())

    def __contains__(self, key: object) -> bool:
        return key in self.G

    def __len__(self) -> int:
        return self.G.number_of_nodes()

    def keys(self) -> List[str]:
        return list(self.G.nodes)

    def point(self, key: str) -> LatLon:
        data = self.G.nodes[key]
        return LatLon(data["lat"], data["lon"])

    def neighbors(self, key: str) -> Dict[str, float]:
        return {nbr: data["weight"] for nbr, data in self.G.adj[key].items()}

    def number_of_edges(self) -> int:
        return self.G.number_of_edges()


# ------------------------ Graph building ----------------------

def build_graph(document: Any, precision: Optional[int] = None, geod: Geod = GEOD) -> RoadGraph:
    """Build the road graph from a GeoJSON roads document.

    Raises ``RoadDataError`` for structurally malformed documents.
    """
    G = nx.Graph()

    def add_node(pt: LatLon) -> str:
        key = vertex_key(pt, precision)
        if key not in G:
            G.add_node(key, lat=pt.lat, lon=pt.lon)
        return key

    zero_len = 0
    for a, b in iter_segments(document):
        u, v = add_node(a), add_node(b)
        if u == v:
            zero_len += 1
            continue
        nu, nv = G.nodes[u], G.nodes[v]
        w = geodesic_meters((nu["lat"], nu["lon"]), (nv["lat"], nv["lon"]), geod)
        if w <= 0.0:
            zero_len += 1
            continue
        # parallel segments between the same two vertices: keep the shorter
        if G.has_edge(u, v) and G[u][v]["weight"] <= w:
            continue
        G.add_edge(u, v, weight=w)
    logger.info("graph built: nodes=%d edges=%d", G.number_of_nodes(), G.number_of_edges())
    if zero_len:
        logger.debug("graph build skipped %d zero-length segments", zero_len)
    return RoadGraph(nx.freeze(G))
