"""Snap arbitrary coordinates onto the nearest road vertex.

The contract is a brute-force one: the vertex with the smallest geodesic
distance wins, provided that distance is strictly below the snap radius, and
exact ties go to the vertex inserted first into the graph. An STRtree over the
vertex points only narrows the candidate set; the winner is always decided by
an ordered geodesic scan, so results match a full linear scan.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from pyproj import Geod
from shapely.geometry import Point, box
from shapely.strtree import STRtree

from road_graph import GEOD, RoadGraph, geodesic_meters
from road_ingest import LatLon

logger = logging.getLogger("roads.snap")

DEFAULT_MAX_SNAP_M = 500.0

# Lower bound of meters per degree of latitude (sphere: ~111 195 m, WGS84 equator: ~110 574 m)
_MIN_M_PER_DEG = 110_000.0
# Above this latitude, or for windows wider than this, scan everything
_WINDOW_MAX_LAT = 89.0
_WINDOW_MAX_DEG = 1.0


class VertexIndex:
    """Spatial candidate index over the vertices of one ``RoadGraph``."""

    def __init__(self, graph: RoadGraph, geod: Geod = GEOD):
        self.graph = graph
        self.geod = geod
        self.keys: List[str] = graph.keys()
        self.points: List[LatLon] = [graph.point(k) for k in self.keys]
        self.tree: Optional[STRtree] = (
            STRtree([Point(p.lon, p.lat) for p in self.points]) if self.points else None
        )

    def __len__(self) -> int:
        return len(self.keys)

    def _candidates(self, query: LatLon, max_snap_m: float) -> Sequence[int]:
        """Indices (ascending) of vertices that may lie within ``max_snap_m``."""
        all_idx = range(len(self.keys))
        if self.tree is None or math.isinf(max_snap_m):
            return all_idx
        dlat = max_snap_m / _MIN_M_PER_DEG
        lat_edge = abs(query.lat) + dlat
        if dlat > _WINDOW_MAX_DEG or lat_edge >= _WINDOW_MAX_LAT:
            return all_idx
        dlon = dlat / math.cos(math.radians(lat_edge))
        if query.lon - dlon < -180.0 or query.lon + dlon > 180.0:
            return all_idx
        window = box(query.lon - dlon, query.lat - dlat, query.lon + dlon, query.lat + dlat)
        return sorted(int(i) for i in self.tree.query(window))

    def nearest(self, query: LatLon, max_snap_m: float = DEFAULT_MAX_SNAP_M) -> Optional[Tuple[str, float]]:
        """Return (key, meters) of the nearest vertex closer than ``max_snap_m``, else None."""
        best_idx: Optional[int] = None
        best_d = math.inf
        for idx in self._candidates(query, max_snap_m):
            d = geodesic_meters(query, self.points[idx], self.geod)
            if d < best_d:
                best_idx, best_d = idx, d
        if best_idx is None or not best_d < max_snap_m:
            return None
        return self.keys[best_idx], best_d


def snap(
    query: LatLon,
    graph: RoadGraph,
    max_snap_m: float = DEFAULT_MAX_SNAP_M,
    geod: Geod = GEOD,
) -> Optional[LatLon]:
    """Return the coordinate of the nearest vertex within ``max_snap_m``, or None.

    Builds a throwaway index; callers snapping repeatedly against one graph
    should keep a ``VertexIndex`` instead.
    """
    if len(graph) == 0:
        return None
    hit = VertexIndex(graph, geod).nearest(LatLon(*query), max_snap_m)
    if hit is None:
        logger.debug("snap: no vertex within %.1fm of %s", max_snap_m, tuple(query))
        return None
    return graph.point(hit[0])
