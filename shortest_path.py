"""Exact point-to-point shortest paths on the road graph.

Lazy-deletion Dijkstra: a vertex may sit in the heap several times, stale
entries are dropped when popped because the vertex is already settled. The
search stops as soon as the target is settled.

Heap entries are ``(distance, seq, key)``; ``seq`` increases with every push,
so among equal distances the entry pushed first is popped first. This makes
the choice between equal-length alternatives reproducible.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import math
from typing import Dict, List, Optional, Set, Tuple

from road_graph import RoadGraph
from road_ingest import LatLon

logger = logging.getLogger("roads.dijkstra")


def dijkstra(graph: RoadGraph, start_key: str, end_key: str) -> Optional[Tuple[List[str], float]]:
    """Return (vertex keys start..end, total weight) or None when unreachable."""
    if start_key not in graph or end_key not in graph:
        logger.debug("dijkstra: start or end vertex not in graph (%s, %s)", start_key, end_key)
        return None

    dist: Dict[str, float] = {start_key: 0.0}
    prev: Dict[str, str] = {}
    visited: Set[str] = set()
    seq = itertools.count()
    heap = [(0.0, next(seq), start_key)]

    while heap:
        d, _, u = heapq.heappop(heap)
        if u in visited:
            continue
        visited.add(u)
        if u == end_key:
            path = [u]
            while path[-1] != start_key:
                path.append(prev[path[-1]])
            path.reverse()
            return path, d
        for v, w in graph.neighbors(u).items():
            if v in visited:
                continue
            nd = d + w
            if nd < dist.get(v, math.inf):
                dist[v] = nd
                prev[v] = u
                heapq.heappush(heap, (nd, next(seq), v))

    logger.debug("dijkstra: %s unreachable from %s (settled %d)", end_key, start_key, len(visited))
    return None


def shortest_path(graph: RoadGraph, start_key: str, end_key: str) -> Optional[List[LatLon]]:
    """Shortest path as coordinates from start to end inclusive, or None."""
    found = dijkstra(graph, start_key, end_key)
    if found is None:
        return None
    keys, _ = found
    return [graph.point(k) for k in keys]
