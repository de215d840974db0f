"""Route session state: road data, two snapped endpoints and the path between them.

One ``RouteSession`` owns everything derived from one roads document: the
graph (built on first need, cached until new data arrives), its vertex index,
the start/end slots and the current path. Operations are synchronous except
``fetch_roads``, whose latency is the roads source's I/O.

The session is not thread-safe. A host that calls it from several threads
must hold one lock around each public operation; ``main.py`` avoids that by
calling it only from the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Literal, Optional

from config import RouterSettings
from road_graph import RoadGraph, build_graph, vertex_key
from road_ingest import LatLon, validate_roads_document
from shortest_path import dijkstra
from snapping import VertexIndex

logger = logging.getLogger("roads.session")

RoadsStatus = Literal["idle", "pending", "success", "error"]
RoadsSource = Callable[[], Awaitable[Any]]


class RouteSession:
    def __init__(self, get_roads: RoadsSource, settings: Optional[RouterSettings] = None):
        self.settings = settings or RouterSettings()
        self._get_roads = get_roads
        self._geod = self.settings.geod()

        self._roads_status: RoadsStatus = "idle"
        self._roads_data: Optional[dict] = None
        self._graph: Optional[RoadGraph] = None
        self._index: Optional[VertexIndex] = None

        self._start: Optional[LatLon] = None
        self._end: Optional[LatLon] = None
        self._path: Optional[List[LatLon]] = None
        self._distance_m: Optional[float] = None
        self._loading_path = False
        # bumped by every recomputation and every clear; results carrying an
        # older stamp are discarded
        self._path_seq = 0

    # ----------------------------- outputs -----------------------------

    @property
    def roads_status(self) -> RoadsStatus:
        return self._roads_status

    @property
    def roads_data(self) -> Optional[dict]:
        return self._roads_data

    @property
    def start_point(self) -> Optional[LatLon]:
        return self._start

    @property
    def end_point(self) -> Optional[LatLon]:
        return self._end

    @property
    def route_path(self) -> Optional[List[LatLon]]:
        return list(self._path) if self._path is not None else None

    @property
    def route_distance_m(self) -> Optional[float]:
        return self._distance_m

    @property
    def is_loading_path(self) -> bool:
        return self._loading_path

    @property
    def has_start_and_end_points(self) -> bool:
        return self._start is not None and self._end is not None

    @property
    def graph(self) -> Optional[RoadGraph]:
        """Road graph for the current data, built on first access and cached."""
        if self._roads_data is None:
            return None
        if self._graph is None:
            self._graph = build_graph(self._roads_data, self.settings.coord_precision, self._geod)
        return self._graph

    def snapshot(self) -> dict:
        path = self.route_path
        return {
            "roads_status": self._roads_status,
            "start": self._start._asdict() if self._start else None,
            "end": self._end._asdict() if self._end else None,
            "path": [p._asdict() for p in path] if path is not None else None,
            "distance_m": self._distance_m,
            "is_loading_path": self._loading_path,
        }

    # ---------------------------- road data ----------------------------

    async def fetch_roads(self) -> None:
        """Fetch road data once. No-op while a fetch is pending or data is loaded."""
        if self._roads_status == "pending" or self._roads_data is not None:
            return
        self._roads_status = "pending"
        try:
            document = await self._get_roads()
            n_features = validate_roads_document(document)
        except asyncio.CancelledError:
            self._roads_status = "idle"
            raise
        except Exception as e:
            logger.error("failed to fetch roads data: %s", e)
            self._roads_status = "error"
            self._roads_data = None
            self._invalidate_graph()
            self._set_path(None, None, self._next_seq())
            return
        self._roads_data = document
        self._roads_status = "success"
        self._invalidate_graph()
        logger.info("roads data loaded: features=%d", n_features)

    def _invalidate_graph(self) -> None:
        self._graph = None
        self._index = None

    def _vertex_index(self) -> Optional[VertexIndex]:
        graph = self.graph
        if graph is None:
            return None
        if self._index is None or self._index.graph is not graph:
            self._index = VertexIndex(graph, self._geod)
        return self._index

    def _snap(self, raw: LatLon) -> Optional[LatLon]:
        index = self._vertex_index()
        if index is None:
            return None
        hit = index.nearest(LatLon(*raw), self.settings.max_snap_m)
        if hit is None:
            return None
        return index.graph.point(hit[0])

    # ----------------------------- endpoints ---------------------------

    def set_start_point(self, raw: LatLon) -> bool:
        """Snap ``raw`` and make it the start. False (slot unchanged) if it cannot snap."""
        if self._roads_data is None:
            logger.warning("start point ignored: no roads data loaded")
            return False
        snapped = self._snap(raw)
        if snapped is None:
            logger.warning("start point could not be snapped to road: %s", tuple(raw))
            return False
        self._start = snapped
        self._update_path()
        return True

    def set_end_point(self, raw: LatLon) -> bool:
        """Snap ``raw`` and make it the end. False (slot unchanged) if it cannot snap."""
        if self._roads_data is None:
            logger.warning("end point ignored: no roads data loaded")
            return False
        snapped = self._snap(raw)
        if snapped is None:
            logger.warning("end point could not be snapped to road: %s", tuple(raw))
            return False
        self._end = snapped
        self._update_path()
        return True

    def update_start_point_after_drag(self, raw: LatLon) -> Optional[LatLon]:
        """Re-snap a dragged start marker; returns where the marker should sit."""
        if self._roads_data is None:
            return None
        snapped = self._snap(raw)
        if snapped is None:
            logger.debug("dragged start point kept at %s", self._start)
            return self._start
        self._start = snapped
        self._update_path()
        return snapped

    def update_end_point_after_drag(self, raw: LatLon) -> Optional[LatLon]:
        """Re-snap a dragged end marker; returns where the marker should sit."""
        if self._roads_data is None:
            return None
        snapped = self._snap(raw)
        if snapped is None:
            logger.debug("dragged end point kept at %s", self._end)
            return self._end
        self._end = snapped
        self._update_path()
        return snapped

    def clear_points_and_route(self) -> None:
        self._start = None
        self._end = None
        self._set_path(None, None, self._next_seq())

    # ------------------------------- path ------------------------------

    def _next_seq(self) -> int:
        self._path_seq += 1
        return self._path_seq

    def _set_path(self, path: Optional[List[LatLon]], distance_m: Optional[float], seq: int) -> bool:
        if seq != self._path_seq:
            logger.debug("discarding stale path result seq=%d latest=%d", seq, self._path_seq)
            return False
        self._path = path
        self._distance_m = distance_m
        return True

    def _update_path(self) -> None:
        seq = self._next_seq()
        if not self.has_start_and_end_points or self._roads_data is None:
            self._set_path(None, None, seq)
            return
        self._loading_path = True
        self._path = None
        self._distance_m = None
        try:
            graph = self.graph
            p = self.settings.coord_precision
            found = dijkstra(graph, vertex_key(self._start, p), vertex_key(self._end, p))
            if found is None:
                logger.warning("path not found between selected points")
                self._set_path(None, None, seq)
            else:
                keys, total = found
                self._set_path([graph.point(k) for k in keys], total, seq)
        finally:
            self._loading_path = False
