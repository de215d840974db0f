"""Road geometry ingest.

Turns a GeoJSON FeatureCollection of road lines into plain polylines of
``(lat, lon)`` points. Only ``LineString`` and ``MultiLineString`` geometries are
routable; anything else is ignored.

Assumptions / Simplifications:
* Input CRS is WGS84 lon/lat, GeoJSON position order ``[lon, lat, (alt)]``.
* A bad position (wrong arity, non-numeric, out of range) breaks its line in
  two. We never invent a segment across it.
* Structural damage (no feature list, coordinates that are not arrays) makes the
  whole document unusable and raises ``RoadDataError``.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterator, List, NamedTuple, Optional, Tuple

logger = logging.getLogger("roads.ingest")

LINE_TYPES = {"LineString", "MultiLineString"}


class RoadDataError(Exception):
    pass


class LatLon(NamedTuple):
    lat: float
    lon: float


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def _parse_position(pos: Any) -> Optional[LatLon]:
    """GeoJSON [lon, lat, ...] -> LatLon, or None if unusable."""
    if not isinstance(pos, (list, tuple)) or len(pos) < 2:
        return None
    lon, lat = pos[0], pos[1]
    if not (_is_number(lon) and _is_number(lat)):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    return LatLon(float(lat), float(lon))


def _features(document: Any) -> List[dict]:
    if not isinstance(document, dict):
        raise RoadDataError(f"roads document must be an object, got {type(document).__name__}")
    feats = document.get("features")
    if not isinstance(feats, list):
        raise RoadDataError("roads document has no 'features' array")
    return feats


def _line_coordinates(feat: Any, feat_idx: int) -> List[list]:
    """Raw coordinate lists of a line feature ([] for non-line features)."""
    if not isinstance(feat, dict):
        return []
    geom = feat.get("geometry")
    if not isinstance(geom, dict):
        return []
    geom_type = geom.get("type")
    if geom_type not in LINE_TYPES:
        return []
    coords = geom.get("coordinates")
    if not isinstance(coords, list):
        raise RoadDataError(f"feature {feat_idx}: {geom_type} coordinates must be an array")
    if geom_type == "LineString":
        return [coords]
    for part_idx, part in enumerate(coords):
        if not isinstance(part, list):
            raise RoadDataError(f"feature {feat_idx}: MultiLineString part {part_idx} must be an array")
    return coords


def validate_roads_document(document: Any) -> int:
    """Raise ``RoadDataError`` if the document cannot be routed on; return feature count."""
    feats = _features(document)
    for feat_idx, feat in enumerate(feats):
        _line_coordinates(feat, feat_idx)
    return len(feats)


def iter_polylines(document: Any) -> Iterator[List[LatLon]]:
    """Yield every usable polyline (>= 2 valid points) in document order."""
    skipped = 0
    for feat_idx, feat in enumerate(_features(document)):
        for line in _line_coordinates(feat, feat_idx):
            run: List[LatLon] = []
            for pos in line:
                pt = _parse_position(pos)
                if pt is None:
                    skipped += 1
                    if len(run) >= 2:
                        yield run
                    run = []
                    continue
                run.append(pt)
            if len(run) >= 2:
                yield run
    if skipped:
        logger.debug("ingest: skipped %d malformed positions", skipped)


def iter_segments(document: Any) -> Iterator[Tuple[LatLon, LatLon]]:
    """Yield consecutive (a, b) point pairs of every polyline."""
    for line in iter_polylines(document):
        for a, b in zip(line[:-1], line[1:]):
            yield a, b
