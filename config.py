"""Runtime settings for the road router.

Defaults reproduce the reference behaviour: great-circle distances on a
6 371 000 m sphere, a 500 m exclusive snap radius and vertex identity on the
full float rendering of each coordinate. Every value can be overridden
from the environment (see ``RouterSettings.from_env``).
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field
from pyproj import Geod

# Mean earth radius (meters) used when ellipsoid == "sphere"
EARTH_R_M = 6371000.0


class RouterSettings(BaseModel):
    max_snap_m: float = Field(500.0, gt=0, description="Exclusive snap radius in meters")
    coord_precision: Optional[int] = Field(
        None, ge=0, le=15, description="Decimals in the canonical vertex key; None = full float repr"
    )
    ellipsoid: str = Field("sphere", description="'sphere' (R = 6 371 000 m) or a pyproj ellipsoid name")
    roads_source: str = Field("./roads.geojson", description="URL or path of the roads GeoJSON")
    fetch_timeout_s: float = Field(30.0, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RouterSettings":
        env = {
            "max_snap_m": os.getenv("ROADS_MAX_SNAP_M"),
            "coord_precision": os.getenv("ROADS_COORD_PRECISION"),
            "ellipsoid": os.getenv("ROADS_ELLIPSOID"),
            "roads_source": os.getenv("ROADS_SOURCE"),
            "fetch_timeout_s": os.getenv("ROADS_FETCH_TIMEOUT_S"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        return cls(**{k: v for k, v in env.items() if v not in (None, "")})

    def geod(self) -> Geod:
        if self.ellipsoid.lower() == "sphere":
            return Geod(a=EARTH_R_M, b=EARTH_R_M)
        return Geod(ellps=self.ellipsoid)
