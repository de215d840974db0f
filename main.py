# main.py
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
from pydantic import BaseModel
from typing import List, Optional, Literal

from config import RouterSettings
from road_ingest import LatLon
from roads_service import RoadsService
from route_session import RouteSession

settings = RouterSettings.from_env()


class Waypoint(BaseModel):
    lat: float
    lon: float

class RoadsState(BaseModel):
    roads_status: Literal["idle", "pending", "success", "error"]
    features: Optional[int] = None

class RouteState(BaseModel):
    roads_status: Literal["idle", "pending", "success", "error"]
    start: Optional[Waypoint] = None
    end: Optional[Waypoint] = None
    path: Optional[List[Waypoint]] = None
    distance_m: Optional[float] = None
    is_loading_path: bool = False

class DragResponse(BaseModel):
    point: Optional[Waypoint]
    state: RouteState


app = FastAPI()
# Allow any origin (dev / testing). Tighten in production if needed.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Basic logging config; respect LOG_LEVEL env var (default INFO)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("roads.api")

# All endpoints are async: session calls run on the event loop thread only,
# so the session never needs a lock. Only the roads fetch leaves the loop.
session = RouteSession(RoadsService(settings.roads_source, settings.fetch_timeout_s).get_roads, settings)


def _state() -> RouteState:
    return RouteState(**session.snapshot())

def _require_roads(what: str) -> None:
    if session.roads_data is None:
        raise HTTPException(409, f"{what}: no roads data loaded (status={session.roads_status})")

def _waypoint(p: Optional[LatLon]) -> Optional[Waypoint]:
    return Waypoint(lat=p.lat, lon=p.lon) if p is not None else None


@app.on_event("startup")
async def _startup():
    logger.info(
        "startup: roads=%s max_snap_m=%s precision=%s ellipsoid=%s",
        settings.roads_source, settings.max_snap_m, settings.coord_precision, settings.ellipsoid,
    )
    if os.getenv("ROADS_PREFETCH", "0") == "1":
        await session.fetch_roads()


@app.get("/roads", response_model=RoadsState)
async def roads_state():
    data = session.roads_data
    return RoadsState(roads_status=session.roads_status, features=len(data["features"]) if data else None)


@app.post("/roads/fetch", response_model=RoadsState)
async def fetch_roads():
    await session.fetch_roads()
    if session.roads_status == "error":
        raise HTTPException(502, "Failed to fetch roads data")
    return await roads_state()


@app.get("/route", response_model=RouteState)
async def get_route():
    return _state()


@app.post("/route/start", response_model=RouteState)
async def set_start(wp: Waypoint):
    _require_roads("start point")
    if not session.set_start_point(LatLon(wp.lat, wp.lon)):
        raise HTTPException(404, "Start point could not be snapped to road")
    logger.info("/route/start: start=%s path_points=%s", session.start_point, _path_len())
    return _state()


@app.post("/route/end", response_model=RouteState)
async def set_end(wp: Waypoint):
    _require_roads("end point")
    if not session.set_end_point(LatLon(wp.lat, wp.lon)):
        raise HTTPException(404, "End point could not be snapped to road")
    logger.info("/route/end: end=%s path_points=%s", session.end_point, _path_len())
    return _state()


@app.put("/route/start/drag", response_model=DragResponse)
async def drag_start(wp: Waypoint):
    _require_roads("start point drag")
    point = session.update_start_point_after_drag(LatLon(wp.lat, wp.lon))
    return DragResponse(point=_waypoint(point), state=_state())


@app.put("/route/end/drag", response_model=DragResponse)
async def drag_end(wp: Waypoint):
    _require_roads("end point drag")
    point = session.update_end_point_after_drag(LatLon(wp.lat, wp.lon))
    return DragResponse(point=_waypoint(point), state=_state())


@app.delete("/route", response_model=RouteState)
async def clear_route():
    session.clear_points_and_route()
    return _state()


def _path_len() -> Optional[int]:
    path = session.route_path
    return len(path) if path is not None else None
