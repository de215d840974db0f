"""Tests for the roads GeoJSON source (file and HTTP)."""

import asyncio
import json

import pytest
import requests

import roads_service
from roads_service import RoadsService
from route_session import RouteSession

ROADS = {
    "type": "FeatureCollection",
    "features": [
        {"type": "Feature", "properties": {}, "geometry": {"type": "LineString", "coordinates": [[4.0, 52.0], [4.001, 52.0]]}}
    ],
}


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload, self.status_code = payload, status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self.payload


def test_reads_local_file(tmp_path):
    path = tmp_path / "roads.geojson"
    path.write_text(json.dumps(ROADS), encoding="utf-8")
    service = RoadsService(str(path))
    assert not service.is_remote
    assert asyncio.run(service.get_roads()) == ROADS


def test_missing_file_raises(tmp_path):
    service = RoadsService(str(tmp_path / "missing.geojson"))
    with pytest.raises(FileNotFoundError):
        asyncio.run(service.get_roads())


def test_fetches_over_http(monkeypatch):
    seen = {}

    def fake_get(url, timeout):
        seen.update(url=url, timeout=timeout)
        return FakeResponse(ROADS)

    monkeypatch.setattr(roads_service.requests, "get", fake_get)
    service = RoadsService("https://tiles.example.org/roads.geojson", timeout_s=5.0)
    assert service.is_remote
    assert asyncio.run(service.get_roads()) == ROADS
    assert seen == {"url": "https://tiles.example.org/roads.geojson", "timeout": 5.0}


def test_http_error_becomes_session_error(monkeypatch):
    monkeypatch.setattr(roads_service.requests, "get", lambda url, timeout: FakeResponse(None, status=503))
    session = RouteSession(RoadsService("http://localhost:9/roads.geojson").get_roads)
    asyncio.run(session.fetch_roads())
    assert session.roads_status == "error"
    assert session.roads_data is None


def test_invalid_json_file_becomes_session_error(tmp_path):
    path = tmp_path / "roads.geojson"
    path.write_text("{not json", encoding="utf-8")
    session = RouteSession(RoadsService(str(path)).get_roads)
    asyncio.run(session.fetch_roads())
    assert session.roads_status == "error"
