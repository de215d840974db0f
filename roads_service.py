"""Roads GeoJSON source.

Loads the road lines document from an HTTP(S) URL or a local file. Blocking
I/O runs in a worker thread so the caller's event loop stays responsive.
Errors are not caught here; ``RouteSession.fetch_roads`` turns them into the
``error`` roads status.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import requests

logger = logging.getLogger("roads.service")


class RoadsService:
    def __init__(self, source: str, timeout_s: float = 30.0):
        self.source = source
        self.timeout_s = timeout_s

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))

    def _get_http(self) -> Any:
        response = requests.get(self.source, timeout=self.timeout_s)
        response.raise_for_status()
        return response.json()

    def _get_file(self) -> Any:
        with open(self.source, "r", encoding="utf-8") as f:
            return json.load(f)

    async def get_roads(self) -> Any:
        logger.info("fetching roads from %s", self.source)
        loader = self._get_http if self.is_remote else self._get_file
        return await asyncio.to_thread(loader)
