from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Union

import aiohttp
import pytest

from app.config import Settings
from app.models import Coordinates

PRIMARY = "https://overpass.test/primary"
MIRROR = "https://overpass.test/mirror"


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, raises: Optional[BaseException] = None) -> None:
        self.status = status
        self.payload = payload
        self.raises = raises

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        if isinstance(self.payload, BaseException):
            raise self.payload
        return self.payload

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientResponseError(None, (), status=self.status)

    async def __aenter__(self) -> "FakeResponse":
        if self.raises is not None:
            raise self.raises
        return self

    async def __aexit__(self, *exc: object) -> bool:
        return False


Script = Union[FakeResponse, List[FakeResponse], Callable[[str, str], FakeResponse]]


class FakeSession:
    """Stands in for aiohttp.ClientSession. Scripts responses per URL.

    A list is consumed one response per call; the last entry repeats.
    """

    def __init__(self, script: Dict[str, Script]) -> None:
        self.script = script
        self.calls: list[dict[str, Any]] = []

    def _next(self, url: str, body: str) -> FakeResponse:
        entry = self.script[url]
        if callable(entry):
            return entry(url, body)
        if isinstance(entry, list):
            return entry.pop(0) if len(entry) > 1 else entry[0]
        return entry

    def post(self, url: str, *, data: Dict[str, str], headers: Any = None, timeout: Any = None) -> FakeResponse:
        self.calls.append({"method": "POST", "url": url, "query": data["data"], "headers": headers})
        return self._next(url, data["data"])

    def get(self, url: str, *, params: Any = None, headers: Any = None, timeout: Any = None) -> FakeResponse:
        self.calls.append({"method": "GET", "url": url, "params": params, "headers": headers})
        return self._next(url, "")


def elements(*names: Optional[str]) -> Dict[str, Any]:
    out = []
    for i, name in enumerate(names):
        tags = {"amenity": "restaurant"}
        if name is not None:
            tags["name"] = name
        out.append({"type": "node", "id": i + 1, "tags": tags})
    return {"elements": out}


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, overpass_endpoints=[PRIMARY, MIRROR])


@pytest.fixture
def here() -> Coordinates:
    return Coordinates(latitude=52.52, longitude=13.405)
