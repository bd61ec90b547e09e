from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

import aiohttp

from app.config import Settings, get_settings
from app.models import Coordinates, FailureKind

logger = logging.getLogger(__name__)

# Browser GeolocationPositionError codes.
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3

UNSUPPORTED_MESSAGE = "Geolocation is not supported by your browser."
PERMISSION_DENIED_MESSAGE = "Location access denied. Please enable permission."
UNAVAILABLE_MESSAGE = "Unable to retrieve your location."


class PlatformGeolocationError(Exception):
    """Raised by a capability, carrying the platform's error code."""

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message or f"geolocation error {code}")
        self.code = code


class LocationError(ValueError):
    def __init__(self, kind: FailureKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class GeolocationCapability(Protocol):
    async def get_current_position(self) -> Coordinates: ...


class ReportedPositionCapability:
    """What the client's own geolocation reported: a position or an error code."""

    def __init__(
        self,
        coordinates: Optional[Coordinates] = None,
        error_code: Optional[int] = None,
    ) -> None:
        self.coordinates = coordinates
        self.error_code = error_code

    async def get_current_position(self) -> Coordinates:
        if self.error_code is not None:
            raise PlatformGeolocationError(self.error_code)
        if self.coordinates is None:
            raise PlatformGeolocationError(POSITION_UNAVAILABLE, "no position reported")
        return self.coordinates


class NominatimCapability:
    """Resolves a free-text place to coordinates with Nominatim."""

    def __init__(self, session: aiohttp.ClientSession, query: str, settings: Optional[Settings] = None) -> None:
        self.session = session
        self.query = query
        self.settings = settings or get_settings()

    async def get_current_position(self) -> Coordinates:
        settings = self.settings
        params = {"q": self.query, "format": "jsonv2", "limit": 1}
        headers = {"User-Agent": settings.user_agent}
        timeout = aiohttp.ClientTimeout(total=settings.http_timeout_s)

        try:
            async with self.session.get(
                str(settings.nominatim_base_url), params=params, headers=headers, timeout=timeout
            ) as resp:
                if resp.status in (401, 403):
                    raise PlatformGeolocationError(PERMISSION_DENIED, f"Nominatim refused: {resp.status}")
                resp.raise_for_status()
                data = await resp.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise PlatformGeolocationError(TIMEOUT, "Nominatim timed out") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise PlatformGeolocationError(POSITION_UNAVAILABLE, str(e)) from e

        if not data:
            raise PlatformGeolocationError(POSITION_UNAVAILABLE, "Location not found")

        item = data[0]
        try:
            return Coordinates(latitude=float(item["lat"]), longitude=float(item["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise PlatformGeolocationError(POSITION_UNAVAILABLE, "Unreadable Nominatim result") from e


async def get_current_location(capability: Optional[GeolocationCapability]) -> Coordinates:
    """Single location request, classified on failure. Never retried here."""
    if capability is None:
        raise LocationError(FailureKind.UNSUPPORTED_CAPABILITY, UNSUPPORTED_MESSAGE)

    try:
        return await capability.get_current_position()
    except PlatformGeolocationError as e:
        logger.warning("Geo error (code %s): %s", e.code, e)
        if e.code == PERMISSION_DENIED:
            raise LocationError(FailureKind.PERMISSION_DENIED, PERMISSION_DENIED_MESSAGE) from e
        raise LocationError(FailureKind.LOCATION_UNAVAILABLE, UNAVAILABLE_MESSAGE) from e
