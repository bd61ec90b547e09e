from __future__ import annotations

import logging
from typing import List, Optional

import aiohttp
from fastapi import FastAPI, HTTPException, Query

from app.config import get_settings
from app.models import Category, Coordinates, FailureKind, SearchFailure, SearchSuccess, SpinResult
from app.services.finder import RestaurantFinder
from app.services.location import (
    GeolocationCapability,
    LocationError,
    NominatimCapability,
    ReportedPositionCapability,
    get_current_location,
)
from app.services.overpass import list_categories
from app.services.winner import map_search_url, pick_winner

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Picks a random nearby place to eat using OpenStreetMap data.",
)

STATUS_BY_KIND = {
    FailureKind.MISSING_LOCATION: 400,
    FailureKind.PERMISSION_DENIED: 403,
    FailureKind.NO_RESULTS: 404,
    FailureKind.UNSUPPORTED_CAPABILITY: 501,
    FailureKind.NON_TRANSIENT_SERVICE_ERROR: 502,
    FailureKind.TRANSIENT_SERVICE_ERROR: 503,
    FailureKind.LOCATION_UNAVAILABLE: 503,
}


def _error(kind: FailureKind, message: str) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_KIND[kind], detail={"kind": kind.value, "message": message})


def _parse_category(category: Optional[str]) -> Optional[Category]:
    try:
        return Category.parse(category)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _capability(
    session: aiohttp.ClientSession,
    lat: Optional[float],
    lon: Optional[float],
    near: Optional[str],
    geo_error: Optional[int],
    geo_supported: bool,
) -> Optional[GeolocationCapability]:
    if not geo_supported:
        return None
    if geo_error is not None:
        return ReportedPositionCapability(error_code=geo_error)
    if lat is not None and lon is not None:
        return ReportedPositionCapability(Coordinates(latitude=lat, longitude=lon))
    if near:
        return NominatimCapability(session, near, settings)
    return None


async def _search(
    lat: Optional[float],
    lon: Optional[float],
    near: Optional[str],
    geo_error: Optional[int],
    geo_supported: bool,
    category: Optional[Category],
) -> SearchSuccess:
    async with aiohttp.ClientSession() as session:
        capability = _capability(session, lat, lon, near, geo_error, geo_supported)

        coordinates: Optional[Coordinates] = None
        # Nothing to locate with: let the finder report the missing location.
        if capability is not None or not geo_supported:
            try:
                coordinates = await get_current_location(capability)
            except LocationError as e:
                raise _error(e.kind, e.message)

        outcome = await RestaurantFinder(session, settings).find_restaurants(coordinates, category)

    if isinstance(outcome, SearchFailure):
        raise _error(outcome.kind, outcome.message)
    return outcome


@app.get("/", tags=["Root"])
async def root():
    return {"ok": True, "service": settings.app_name, "version": settings.version}


@app.get("/health", tags=["Healthcheck"])
async def health():
    return {"ok": True}


@app.get("/api/categories", tags=["Api Categories"])
async def api_categories():
    return {"categories": list_categories()}


@app.get("/api/restaurants", response_model=List[str], tags=["Api Restaurants"])
async def api_restaurants(
    lat: Optional[float] = Query(None, ge=-90.0, le=90.0),
    lon: Optional[float] = Query(None, ge=-180.0, le=180.0),
    near: Optional[str] = Query(None, min_length=2, description="Free-text place, used when lat/lon are absent"),
    geo_error: Optional[int] = Query(None, ge=1, description="Client geolocation error code"),
    geo_supported: bool = Query(True, description="False when the client has no geolocation"),
    category: Optional[str] = Query(None, description="One of /api/categories; omit for any"),
):
    outcome = await _search(lat, lon, near, geo_error, geo_supported, _parse_category(category))
    return outcome.names


@app.get("/api/spin", response_model=SpinResult, tags=["Api Spin"])
async def api_spin(
    lat: Optional[float] = Query(None, ge=-90.0, le=90.0),
    lon: Optional[float] = Query(None, ge=-180.0, le=180.0),
    near: Optional[str] = Query(None, min_length=2, description="Free-text place, used when lat/lon are absent"),
    geo_error: Optional[int] = Query(None, ge=1, description="Client geolocation error code"),
    geo_supported: bool = Query(True, description="False when the client has no geolocation"),
    category: Optional[str] = Query(None, description="One of /api/categories; omit for any"),
):
    parsed = _parse_category(category)
    outcome = await _search(lat, lon, near, geo_error, geo_supported, parsed)
    winner = pick_winner(outcome.names)
    logger.info("Winner: %s (out of %d)", winner, len(outcome.names))
    return SpinResult(
        winner=winner,
        map_url=map_search_url(winner, settings.map_search_base_url),
        candidates=outcome.names,
        category=parsed,
    )
