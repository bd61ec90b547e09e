from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Tuple

import aiohttp

from app.config import Settings, get_settings
from app.models import (
    Category,
    Coordinates,
    FailureKind,
    SearchFailure,
    SearchOutcome,
    SearchRequest,
    SearchSuccess,
)
from app.services.overpass import build_query, extract_place_names, query_timeout

logger = logging.getLogger(__name__)

MISSING_LOCATION_MESSAGE = "Location required for real data search."
NO_ELEMENTS_MESSAGE = "No places found nearby! Try a different category?"
NO_NAMES_MESSAGE = "Found places but they have no names. Spooky."


def first_request(
    coordinates: Coordinates, category: Optional[Category], settings: Settings
) -> SearchRequest:
    return SearchRequest(
        coordinates=coordinates,
        category=category,
        radius_m=settings.radius_tiers_m[0],
        endpoint_index=0,
    )


def next_request(request: SearchRequest, settings: Settings) -> Optional[SearchRequest]:
    """Where to go after a transient error, or None once the ladder is exhausted.

    Same radius on the next endpoint first, then the next smaller radius tier
    back on the primary endpoint.
    """
    if request.endpoint_index + 1 < len(settings.overpass_endpoints):
        return request.model_copy(update={"endpoint_index": request.endpoint_index + 1})

    smaller = [r for r in settings.radius_tiers_m if r < request.radius_m]
    if smaller:
        return request.model_copy(update={"radius_m": smaller[0], "endpoint_index": 0})
    return None


def fallback_ladder(
    coordinates: Coordinates, category: Optional[Category], settings: Settings
) -> List[SearchRequest]:
    """Every attempt the finder would make if each one hit a transient error."""
    ladder: list[SearchRequest] = []
    request: Optional[SearchRequest] = first_request(coordinates, category, settings)
    while request is not None:
        ladder.append(request)
        request = next_request(request, settings)
    return ladder


class RestaurantFinder:
    """Looks up named eateries around a point through the Overpass API.

    The finder holds no per-search state; each call builds its own request
    values, so one instance can serve several searches.
    """

    def __init__(self, session: aiohttp.ClientSession, settings: Optional[Settings] = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    @property
    def max_attempts(self) -> int:
        return len(self.settings.overpass_endpoints) * len(self.settings.radius_tiers_m)

    def endpoint_url(self, request: SearchRequest) -> str:
        return str(self.settings.overpass_endpoints[request.endpoint_index])

    async def _post(self, request: SearchRequest) -> Tuple[int, Any]:
        """Issue one attempt. Returns (status, decoded JSON or None when not 2xx)."""
        settings = self.settings
        query = build_query(
            request.coordinates,
            request.category,
            request.radius_m,
            timeout_s=query_timeout(request.radius_m, settings.query_timeouts_s),
            limit=settings.result_limit,
        )
        headers = {"User-Agent": settings.user_agent}
        timeout = aiohttp.ClientTimeout(total=settings.http_timeout_s)

        async with self.session.post(
            self.endpoint_url(request), data={"data": query}, headers=headers, timeout=timeout
        ) as resp:
            if not 200 <= resp.status < 300:
                return resp.status, None
            # Mirrors sometimes answer with a text/plain content type.
            return resp.status, await resp.json(content_type=None)

    async def find_restaurants(
        self, coordinates: Optional[Coordinates], category: Optional[Category] = None
    ) -> SearchOutcome:
        if coordinates is None:
            return SearchFailure(kind=FailureKind.MISSING_LOCATION, message=MISSING_LOCATION_MESSAGE)

        settings = self.settings
        attempts: list[SearchRequest] = []
        request: Optional[SearchRequest] = first_request(coordinates, category, settings)
        last_failure: Optional[SearchFailure] = None

        while request is not None and len(attempts) < self.max_attempts:
            attempts.append(request)
            url = self.endpoint_url(request)

            try:
                status, payload = await self._post(request)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.error("Fetch failed at %s (radius %sm): %r", url, request.radius_m, e)
                return SearchFailure(
                    kind=FailureKind.NON_TRANSIENT_SERVICE_ERROR,
                    message=f"Overpass request failed: {e.__class__.__name__} from {url}",
                    attempts=tuple(attempts),
                )

            if status in settings.transient_statuses:
                logger.warning(
                    "Overpass error %s at radius %sm on server %s. Retrying...",
                    status,
                    request.radius_m,
                    request.endpoint_index,
                )
                last_failure = SearchFailure(
                    kind=FailureKind.TRANSIENT_SERVICE_ERROR,
                    message=f"Overpass API Error: {status} from {url}",
                    status=status,
                )
                request = next_request(request, settings)
                continue

            if payload is None:
                logger.error("Overpass error %s from %s", status, url)
                return SearchFailure(
                    kind=FailureKind.NON_TRANSIENT_SERVICE_ERROR,
                    message=f"Overpass API Error: {status} from {url}",
                    status=status,
                    attempts=tuple(attempts),
                )

            return self._outcome(payload, request, url, tuple(attempts))

        assert last_failure is not None
        logger.error("Giving up after %d attempts: %s", len(attempts), last_failure.message)
        return last_failure.model_copy(update={"attempts": tuple(attempts)})

    def _outcome(
        self,
        payload: Any,
        request: SearchRequest,
        url: str,
        attempts: Tuple[SearchRequest, ...],
    ) -> SearchOutcome:
        if not isinstance(payload, dict):
            return SearchFailure(
                kind=FailureKind.NON_TRANSIENT_SERVICE_ERROR,
                message=f"Unexpected Overpass response from {url}",
                attempts=attempts,
            )

        elements = payload.get("elements")
        if not isinstance(elements, list) or not elements:
            logger.info("No elements at radius %sm from %s", request.radius_m, url)
            return SearchFailure(kind=FailureKind.NO_RESULTS, message=NO_ELEMENTS_MESSAGE, attempts=attempts)

        names = extract_place_names(elements)
        if not names:
            logger.info("%d elements but none named, from %s", len(elements), url)
            return SearchFailure(kind=FailureKind.NO_RESULTS, message=NO_NAMES_MESSAGE, attempts=attempts)

        logger.info("Found %d places at radius %sm from %s", len(names), request.radius_m, url)
        return SearchSuccess(names=names, endpoint=url, radius_m=request.radius_m, attempts=attempts)
