"""Nominatim geocoder adapter — implements GeocoderPort."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.application.ports.geocoder_port import GeocoderPort
from app.config import settings
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

SEARCH_LIMIT = 5
MIN_TRUSTED_RESULTS = 3
MIN_TRUSTED_IMPORTANCE = 0.6


def is_trusted(results: list[dict[str, Any]]) -> bool:
    """Enough hits, or one clearly confident hit."""
    if len(results) >= MIN_TRUSTED_RESULTS:
        return True
    return bool(results) and float(results[0].get("importance") or 0) > MIN_TRUSTED_IMPORTANCE


class NominatimAdapter(GeocoderPort):
    """OpenStreetMap Nominatim. Weak matches are reported as absence so a
    more precise provider can take over."""

    def __init__(
        self,
        user_agent: str | None = None,
        timeout: float = 4.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._user_agent = user_agent or settings.geocoder_user_agent
        self._timeout = timeout
        self._client = client

    async def geocode(self, address: str) -> GeoPoint | None:
        results = await self._get(
            NOMINATIM_SEARCH_URL,
            {"q": address, "format": "json", "limit": SEARCH_LIMIT},
        )
        if not isinstance(results, list) or not results:
            logger.info("Nominatim returned no results for '%s'", address)
            return None
        if not is_trusted(results):
            logger.info(
                "Nominatim result for '%s' not trusted (%d hits, importance=%s)",
                address, len(results), results[0].get("importance"),
            )
            return None

        try:
            point = GeoPoint(latitude=float(results[0]["lat"]), longitude=float(results[0]["lon"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Nominatim returned a malformed result for '%s'", address)
            return None
        logger.info("Nominatim resolved '%s' → (%f, %f)", address, point.latitude, point.longitude)
        return point

    async def reverse_geocode(self, point: GeoPoint) -> str | None:
        data = await self._get(
            NOMINATIM_REVERSE_URL,
            {"lat": point.latitude, "lon": point.longitude, "format": "json"},
        )
        if isinstance(data, dict) and data.get("display_name"):
            return data["display_name"]
        return None

    async def _get(self, url: str, params: dict[str, Any]) -> Any:
        try:
            if self._client is not None:
                response = await self._request(self._client, url, params)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._request(client, url, params)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError, KeyError):
            logger.exception("Nominatim API error (%s)", url)
            return None

    async def _request(self, client: httpx.AsyncClient, url: str, params: dict[str, Any]) -> httpx.Response:
        return await client.get(
            url,
            params=params,
            headers={"User-Agent": self._user_agent},
            timeout=self._timeout,
        )
