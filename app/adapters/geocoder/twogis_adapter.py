"""2GIS geocoder adapter — implements GeocoderPort."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.application.ports.geocoder_port import AddressSuggestion, GeocoderPort
from app.config import settings
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)

TWOGIS_GEOCODE_URL = "https://catalog.api.2gis.com/3.0/items/geocode"
TWOGIS_SUGGEST_URL = "https://catalog.api.2gis.com/3.0/suggests"


def _point_of(item: dict[str, Any]) -> GeoPoint | None:
    point = item.get("point")
    if not isinstance(point, dict):
        return None
    return GeoPoint.from_optional(point.get("lat"), point.get("lon"))


class TwoGisAdapter(GeocoderPort):
    """2GIS catalog API. Good house-level coverage in Kazakhstan; needs a key."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key if api_key is not None else settings.twogis_api_key
        self._timeout = timeout
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def geocode(self, address: str) -> GeoPoint | None:
        items = await self._items(TWOGIS_GEOCODE_URL, {"q": address, "fields": "items.point"})
        point = _point_of(items[0]) if items else None
        if point:
            logger.info("2GIS resolved '%s' → (%f, %f)", address, point.latitude, point.longitude)
        else:
            logger.info("2GIS could not resolve '%s'", address)
        return point

    async def reverse_geocode(self, point: GeoPoint) -> str | None:
        items = await self._items(
            TWOGIS_GEOCODE_URL,
            {"lat": point.latitude, "lon": point.longitude, "fields": "items.full_name"},
        )
        if not items:
            return None
        return items[0].get("full_name") or items[0].get("name") or None

    async def suggest(self, query: str, city: str | None = None, limit: int = 5) -> list[AddressSuggestion]:
        items = await self._items(
            TWOGIS_SUGGEST_URL,
            {
                "q": f"{city} {query}" if city else query,
                "locale": "ru_KZ",
                "fields": "items.point,items.full_name",
            },
        )
        suggestions = []
        for item in items:
            point = _point_of(item)
            if point is None:
                continue
            suggestions.append(
                AddressSuggestion(
                    display_name=item.get("full_name") or item.get("name") or "",
                    location=point,
                )
            )
            if len(suggestions) >= limit:
                break
        return suggestions

    async def _items(self, url: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """``result.items`` of a catalog response; empty on any failure."""
        if not self.enabled:
            logger.debug("TWOGIS_API_KEY is not set. Skipping 2GIS lookup.")
            return []

        params = {**params, "key": self._api_key}
        try:
            if self._client is not None:
                response = await self._client.get(url, params=params, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError):
            logger.exception("2GIS API error (%s)", url)
            return []

        items = (data.get("result") or {}).get("items") if isinstance(data, dict) else None
        return [i for i in items if isinstance(i, dict)] if isinstance(items, list) else []
