"""ChainedGeocoder — tries providers in order, then the centroid tables."""

from __future__ import annotations

import logging

from app.adapters.geocoder.centroids import centroid_lookup
from app.application.ports.geocoder_port import AddressSuggestion, GeocoderPort
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)


class ChainedGeocoder(GeocoderPort):
    """First provider with an answer wins. Results are cached per normalised address."""

    def __init__(self, providers: list[GeocoderPort], use_centroids: bool = True):
        self._providers = providers
        self._use_centroids = use_centroids
        self._cache: dict[str, GeoPoint | None] = {}

    async def geocode(self, address: str) -> GeoPoint | None:
        cache_key = " ".join(address.lower().split())
        if not cache_key:
            return None
        if cache_key in self._cache:
            logger.debug("Cache hit for '%s'", address)
            return self._cache[cache_key]

        point = None
        for provider in self._providers:
            point = await provider.geocode(address)
            if point is not None:
                break

        if point is None and self._use_centroids:
            point = centroid_lookup(address)
        if point is None:
            logger.warning("No geocoding result for '%s'", address)

        self._cache[cache_key] = point
        return point

    async def reverse_geocode(self, point: GeoPoint) -> str | None:
        for provider in self._providers:
            address = await provider.reverse_geocode(point)
            if address:
                return address
        return None

    async def suggest(self, query: str, city: str | None = None, limit: int = 5) -> list[AddressSuggestion]:
        for provider in self._providers:
            suggestions = await provider.suggest(query, city, limit)
            if suggestions:
                return suggestions
        return []
