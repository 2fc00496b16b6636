"""Port interface for geocoding addresses and coordinates."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.domain.value_objects.geo_point import GeoPoint


@dataclass(frozen=True)
class AddressSuggestion:
    display_name: str
    location: GeoPoint


class GeocoderPort(ABC):
    @abstractmethod
    async def geocode(self, address: str) -> GeoPoint | None:
        """Convert address string to lat/lon coordinates.

        Returns None if the address cannot be resolved.
        """
        ...

    @abstractmethod
    async def reverse_geocode(self, point: GeoPoint) -> str | None:
        """Convert coordinates to a street address, or None."""
        ...

    async def suggest(self, query: str, city: str | None = None, limit: int = 5) -> list[AddressSuggestion]:
        """Address autocomplete. Providers without one return nothing."""
        return []
