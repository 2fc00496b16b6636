"""GeoPoint value object — immutable (lat, lon) pair."""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    @classmethod
    def from_optional(cls, lat: float | None, lon: float | None) -> "GeoPoint | None":
        """Build a point only when both coordinates are present."""
        if lat is None or lon is None:
            return None
        return cls(latitude=float(lat), longitude=float(lon))

    def haversine_km(self, other: "GeoPoint") -> float:
        """Great-circle distance in km on a spherical Earth."""
        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        dlat = lat2 - lat1
        dlon = math.radians(other.longitude - self.longitude)

        a = (
            math.sin(dlat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
        )
        return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))
