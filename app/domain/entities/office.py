"""Office entity — a company business unit, optionally geolocated."""

from dataclasses import dataclass

from app.domain.value_objects.geo_point import GeoPoint


@dataclass
class Office:
    id: int | None
    company_id: int
    name: str
    address: str | None = None
    location: GeoPoint | None = None
