"""Ticket entity — a customer request owned by one company."""

from dataclasses import dataclass

from app.domain.value_objects.enums import Segment
from app.domain.value_objects.geo_point import GeoPoint


@dataclass
class Ticket:
    id: int | None
    company_id: int
    guid: str
    segment: Segment
    ticket_type: str | None = None
    address: str | None = None
    location: GeoPoint | None = None

    def is_location_known(self) -> bool:
        return self.location is not None

    def has_address(self) -> bool:
        return bool(self.address and self.address.strip())
