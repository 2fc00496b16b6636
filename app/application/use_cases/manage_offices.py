"""OfficeDirectoryUseCase — business units and their geography."""

from __future__ import annotations

import logging

from app.application.ports.geocoder_port import AddressSuggestion, GeocoderPort
from app.application.ports.office_repo import OfficeRepository
from app.domain.entities.office import Office
from app.domain.policies.office_selection import OfficeSelection, select_nearest_office
from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)

COUNTRY_SUFFIX = "Казахстан"
MIN_SUGGEST_QUERY = 2


def geocoding_query(name: str, address: str) -> str:
    """Office name is usually the city, which disambiguates street addresses."""
    return f"{name}, {address}, {COUNTRY_SUFFIX}"


class OfficeDirectoryUseCase:
    def __init__(self, office_repo: OfficeRepository, geocoder: GeocoderPort):
        self._offices = office_repo
        self._geocoder = geocoder

    async def list_offices(self, company_id: int) -> list[Office]:
        return await self._offices.get_by_company(company_id)

    async def create_office(
        self,
        company_id: int,
        name: str,
        address: str | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Office:
        """Persist a business unit, geocoding its address when no coordinates are given."""
        location = GeoPoint.from_optional(latitude, longitude)
        if location is None and address and address.strip():
            location = await self._geocoder.geocode(geocoding_query(name, address.strip()))
            if location is None:
                logger.warning("Office %s saved without coordinates: '%s' not resolved", name, address)

        return await self._offices.save(
            Office(id=None, company_id=company_id, name=name, address=address, location=location)
        )

    async def nearest_office(self, company_id: int, point: GeoPoint) -> OfficeSelection | None:
        """Nearest geolocated office of the company, or None."""
        offices = await self._offices.get_by_company(company_id)
        return select_nearest_office(point, offices)

    async def reverse_geocode(self, point: GeoPoint) -> str | None:
        return await self._geocoder.reverse_geocode(point)

    async def suggest(self, query: str, city: str | None = None, limit: int = 5) -> list[AddressSuggestion]:
        if len(query.strip()) < MIN_SUGGEST_QUERY:
            return []
        return await self._geocoder.suggest(query.strip(), city or None, limit)
