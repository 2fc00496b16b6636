"""Tests for OfficeDirectoryUseCase."""

import pytest

from app.application.ports.geocoder_port import AddressSuggestion, GeocoderPort
from app.application.ports.office_repo import OfficeRepository
from app.application.use_cases.manage_offices import OfficeDirectoryUseCase, geocoding_query
from app.domain.entities.office import Office
from app.domain.value_objects.geo_point import GeoPoint

ALMATY = GeoPoint(latitude=43.238949, longitude=76.945465)
SHYMKENT = GeoPoint(latitude=42.3417, longitude=69.5901)


class FakeGeocoder(GeocoderPort):
    def __init__(self, point=None, suggestions=None):
        self._point = point
        self._suggestions = suggestions or []
        self.geocoded: list[str] = []
        self.suggested: list[tuple] = []

    async def geocode(self, address):
        self.geocoded.append(address)
        return self._point

    async def reverse_geocode(self, point):
        return "Алматы, проспект Абая, 1"

    async def suggest(self, query, city=None, limit=5):
        self.suggested.append((query, city, limit))
        return self._suggestions


class FakeOfficeRepo(OfficeRepository):
    def __init__(self, offices=None):
        self.offices: list[Office] = list(offices or [])

    async def save(self, office):
        office.id = len(self.offices) + 1
        self.offices.append(office)
        return office

    async def get_by_company(self, company_id):
        return [o for o in self.offices if o.company_id == company_id]


def test_geocoding_query_appends_country():
    assert geocoding_query("Алматы", "ул. Абая 1") == "Алматы, ул. Абая 1, Казахстан"


@pytest.mark.asyncio
async def test_create_office_geocodes_address():
    geocoder = FakeGeocoder(ALMATY)
    uc = OfficeDirectoryUseCase(FakeOfficeRepo(), geocoder)

    office = await uc.create_office(7, "Алматы", address=" ул. Абая 1 ")

    assert geocoder.geocoded == ["Алматы, ул. Абая 1, Казахстан"]
    assert office.id == 1
    assert office.location == ALMATY


@pytest.mark.asyncio
async def test_create_office_with_coordinates_skips_geocoding():
    geocoder = FakeGeocoder(ALMATY)
    uc = OfficeDirectoryUseCase(FakeOfficeRepo(), geocoder)

    office = await uc.create_office(7, "Шымкент", "пр. Тауке хана 5", 42.3417, 69.5901)

    assert geocoder.geocoded == []
    assert office.location == SHYMKENT


@pytest.mark.asyncio
async def test_create_office_unresolved_address_is_saved_without_location():
    repo = FakeOfficeRepo()
    uc = OfficeDirectoryUseCase(repo, FakeGeocoder(None))
    office = await uc.create_office(7, "Нигде", address="несуществующая улица")
    assert office.location is None
    assert repo.offices == [office]


@pytest.mark.asyncio
async def test_nearest_office_for_company():
    repo = FakeOfficeRepo([
        Office(id=1, company_id=7, name="Алматы", location=ALMATY),
        Office(id=2, company_id=7, name="Шымкент", location=SHYMKENT),
        Office(id=3, company_id=8, name="Чужой", location=SHYMKENT),
    ])
    uc = OfficeDirectoryUseCase(repo, FakeGeocoder())

    selection = await uc.nearest_office(7, GeoPoint(latitude=42.35, longitude=69.6))

    assert selection.office.name == "Шымкент"
    assert selection.distance_km == 1


@pytest.mark.asyncio
async def test_nearest_office_none_without_coordinates():
    repo = FakeOfficeRepo([Office(id=1, company_id=7, name="Алматы")])
    uc = OfficeDirectoryUseCase(repo, FakeGeocoder())
    assert await uc.nearest_office(7, ALMATY) is None


@pytest.mark.asyncio
async def test_reverse_geocode_delegates():
    uc = OfficeDirectoryUseCase(FakeOfficeRepo(), FakeGeocoder())
    assert await uc.reverse_geocode(ALMATY) == "Алматы, проспект Абая, 1"


@pytest.mark.asyncio
async def test_short_suggestion_query_is_ignored():
    geocoder = FakeGeocoder(suggestions=[AddressSuggestion("x", ALMATY)])
    uc = OfficeDirectoryUseCase(FakeOfficeRepo(), geocoder)
    assert await uc.suggest(" а ") == []
    assert geocoder.suggested == []


@pytest.mark.asyncio
async def test_suggestions_pass_city_and_limit():
    suggestion = AddressSuggestion("Алматы, проспект Абая, 10", ALMATY)
    geocoder = FakeGeocoder(suggestions=[suggestion])
    uc = OfficeDirectoryUseCase(FakeOfficeRepo(), geocoder)

    result = await uc.suggest(" Абая ", city="Алматы", limit=3)

    assert result == [suggestion]
    assert geocoder.suggested == [("Абая", "Алматы", 3)]
