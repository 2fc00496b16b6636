"""Business unit endpoints — list, create, nearest office, address helpers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.manage_offices import OfficeDirectoryUseCase
from app.domain.entities.caller_scope import CallerScope
from app.domain.entities.office import Office
from app.domain.value_objects.geo_point import GeoPoint
from app.infrastructure.api.dependencies import get_caller_scope, get_office_directory_uc

router = APIRouter(prefix="/offices", tags=["offices"])


class OfficeCreate(BaseModel):
    office: str
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class OfficeOut(BaseModel):
    id: int | None
    office: str
    address: str | None
    latitude: float | None
    longitude: float | None

    @classmethod
    def from_domain(cls, o: Office) -> "OfficeOut":
        return cls(
            id=o.id,
            office=o.name,
            address=o.address,
            latitude=o.location.latitude if o.location else None,
            longitude=o.location.longitude if o.location else None,
        )


class NearestOfficeOut(BaseModel):
    office_id: int | None = None
    office: str | None = None
    distance_km: int | None = None


class SuggestionOut(BaseModel):
    display_name: str
    latitude: float
    longitude: float


@router.get("", response_model=list[OfficeOut])
async def list_offices(
    scope: CallerScope = Depends(get_caller_scope),
    uc: OfficeDirectoryUseCase = Depends(get_office_directory_uc),
):
    return [OfficeOut.from_domain(o) for o in await uc.list_offices(scope.company_id)]


@router.post("", response_model=OfficeOut, status_code=201)
async def create_office(
    req: OfficeCreate,
    scope: CallerScope = Depends(get_caller_scope),
    uc: OfficeDirectoryUseCase = Depends(get_office_directory_uc),
    session: AsyncSession = Depends(get_session),
):
    """Create a business unit; the address is geocoded when no coordinates are given."""
    office = await uc.create_office(
        company_id=scope.company_id,
        name=req.office,
        address=req.address,
        latitude=req.latitude,
        longitude=req.longitude,
    )
    await session.commit()
    return OfficeOut.from_domain(office)


@router.get("/nearest", response_model=NearestOfficeOut)
async def nearest_office(
    lat: float = Query(...),
    lon: float = Query(...),
    scope: CallerScope = Depends(get_caller_scope),
    uc: OfficeDirectoryUseCase = Depends(get_office_directory_uc),
):
    selection = await uc.nearest_office(scope.company_id, GeoPoint(latitude=lat, longitude=lon))
    if selection is None:
        return NearestOfficeOut()
    return NearestOfficeOut(
        office_id=selection.office.id,
        office=selection.office.name,
        distance_km=selection.distance_km,
    )


@router.get("/reverse-geocode")
async def reverse_geocode(
    lat: float = Query(...),
    lon: float = Query(...),
    uc: OfficeDirectoryUseCase = Depends(get_office_directory_uc),
):
    return {"address": await uc.reverse_geocode(GeoPoint(latitude=lat, longitude=lon))}


@router.get("/suggestions", response_model=list[SuggestionOut])
async def suggestions(
    q: str = Query(...),
    city: str | None = Query(default=None),
    uc: OfficeDirectoryUseCase = Depends(get_office_directory_uc),
):
    """Address autocomplete for the office form."""
    return [
        SuggestionOut(
            display_name=s.display_name,
            latitude=s.location.latitude,
            longitude=s.location.longitude,
        )
        for s in await uc.suggest(q, city)
    ]
