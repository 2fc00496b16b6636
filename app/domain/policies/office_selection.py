"""OfficeSelectionPolicy — pick the nearest office or fall back by name."""

from __future__ import annotations

import math
from dataclasses import dataclass

from app.domain.entities.office import Office
from app.domain.value_objects.geo_point import GeoPoint


@dataclass(frozen=True)
class OfficeSelection:
    """Result of the office selection policy."""

    office: Office
    distance_km: int | None  # None when no distance was computed
    fallback_used: bool
    reason: str


def round_km(distance: float) -> int:
    """Round half up to whole kilometres."""
    return int(math.floor(distance + 0.5))


def select_nearest_office(
    client_location: GeoPoint,
    offices: list[Office],
) -> OfficeSelection | None:
    """Select the geographically nearest office that has known coordinates.

    Offices without coordinates are skipped. On exactly equal distances the
    earlier office in *offices* wins, so a stable input order gives a stable
    answer.

    Returns:
        OfficeSelection, or None if no office has coordinates.
    """
    candidates = [
        (o, client_location.haversine_km(o.location)) for o in offices if o.location
    ]
    if not candidates:
        return None

    best_office, best_distance = min(candidates, key=lambda x: x[1])
    distance_km = round_km(best_distance)
    return OfficeSelection(
        office=best_office,
        distance_km=distance_km,
        fallback_used=False,
        reason=f"nearest office, distance ~{distance_km} km",
    )


def select_default_office(
    offices: list[Office],
    default_name: str | None,
) -> OfficeSelection:
    """Name-based fallback used when distance cannot decide.

    The configured default office wins when the company has it; otherwise
    the first office of *offices* (callers pass them ordered by id).

    Raises:
        ValueError: if *offices* is empty.
    """
    if not offices:
        raise ValueError("No offices available for fallback")

    if default_name:
        for office in offices:
            if office.name == default_name:
                return OfficeSelection(
                    office=office,
                    distance_km=None,
                    fallback_used=True,
                    reason="default office, location unknown",
                )

    return OfficeSelection(
        office=offices[0],
        distance_km=None,
        fallback_used=True,
        reason="first configured office, location unknown",
    )
