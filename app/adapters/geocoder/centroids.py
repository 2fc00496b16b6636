"""City / region centroid fallback for Kazakhstan addresses."""

from __future__ import annotations

import logging

from app.domain.value_objects.geo_point import GeoPoint

logger = logging.getLogger(__name__)

# City centroid fallback: major Kazakhstan cities
CITY_CENTROIDS: dict[str, GeoPoint] = {
    "алматы": GeoPoint(latitude=43.238949, longitude=76.945465),
    "астана": GeoPoint(latitude=51.128207, longitude=71.430411),
    "караганда": GeoPoint(latitude=49.806406, longitude=73.085485),
    "шымкент": GeoPoint(latitude=42.315514, longitude=69.596428),
    "актобе": GeoPoint(latitude=50.283935, longitude=57.166978),
    "тараз": GeoPoint(latitude=42.901183, longitude=71.378309),
    "павлодар": GeoPoint(latitude=52.287430, longitude=76.967454),
    "усть-каменогорск": GeoPoint(latitude=49.948759, longitude=82.627808),
    "семей": GeoPoint(latitude=50.411137, longitude=80.227607),
    "атырау": GeoPoint(latitude=47.106700, longitude=51.903538),
    "костанай": GeoPoint(latitude=53.214773, longitude=63.631557),
    "кызылорда": GeoPoint(latitude=44.842614, longitude=65.502530),
    "актау": GeoPoint(latitude=43.635100, longitude=51.169300),
    "петропавловск": GeoPoint(latitude=54.865559, longitude=69.135552),
    "туркестан": GeoPoint(latitude=43.297222, longitude=68.241389),
    "кокшетау": GeoPoint(latitude=53.283333, longitude=69.383333),
    "талдыкорган": GeoPoint(latitude=45.015833, longitude=78.373611),
    "нур-султан": GeoPoint(latitude=51.128207, longitude=71.430411),  # old name for Astana
}

# Villages missing from search results resolve to their regional center.
REGION_CENTROIDS: dict[str, GeoPoint] = {
    "акмолинская": CITY_CENTROIDS["кокшетау"],
    "алматинская": CITY_CENTROIDS["алматы"],
    "атырауская": CITY_CENTROIDS["атырау"],
    "актюбинская": CITY_CENTROIDS["актобе"],
    "жамбылская": CITY_CENTROIDS["тараз"],
    "карагандинская": CITY_CENTROIDS["караганда"],
    "костанайская": CITY_CENTROIDS["костанай"],
    "кызылординская": CITY_CENTROIDS["кызылорда"],
    "мангистауская": CITY_CENTROIDS["актау"],
    "павлодарская": CITY_CENTROIDS["павлодар"],
    "северо-казахстанская": CITY_CENTROIDS["петропавловск"],
    "туркестанская": CITY_CENTROIDS["туркестан"],
    "восточно-казахстанская": CITY_CENTROIDS["усть-каменогорск"],
}


def centroid_lookup(address: str) -> GeoPoint | None:
    """City match first, then region; None when neither is named."""
    address_lower = address.lower()
    for table, label in ((CITY_CENTROIDS, "City"), (REGION_CENTROIDS, "Region")):
        for name, point in table.items():
            if name in address_lower:
                logger.info("%s centroid fallback: '%s' → %s", label, address, name)
                return point
    return None
