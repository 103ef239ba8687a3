"""
Destination geocoding via OpenStreetMap Nominatim (geopy), and the map
markers attached to a finished itinerary.

Geocoding failures are not defaulted: weather lookups need real
coordinates, so the planner lets GeocodingFailed reach its caller.
"""

from __future__ import annotations

import asyncio
import logging
import os

from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from errors import GeocodingFailed
from itinerary_models import ActivityCategory, Coordinates, DayPlan, MapLocation

log = logging.getLogger(__name__)

_DEFAULT_USER_AGENT = "itinerary-synthesis-v1"

_MARKER_KINDS = {
    ActivityCategory.DINING: "restaurant",
    ActivityCategory.ACCOMMODATION: "hotel",
}


def _geolocator() -> Nominatim:
    # Nominatim requires an explicit User-Agent
    return Nominatim(user_agent=os.getenv("NOMINATIM_USER_AGENT", _DEFAULT_USER_AGENT))


def _geocode_timeout() -> float:
    return float(os.getenv("GEOCODER_TIMEOUT_SECONDS", "10"))


async def resolve_coordinates(destination: str) -> Coordinates:
    """Latitude/longitude for a destination name.

    The geopy client is blocking, so it runs in a worker thread.
    """
    query = (destination or "").strip()
    if not query:
        raise GeocodingFailed("Destination is empty")

    try:
        result = await asyncio.to_thread(_geolocator().geocode, query, timeout=_geocode_timeout())
    except GeopyError as exc:
        raise GeocodingFailed(f"Failed to get coordinates for {destination}: {exc}") from exc

    if result is None:
        raise GeocodingFailed(f"No coordinates found for {destination}")

    log.debug("Geocoded %s to (%s, %s)", query, result.latitude, result.longitude)
    return Coordinates(latitude=result.latitude, longitude=result.longitude)


def build_map_locations(
    destination: str, coordinates: Coordinates, days: list[DayPlan],
) -> list[MapLocation]:
    """City-centre marker followed by every activity with resolved coordinates."""
    markers = [MapLocation(
        name=f"{destination} City Center",
        latitude=coordinates.latitude,
        longitude=coordinates.longitude,
        kind="attraction",
        description="Main city area",
    )]
    seen = {markers[0].name}

    for day in days:
        for activity in day.activities:
            if not activity.location.is_resolved() or activity.name in seen:
                continue
            seen.add(activity.name)
            markers.append(MapLocation(
                name=activity.name,
                latitude=activity.location.latitude,
                longitude=activity.location.longitude,
                kind=_MARKER_KINDS.get(activity.category, "attraction"),
                description=activity.description,
            ))

    return markers
