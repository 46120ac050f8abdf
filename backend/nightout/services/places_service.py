"""
Highly rated venues near a point, from Google Places nearby search.
"""

import asyncio
from typing import Optional

import httpx

from nightout.core.logging import get_logger
from nightout.db.geo import METERS_PER_MILE
from nightout.infrastructure.google_places import GooglePlacesClient
from nightout.models.event import EventCategory
from nightout.schemas.discovery import Place

logger = get_logger(__name__)

VENUE_TYPES = ["restaurant", "bar", "cafe", "night_club", "park", "museum", "tourist_attraction"]
MIN_RATING = 4.0
MAX_PLACES = 50

# First match wins
TYPE_CATEGORIES = [
    ({"restaurant", "food", "cafe"}, EventCategory.RESTAURANT),
    ({"bar", "night_club"}, EventCategory.BAR),
    ({"stadium", "gym"}, EventCategory.SPORTS),
    ({"museum", "art_gallery"}, EventCategory.ARTS),
    ({"movie_theater", "performing_arts_theater"}, EventCategory.THEATER),
    ({"park", "amusement_park"}, EventCategory.FESTIVAL),
]


def category_for_types(types: list[str]) -> EventCategory:
    present = set(types)
    for candidates, category in TYPE_CATEGORIES:
        if present & candidates:
            return category
    return EventCategory.OTHER


async def _search_type(
    client: GooglePlacesClient, latitude: float, longitude: float, radius_meters: float, place_type: str
) -> list[dict]:
    try:
        return await client.nearby_search(latitude, longitude, radius_meters, place_type)
    except httpx.HTTPError as e:
        logger.error("places_search_failed", place_type=place_type, error=str(e))
        return []


async def nearby_places(
    latitude: float,
    longitude: float,
    radius_miles: float = 5,
    client: Optional[GooglePlacesClient] = None,
) -> list[Place]:
    client = client or GooglePlacesClient()
    if not client.configured:
        logger.warning("google_places_not_configured")
        return []

    radius_meters = radius_miles * METERS_PER_MILE
    batches = await asyncio.gather(
        *(_search_type(client, latitude, longitude, radius_meters, t) for t in VENUE_TYPES)
    )

    unique: dict[str, dict] = {}
    for batch in batches:
        for place in batch:
            if not isinstance(place, dict) or not place.get("place_id"):
                continue
            if not (place.get("geometry") or {}).get("location"):
                continue
            unique.setdefault(place["place_id"], place)

    rated = sorted(
        (p for p in unique.values() if (p.get("rating") or 0) >= MIN_RATING),
        key=lambda p: p.get("rating") or 0,
        reverse=True,
    )[:MAX_PLACES]

    places = []
    for p in rated:
        location = p["geometry"]["location"]
        photos = p.get("photos") or []
        places.append(
            Place(
                id=p["place_id"],
                name=p["name"],
                address=p.get("formatted_address") or p.get("vicinity") or "",
                latitude=location["lat"],
                longitude=location["lng"],
                rating=p.get("rating"),
                price_level=p.get("price_level"),
                thumbnail_url=client.photo_url(photos[0]["photo_reference"]) if photos else None,
                category=category_for_types(p.get("types") or []),
                types=p.get("types") or [],
                is_open=(p.get("opening_hours") or {}).get("open_now"),
            )
        )
    return places
