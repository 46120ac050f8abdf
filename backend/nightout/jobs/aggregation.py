"""
Event aggregation job.

Polls Ticketmaster and SeatGeek around a fixed set of US cities and upserts
the results into the events table keyed by (external_id, source). Each
upstream event is written in its own transaction, so one bad record never
discards the rest of a batch.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.config import get_settings
from nightout.core.logging import get_logger
from nightout.core.metrics import aggregation_duration, aggregation_runs, record_aggregated_event
from nightout.db.session import AsyncSessionLocal
from nightout.infrastructure.seatgeek import SeatGeekClient
from nightout.infrastructure.ticketmaster import TicketmasterClient, pick_image
from nightout.models.event import EventCategory, EventSource
from nightout.schemas.event import EventUpsert, PriceRange
from nightout.services.event_service import upsert_event

logger = get_logger(__name__)
settings = get_settings()

DEFAULT_LOCATIONS = [
    {"name": "New York", "lat": 40.7128, "lng": -74.0060},
    {"name": "Los Angeles", "lat": 34.0522, "lng": -118.2437},
    {"name": "Chicago", "lat": 41.8781, "lng": -87.6298},
    {"name": "Houston", "lat": 29.7604, "lng": -95.3698},
    {"name": "Phoenix", "lat": 33.4484, "lng": -112.0740},
    {"name": "Denver", "lat": 39.7392, "lng": -104.9903},
    {"name": "Seattle", "lat": 47.6062, "lng": -122.3321},
    {"name": "Miami", "lat": 25.7617, "lng": -80.1918},
    {"name": "Atlanta", "lat": 33.7490, "lng": -84.3880},
    {"name": "Boston", "lat": 42.3601, "lng": -71.0589},
]

SEATGEEK_SPORT_WORDS = ("sport", "basketball", "football", "baseball", "hockey")

SessionFactory = Callable[[], AsyncSession]


def map_ticketmaster_category(classifications: Optional[list[dict]]) -> EventCategory:
    first = (classifications or [{}])[0]
    segment = ((first.get("segment") or {}).get("name") or "").lower()
    genre = ((first.get("genre") or {}).get("name") or "").lower()

    if segment == "music":
        return EventCategory.CONCERT
    if segment == "sports":
        return EventCategory.SPORTS
    if segment == "arts & theatre":
        return EventCategory.COMEDY if "comedy" in genre else EventCategory.THEATER
    if segment == "film":
        return EventCategory.ARTS
    if "festival" in segment:
        return EventCategory.FESTIVAL
    return EventCategory.OTHER


def map_seatgeek_category(event_type: str) -> EventCategory:
    t = (event_type or "").lower()
    if "concert" in t or "music" in t:
        return EventCategory.CONCERT
    if any(word in t for word in SEATGEEK_SPORT_WORDS):
        return EventCategory.SPORTS
    if "theater" in t or "theatre" in t or "broadway" in t:
        return EventCategory.THEATER
    if "comedy" in t:
        return EventCategory.COMEDY
    if "festival" in t:
        return EventCategory.FESTIVAL
    return EventCategory.OTHER


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 with or without a zone; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _join_address(*parts: Optional[str]) -> str:
    return ", ".join(p for p in parts if p)


def normalize_ticketmaster_event(event: dict) -> Optional[EventUpsert]:
    """Map a Discovery API event to an upsert, or None when it has no venue coordinates."""
    venues = (event.get("_embedded") or {}).get("venues") or []
    venue = venues[0] if venues else {}
    location = venue.get("location") or {}
    if not location.get("latitude") or not location.get("longitude"):
        return None

    dates = event.get("dates") or {}
    start = dates.get("start") or {}
    if start.get("dateTime"):
        start_time = parse_timestamp(start["dateTime"])
    else:
        start_time = parse_timestamp(f"{start['localDate']}T{start.get('localTime') or '00:00:00'}")
    end = dates.get("end") or {}
    end_time = parse_timestamp(end["dateTime"]) if end.get("dateTime") else None

    classifications = event.get("classifications") or []
    genres = [
        (c.get("genre") or {}).get("name")
        for c in classifications
        if (c.get("genre") or {}).get("name")
    ]
    images = event.get("images") or []
    prices = event.get("priceRanges") or []

    return EventUpsert(
        external_id=str(event["id"]),
        source=EventSource.TICKETMASTER,
        title=event["name"],
        description=event.get("info"),
        category=map_ticketmaster_category(classifications),
        subcategory=genres[0] if genres else None,
        venue_name=venue.get("name") or "",
        venue_address=_join_address(
            (venue.get("address") or {}).get("line1"),
            (venue.get("city") or {}).get("name"),
            (venue.get("state") or {}).get("stateCode"),
            venue.get("postalCode"),
        ),
        latitude=float(location["latitude"]),
        longitude=float(location["longitude"]),
        thumbnail_url=pick_image(images),
        images=[img["url"] for img in images if img.get("url")],
        start_time=start_time,
        end_time=end_time,
        price_range=(
            PriceRange(
                min=prices[0].get("min"),
                max=prices[0].get("max"),
                currency=prices[0].get("currency") or "USD",
            )
            if prices
            else None
        ),
        ticket_url=event.get("url"),
        relevance_tags=genres,
    )


def normalize_seatgeek_event(event: dict) -> Optional[EventUpsert]:
    venue = event.get("venue") or {}
    location = venue.get("location") or {}
    if not location.get("lat") or not location.get("lon"):
        return None

    performers = event.get("performers") or []
    images = [p["image"] for p in performers if p.get("image")]
    stats = event.get("stats") or {}
    low, high = stats.get("lowest_price"), stats.get("highest_price")

    return EventUpsert(
        external_id=str(event["id"]),
        source=EventSource.SEATGEEK,
        title=event["title"],
        description=event.get("description"),
        category=map_seatgeek_category(event.get("type") or ""),
        venue_name=venue.get("name") or "",
        venue_address=_join_address(
            venue.get("address"),
            venue.get("city"),
            venue.get("state"),
            venue.get("postal_code"),
        ),
        latitude=float(location["lat"]),
        longitude=float(location["lon"]),
        thumbnail_url=performers[0].get("image") if performers else None,
        images=images,
        start_time=parse_timestamp(event["datetime_utc"]),
        price_range=PriceRange(min=low, max=high, currency="USD") if low and high else None,
        ticket_url=event.get("url"),
        relevance_tags=[p["name"] for p in performers if p.get("name")],
    )


async def _store_events(
    source: EventSource,
    raw_events: list[dict],
    normalize: Callable[[dict], Optional[EventUpsert]],
    session_factory: SessionFactory,
) -> int:
    stored = 0
    for raw in raw_events:
        if not isinstance(raw, dict):
            record_aggregated_event(source.value, "error")
            logger.warning("aggregation_event_invalid", source=source.value, error="not an object")
            continue
        try:
            data = normalize(raw)
        except (AttributeError, KeyError, TypeError, ValueError, SchemaValidationError) as e:
            record_aggregated_event(source.value, "error")
            logger.warning("aggregation_event_invalid", source=source.value, external_id=raw.get("id"), error=str(e))
            continue
        if data is None:
            record_aggregated_event(source.value, "skipped")
            continue

        try:
            async with session_factory() as db:
                await upsert_event(db, data)
                await db.commit()
        except SQLAlchemyError as e:
            record_aggregated_event(source.value, "error")
            logger.error("aggregation_upsert_failed", source=source.value, external_id=data.external_id, error=str(e))
            continue

        record_aggregated_event(source.value, "upserted")
        stored += 1
    return stored


async def fetch_ticketmaster(
    latitude: float,
    longitude: float,
    radius_miles: Optional[int] = None,
    client: Optional[TicketmasterClient] = None,
    session_factory: SessionFactory = AsyncSessionLocal,
) -> int:
    client = client or TicketmasterClient()
    if not client.configured:
        logger.info("ticketmaster_not_configured_skipping")
        return 0

    try:
        events = await client.search_events(
            latitude, longitude, radius_miles or settings.AGGREGATION_RADIUS_MILES
        )
    except httpx.HTTPError as e:
        logger.error("ticketmaster_fetch_failed", error=str(e))
        return 0

    logger.info("ticketmaster_events_fetched", count=len(events))
    return await _store_events(
        EventSource.TICKETMASTER, events, normalize_ticketmaster_event, session_factory
    )


async def fetch_seatgeek(
    latitude: float,
    longitude: float,
    radius_miles: Optional[int] = None,
    client: Optional[SeatGeekClient] = None,
    session_factory: SessionFactory = AsyncSessionLocal,
) -> int:
    client = client or SeatGeekClient()
    if not client.configured:
        logger.info("seatgeek_not_configured_skipping")
        return 0

    try:
        events = await client.search_events(
            latitude, longitude, radius_miles or settings.AGGREGATION_RADIUS_MILES
        )
    except httpx.HTTPError as e:
        logger.error("seatgeek_fetch_failed", error=str(e))
        return 0

    logger.info("seatgeek_events_fetched", count=len(events))
    return await _store_events(
        EventSource.SEATGEEK, events, normalize_seatgeek_event, session_factory
    )


async def run_aggregation(
    session_factory: SessionFactory = AsyncSessionLocal,
    locations: Optional[list[dict]] = None,
) -> int:
    """Run one pass over every city. Returns the number of events upserted."""
    logger.info("aggregation_started")
    started = time.perf_counter()
    total = 0

    try:
        for location in locations or DEFAULT_LOCATIONS:
            logger.info("aggregation_city", city=location["name"])
            results = await asyncio.gather(
                fetch_ticketmaster(location["lat"], location["lng"], session_factory=session_factory),
                fetch_seatgeek(location["lat"], location["lng"], session_factory=session_factory),
                return_exceptions=True,
            )
            for source, result in zip((EventSource.TICKETMASTER, EventSource.SEATGEEK), results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    logger.error(
                        "aggregation_source_failed",
                        city=location["name"],
                        source=source.value,
                        error=repr(result),
                    )
                    continue
                total += result
            await asyncio.sleep(settings.AGGREGATION_CITY_DELAY_SECONDS)
    except Exception:
        aggregation_runs.labels(status="failed").inc()
        logger.exception("aggregation_failed")
        raise

    duration = time.perf_counter() - started
    aggregation_duration.observe(duration)
    aggregation_runs.labels(status="completed").inc()
    logger.info("aggregation_completed", duration_seconds=round(duration, 2), events_upserted=total)
    return total
