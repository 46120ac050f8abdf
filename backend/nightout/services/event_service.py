"""
Event discovery queries.

Radius filtering and distance sorting run in PostGIS (ST_DWithin /
ST_Distance against the GiST-indexed `location` column). Per-event extras
(RSVP counts, comment counts, the caller's RSVP, friends attending) are
fetched in one grouped query each for the whole page, not per event.
"""

import calendar
from collections import defaultdict
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, exists, func, literal, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import NotFoundError
from nightout.core.logging import get_logger
from nightout.db.geo import distance_miles, within_miles
from nightout.models.comment import Comment
from nightout.models.event import Event
from nightout.models.rsvp import ATTENDING_STATUSES, RSVP, RSVPStatus
from nightout.models.user import User
from nightout.schemas.comment import CommentResponse
from nightout.schemas.event import (
    EventDetail,
    EventFeedResponse,
    EventFilters,
    EventResponse,
    EventUpsert,
    EventWithRSVP,
    GeoPoint,
    RSVPCounts,
    RSVPResponse,
)
from nightout.schemas.user import UserSummary
from nightout.services.social_service import friend_ids

logger = get_logger(__name__)

# Fallback point for anonymous callers without a stored location (New York)
DEFAULT_LATITUDE = 40.7128
DEFAULT_LONGITUDE = -74.0060
DEFAULT_RADIUS_MILES = 50

FRIENDS_ATTENDING_LIMIT = 10
RECENT_COMMENTS_LIMIT = 5
TRENDING_LIMIT = 20
TRENDING_WINDOW_DAYS = 30

FEED_PAGE_SIZES = {"tonight": 100, "week": 200, "month": 500}

# Columns refreshed when an aggregated event is seen again
UPSERT_UPDATE_COLUMNS = (
    "title",
    "description",
    "venue_name",
    "venue_address",
    "latitude",
    "longitude",
    "thumbnail_url",
    "images",
    "start_time",
    "end_time",
    "price_range",
    "ticket_url",
    "rating",
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _attendance_count():
    return (
        select(func.count(RSVP.id))
        .where(RSVP.event_id == Event.id, RSVP.status.in_(ATTENDING_STATUSES))
        .correlate(Event)
        .scalar_subquery()
    )


def _friends_attendance_count(user_id: UUID):
    return (
        select(func.count(RSVP.id))
        .where(
            RSVP.event_id == Event.id,
            RSVP.status.in_(ATTENDING_STATUSES),
            RSVP.user_id.in_(friend_ids(user_id)),
        )
        .correlate(Event)
        .scalar_subquery()
    )


def _not_hidden_by(user_id: UUID):
    return ~exists().where(
        RSVP.event_id == Event.id,
        RSVP.user_id == user_id,
        RSVP.status == RSVPStatus.HIDDEN.value,
    )


async def get_event(db: AsyncSession, event_id: UUID) -> Event:
    event = await db.get(Event, event_id)
    if not event:
        raise NotFoundError("Event")
    return event


async def enrich_events(
    db: AsyncSession,
    events: list[Event],
    user_id: Optional[UUID] = None,
    distances: Optional[dict[UUID, float]] = None,
) -> list[EventWithRSVP]:
    """Attach counts, the caller's RSVP and friends attending to a page of events."""
    if not events:
        return []

    ids = [e.id for e in events]

    counts: dict[UUID, RSVPCounts] = defaultdict(RSVPCounts)
    result = await db.execute(
        select(RSVP.event_id, RSVP.status, func.count(RSVP.id))
        .where(RSVP.event_id.in_(ids), RSVP.status.in_(ATTENDING_STATUSES))
        .group_by(RSVP.event_id, RSVP.status)
    )
    for event_id, status, count in result.all():
        setattr(counts[event_id], status, count)

    result = await db.execute(
        select(Comment.event_id, func.count(Comment.id))
        .where(Comment.event_id.in_(ids), Comment.is_deleted.is_(False))
        .group_by(Comment.event_id)
    )
    comment_counts = dict(result.all())

    user_rsvps: dict[UUID, RSVP] = {}
    friends: dict[UUID, list[UserSummary]] = defaultdict(list)
    if user_id is not None:
        result = await db.execute(
            select(RSVP).where(RSVP.user_id == user_id, RSVP.event_id.in_(ids))
        )
        user_rsvps = {r.event_id: r for r in result.scalars().all()}

        result = await db.execute(
            select(RSVP.event_id, User)
            .join(User, User.id == RSVP.user_id)
            .where(
                RSVP.event_id.in_(ids),
                RSVP.status.in_(ATTENDING_STATUSES),
                RSVP.user_id.in_(friend_ids(user_id)),
            )
            .order_by(RSVP.event_id, RSVP.updated_at.desc())
        )
        for event_id, friend in result.all():
            if len(friends[event_id]) < FRIENDS_ATTENDING_LIMIT:
                friends[event_id].append(UserSummary.model_validate(friend))

    distances = distances or {}
    enriched = []
    for event in events:
        rsvp = user_rsvps.get(event.id)
        distance = distances.get(event.id)
        enriched.append(
            EventWithRSVP(
                **EventResponse.model_validate(event).model_dump(),
                user_rsvp=RSVPResponse.model_validate(rsvp) if rsvp else None,
                friends_attending=friends.get(event.id, []),
                rsvp_counts=counts.get(event.id, RSVPCounts()),
                comment_count=comment_counts.get(event.id, 0),
                distance_miles=round(distance, 2) if distance is not None else None,
            )
        )
    return enriched


async def list_events(
    db: AsyncSession,
    filters: EventFilters,
    user_id: Optional[UUID] = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[EventWithRSVP], int]:
    """
    Upcoming events matching `filters`, one page at a time.

    Sorting: date (default), distance (needs a point, else date), popularity
    (going + interested), friends (caller's friends attending, else date).
    """
    conditions = [Event.start_time > _now()]

    if filters.categories:
        conditions.append(Event.category.in_([c.value for c in filters.categories]))
    if filters.date_from:
        conditions.append(Event.start_time >= filters.date_from)
    if filters.date_to:
        conditions.append(Event.start_time <= filters.date_to)
    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        conditions.append(
            or_(
                Event.title.ilike(pattern),
                Event.venue_name.ilike(pattern),
                Event.description.ilike(pattern),
            )
        )
    if filters.has_point and filters.radius_miles:
        conditions.append(
            within_miles(Event.location, filters.latitude, filters.longitude, filters.radius_miles)
        )
    if user_id is not None:
        conditions.append(_not_hidden_by(user_id))

    total = (await db.execute(select(func.count(Event.id)).where(*conditions))).scalar()

    if filters.has_point:
        distance = distance_miles(Event.location, filters.latitude, filters.longitude)
    else:
        distance = literal(None)

    query = select(Event, distance.label("distance_miles")).where(*conditions)

    if filters.sort_by == "distance" and filters.has_point:
        query = query.order_by(distance.asc().nulls_last(), Event.start_time.asc())
    elif filters.sort_by == "popularity":
        query = query.order_by(_attendance_count().desc(), Event.start_time.asc())
    elif filters.sort_by == "friends" and user_id is not None:
        query = query.order_by(_friends_attendance_count(user_id).desc(), Event.start_time.asc())
    else:
        query = query.order_by(Event.start_time.asc())

    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    rows = result.all()

    events = [row[0] for row in rows]
    distances = {row[0].id: row[1] for row in rows if row[1] is not None}
    items = await enrich_events(db, events, user_id, distances)
    return items, total


def _add_one_month(moment: datetime) -> datetime:
    year = moment.year + moment.month // 12
    month = moment.month % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def feed_window(window: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """[now, end] for tonight (end of today, UTC), week (+7 days) and month (+1 month)."""
    now = now or _now()
    if window == "tonight":
        end = datetime.combine(now.date(), time.max, tzinfo=timezone.utc)
    elif window == "week":
        end = now + timedelta(days=7)
    elif window == "month":
        end = _add_one_month(now)
    else:
        raise ValueError(f"unknown feed window: {window}")
    return now, end


def resolve_feed_location(
    user: Optional[User],
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    radius_miles: Optional[int] = None,
) -> tuple[float, float, int]:
    """Query point, else the caller's stored point, else New York. Same for radius."""
    if latitude is not None and longitude is not None:
        point = (latitude, longitude)
    elif user is not None and user.latitude is not None and user.longitude is not None:
        point = (user.latitude, user.longitude)
    else:
        point = (DEFAULT_LATITUDE, DEFAULT_LONGITUDE)

    if radius_miles is not None:
        radius = radius_miles
    elif user is not None and user.preferences is not None:
        radius = user.preferences.radius_miles
    else:
        radius = DEFAULT_RADIUS_MILES

    return point[0], point[1], radius


async def event_feed(
    db: AsyncSession,
    window: str,
    user: Optional[User] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    radius_miles: Optional[int] = None,
) -> EventFeedResponse:
    lat, lng, radius = resolve_feed_location(user, latitude, longitude, radius_miles)
    date_from, date_to = feed_window(window)

    filters = EventFilters(
        latitude=lat,
        longitude=lng,
        radius_miles=radius,
        date_from=date_from,
        date_to=date_to,
        sort_by="date",
    )
    items, _ = await list_events(
        db, filters, user.id if user else None, page=1, page_size=FEED_PAGE_SIZES[window]
    )
    return EventFeedResponse(
        items=items,
        location=GeoPoint(latitude=lat, longitude=lng),
        radius_miles=radius,
    )


async def trending_events(db: AsyncSession, user_id: Optional[UUID] = None) -> list[EventWithRSVP]:
    """Most going/interested RSVPs over the next 30 days."""
    now = _now()
    attendance = func.count(RSVP.id)

    query = (
        select(Event)
        .join(
            RSVP,
            and_(RSVP.event_id == Event.id, RSVP.status.in_(ATTENDING_STATUSES)),
        )
        .where(
            Event.start_time > now,
            Event.start_time < now + timedelta(days=TRENDING_WINDOW_DAYS),
        )
        .group_by(Event.id)
        .having(attendance > 0)
        .order_by(attendance.desc(), Event.start_time.asc())
        .limit(TRENDING_LIMIT)
    )
    if user_id is not None:
        query = query.where(_not_hidden_by(user_id))

    result = await db.execute(query)
    return await enrich_events(db, list(result.scalars().all()), user_id)


async def get_event_detail(
    db: AsyncSession, event_id: UUID, user_id: Optional[UUID] = None
) -> EventDetail:
    event = await get_event(db, event_id)
    enriched = (await enrich_events(db, [event], user_id))[0]

    result = await db.execute(
        select(Comment)
        .where(
            Comment.event_id == event_id,
            Comment.parent_comment_id.is_(None),
            Comment.is_deleted.is_(False),
        )
        .order_by(Comment.created_at.desc())
        .limit(RECENT_COMMENTS_LIMIT)
    )
    comments = [CommentResponse.model_validate(c) for c in result.scalars().all()]

    return EventDetail(**enriched.model_dump(), recent_comments=comments)


async def friend_events(db: AsyncSession, friend_id: UUID, viewer_id: UUID) -> list[EventWithRSVP]:
    """Upcoming events the friend is going to or interested in."""
    result = await db.execute(
        select(Event)
        .join(RSVP, RSVP.event_id == Event.id)
        .where(
            RSVP.user_id == friend_id,
            RSVP.status.in_(ATTENDING_STATUSES),
            Event.start_time > _now(),
        )
        .order_by(Event.start_time.asc())
    )
    return await enrich_events(db, list(result.scalars().all()), viewer_id)


async def upsert_event(db: AsyncSession, data: EventUpsert) -> UUID:
    """Insert or update by (external_id, source). Returns the event id."""
    values = data.model_dump()
    values["source"] = data.source.value
    values["category"] = data.category.value

    stmt = pg_insert(Event).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Event.external_id, Event.source],
        set_={
            **{column: stmt.excluded[column] for column in UPSERT_UPDATE_COLUMNS},
            "updated_at": func.now(),
        },
    ).returning(Event.id)

    result = await db.execute(stmt)
    return result.scalar_one()
