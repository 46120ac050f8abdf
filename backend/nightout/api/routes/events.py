"""
Event listing, feeds, detail, RSVPs and comments.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.api.deps import Pagination, get_current_user, get_optional_user, write_limit
from nightout.db.session import get_db
from nightout.models.event import EventCategory
from nightout.models.rsvp import RSVPStatus
from nightout.models.user import User
from nightout.schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from nightout.schemas.common import MessageResponse, Page
from nightout.schemas.event import (
    EventDetail,
    EventFeedResponse,
    EventFilters,
    EventWithRSVP,
    RSVPRequest,
    RSVPResponse,
    SortBy,
)
from nightout.services import comment_service, event_service, rsvp_service

router = APIRouter(prefix="/events", tags=["Events"])


def event_filters(
    categories: Optional[list[EventCategory]] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    radius_miles: Optional[float] = Query(None, ge=5, le=100),
    sort_by: SortBy = Query("date"),
) -> EventFilters:
    return EventFilters(
        categories=categories,
        date_from=date_from,
        date_to=date_to,
        search=search,
        latitude=latitude,
        longitude=longitude,
        radius_miles=radius_miles,
        sort_by=sort_by,
    )


class FeedLocation:
    def __init__(
        self,
        latitude: Optional[float] = Query(None, ge=-90, le=90),
        longitude: Optional[float] = Query(None, ge=-180, le=180),
        radius_miles: Optional[int] = Query(None, ge=5, le=100),
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.radius_miles = radius_miles


@router.get("/", response_model=Page[EventWithRSVP])
async def list_events(
    filters: EventFilters = Depends(event_filters),
    pagination: Pagination = Depends(),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Upcoming events with filters and sorting. Personalised when signed in."""
    items, total = await event_service.list_events(
        db, filters, user.id if user else None, pagination.page, pagination.page_size
    )
    return Page.build(items, total, pagination.page, pagination.page_size)


async def _feed(window: str, location: FeedLocation, user: Optional[User], db: AsyncSession):
    return await event_service.event_feed(
        db, window, user, location.latitude, location.longitude, location.radius_miles
    )


@router.get("/tonight", response_model=EventFeedResponse)
async def tonight(
    location: FeedLocation = Depends(),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await _feed("tonight", location, user, db)


@router.get("/week", response_model=EventFeedResponse)
async def this_week(
    location: FeedLocation = Depends(),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await _feed("week", location, user, db)


@router.get("/month", response_model=EventFeedResponse)
async def this_month(
    location: FeedLocation = Depends(),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await _feed("month", location, user, db)


@router.get("/trending", response_model=list[EventWithRSVP])
async def trending(
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await event_service.trending_events(db, user.id if user else None)


@router.get("/{event_id}", response_model=EventDetail)
async def get_event(
    event_id: UUID,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await event_service.get_event_detail(db, event_id, user.id if user else None)


# RSVPs

@router.post("/{event_id}/rsvp", response_model=RSVPResponse, dependencies=[Depends(write_limit)])
async def rsvp(
    event_id: UUID,
    body: RSVPRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await rsvp_service.set_rsvp(db, user.id, event_id, body.status, body.emoji_reaction)


@router.delete("/{event_id}/rsvp", response_model=MessageResponse)
async def remove_rsvp(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await rsvp_service.remove_rsvp(db, user.id, event_id)
    return MessageResponse(message="RSVP removed")


@router.post("/{event_id}/hide", response_model=RSVPResponse)
async def hide(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Hide the event from this user's listings."""
    return await rsvp_service.hide_event(db, user.id, event_id)


# Comments

@router.get("/{event_id}/comments", response_model=Page[CommentResponse])
async def list_comments(
    event_id: UUID,
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
):
    items, total = await comment_service.list_comments(
        db, event_id, pagination.page, pagination.page_size
    )
    return Page.build(items, total, pagination.page, pagination.page_size)


@router.post(
    "/{event_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limit)],
)
async def create_comment(
    event_id: UUID,
    body: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.create_comment(db, user, event_id, body)


@router.patch(
    "/{event_id}/comments/{comment_id}",
    response_model=CommentResponse,
    dependencies=[Depends(write_limit)],
)
async def update_comment(
    event_id: UUID,
    comment_id: UUID,
    body: CommentUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await comment_service.update_comment(db, user.id, event_id, comment_id, body.content)


@router.delete("/{event_id}/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    event_id: UUID,
    comment_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await comment_service.delete_comment(db, user.id, event_id, comment_id)
    return MessageResponse(message="Comment deleted")
