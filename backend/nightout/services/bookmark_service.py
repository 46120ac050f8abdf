"""
Saved events.
"""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.core.errors import ConflictError, NotFoundError
from nightout.core.logging import get_logger
from nightout.models.bookmark import Bookmark
from nightout.models.rsvp import ATTENDING_STATUSES, RSVP
from nightout.schemas.bookmark import BookmarkedEvent
from nightout.schemas.event import EventResponse, RSVPCounts
from nightout.services.event_service import get_event

logger = get_logger(__name__)

BOOKMARK_EXISTS = "BOOKMARK_EXISTS"


async def list_bookmarks(
    db: AsyncSession, user_id: UUID, page: int = 1, page_size: int = 20
) -> tuple[list[BookmarkedEvent], int]:
    total = (
        await db.execute(select(func.count(Bookmark.id)).where(Bookmark.user_id == user_id))
    ).scalar()
    result = await db.execute(
        select(Bookmark)
        .where(Bookmark.user_id == user_id)
        .order_by(Bookmark.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    bookmarks = list(result.scalars().all())
    if not bookmarks:
        return [], total

    counts: dict[UUID, RSVPCounts] = defaultdict(RSVPCounts)
    result = await db.execute(
        select(RSVP.event_id, RSVP.status, func.count(RSVP.id))
        .where(
            RSVP.event_id.in_([b.event_id for b in bookmarks]),
            RSVP.status.in_(ATTENDING_STATUSES),
        )
        .group_by(RSVP.event_id, RSVP.status)
    )
    for event_id, status, count in result.all():
        setattr(counts[event_id], status, count)

    items = [
        BookmarkedEvent(
            **EventResponse.model_validate(b.event).model_dump(),
            bookmarked_at=b.created_at,
            rsvp_counts=counts.get(b.event_id, RSVPCounts()),
        )
        for b in bookmarks
    ]
    return items, total


async def add_bookmark(db: AsyncSession, user_id: UUID, event_id: UUID) -> Bookmark:
    await get_event(db, event_id)

    if await is_bookmarked(db, user_id, event_id):
        raise ConflictError("Event already bookmarked", code=BOOKMARK_EXISTS)

    bookmark = Bookmark(user_id=user_id, event_id=event_id)
    db.add(bookmark)
    await db.flush()

    logger.info("bookmark_added", user_id=str(user_id), event_id=str(event_id))
    return bookmark


async def remove_bookmark(db: AsyncSession, user_id: UUID, event_id: UUID) -> None:
    result = await db.execute(
        delete(Bookmark).where(Bookmark.user_id == user_id, Bookmark.event_id == event_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("Bookmark")
    logger.info("bookmark_removed", user_id=str(user_id), event_id=str(event_id))


async def is_bookmarked(db: AsyncSession, user_id: UUID, event_id: UUID) -> bool:
    result = await db.execute(
        select(exists().where(Bookmark.user_id == user_id, Bookmark.event_id == event_id))
    )
    return bool(result.scalar())
