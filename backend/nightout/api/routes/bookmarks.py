from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.api.deps import Pagination, get_current_user
from nightout.db.session import get_db
from nightout.models.user import User
from nightout.schemas.bookmark import (
    BookmarkCheckResponse,
    BookmarkCreate,
    BookmarkedEvent,
    BookmarkResponse,
)
from nightout.schemas.common import MessageResponse, Page
from nightout.services import bookmark_service

router = APIRouter(prefix="/bookmarks", tags=["Bookmarks"])


@router.get("", response_model=Page[BookmarkedEvent])
async def list_bookmarks(
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await bookmark_service.list_bookmarks(db, user.id, pagination.page, pagination.page_size)
    return Page.build(items, total, pagination.page, pagination.page_size)


@router.post("", response_model=BookmarkResponse, status_code=status.HTTP_201_CREATED)
async def add_bookmark(
    body: BookmarkCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await bookmark_service.add_bookmark(db, user.id, body.event_id)


@router.delete("/{event_id}", response_model=MessageResponse)
async def remove_bookmark(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await bookmark_service.remove_bookmark(db, user.id, event_id)
    return MessageResponse(message="Bookmark removed")


@router.get("/check/{event_id}", response_model=BookmarkCheckResponse)
async def check(
    event_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return BookmarkCheckResponse(bookmarked=await bookmark_service.is_bookmarked(db, user.id, event_id))
