"""
In-app notifications for the current user.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.api.deps import Pagination, get_current_user
from nightout.db.session import get_db
from nightout.models.user import User
from nightout.schemas.common import MessageResponse, Page
from nightout.schemas.notification import BulkUpdateResponse, NotificationResponse, UnreadCountResponse
from nightout.services import notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=Page[NotificationResponse])
async def list_notifications(
    pagination: Pagination = Depends(),
    unread_only: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await notification_service.list_notifications(
        db, user.id, pagination.page, pagination.page_size, unread_only
    )
    return Page.build(items, total, pagination.page, pagination.page_size)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return UnreadCountResponse(count=await notification_service.unread_count(db, user.id))


@router.patch("/mark-all-read", response_model=BulkUpdateResponse)
async def mark_all_read(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return BulkUpdateResponse(updated=await notification_service.mark_all_read(db, user.id))


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.mark_read(db, user.id, notification_id)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.delete_notification(db, user.id, notification_id)
    return MessageResponse(message="Notification deleted")


@router.delete("", response_model=BulkUpdateResponse)
async def delete_read(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Delete every notification the caller has already read."""
    return BulkUpdateResponse(updated=await notification_service.delete_read(db, user.id))
