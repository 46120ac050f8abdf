"""
Friends, friend requests and blocking.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.api.deps import Pagination, get_current_user, write_limit
from nightout.core.errors import NotFoundError
from nightout.db.session import get_db
from nightout.models.user import User
from nightout.schemas.common import MessageResponse, Page
from nightout.schemas.event import EventWithRSVP
from nightout.schemas.social import FriendRequestResponse, FriendshipResponse
from nightout.schemas.user import UserSummary
from nightout.services import block_service, event_service, social_service

router = APIRouter(prefix="/social", tags=["Social"])


@router.get("/friends", response_model=Page[UserSummary])
async def list_friends(
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await social_service.list_friends(db, user.id, pagination.page, pagination.page_size)
    return Page.build(items, total, pagination.page, pagination.page_size)


@router.get("/friends/requests", response_model=list[FriendRequestResponse])
async def pending_requests(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    """Pending requests addressed to the caller."""
    return await social_service.pending_requests(db, user.id)


@router.post(
    "/friends/request/{user_id}",
    response_model=FriendRequestResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limit)],
)
async def send_request(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await social_service.send_friend_request(db, user, user_id)


@router.post(
    "/friends/accept/{request_id}",
    response_model=FriendshipResponse,
    dependencies=[Depends(write_limit)],
)
async def accept_request(
    request_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await social_service.accept_friend_request(db, user, request_id)


@router.post(
    "/friends/decline/{request_id}",
    response_model=MessageResponse,
    dependencies=[Depends(write_limit)],
)
async def decline_request(
    request_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await social_service.decline_friend_request(db, user.id, request_id)
    return MessageResponse(message="Friend request declined")


@router.delete("/friends/{user_id}", response_model=MessageResponse, dependencies=[Depends(write_limit)])
async def remove_friend(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await social_service.remove_friend(db, user.id, user_id)
    return MessageResponse(message="Friend removed")


@router.post(
    "/friends/block/{user_id}",
    response_model=MessageResponse,
    dependencies=[Depends(write_limit)],
)
async def block(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await block_service.block_user(db, user.id, user_id)
    return MessageResponse(message="User blocked")


@router.post(
    "/friends/unblock/{user_id}",
    response_model=MessageResponse,
    dependencies=[Depends(write_limit)],
)
async def unblock(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await block_service.unblock_user(db, user.id, user_id)
    return MessageResponse(message="User unblocked")


@router.get("/friends/{user_id}/events", response_model=list[EventWithRSVP])
async def friend_events(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Upcoming events a friend is going to or interested in."""
    if not await social_service.are_friends(db, user.id, user_id):
        raise NotFoundError("Friend")
    return await event_service.friend_events(db, user_id, user.id)
