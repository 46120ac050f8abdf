"""
Event invites between friends.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.api.deps import Pagination, get_current_user, write_limit
from nightout.db.session import get_db
from nightout.models.user import User
from nightout.schemas.common import Page
from nightout.schemas.invite import InviteCreate, InviteDetail, InviteRespond
from nightout.services import invite_service

router = APIRouter(prefix="/invites", tags=["Invites"])


@router.get("/received", response_model=Page[InviteDetail])
async def received(
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Pending invites addressed to the caller."""
    items, total = await invite_service.received_invites(db, user.id, pagination.page, pagination.page_size)
    return Page.build(items, total, pagination.page, pagination.page_size)


@router.get("/sent", response_model=Page[InviteDetail])
async def sent(
    pagination: Pagination = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await invite_service.sent_invites(db, user.id, pagination.page, pagination.page_size)
    return Page.build(items, total, pagination.page, pagination.page_size)


@router.post(
    "/",
    response_model=InviteDetail,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limit)],
)
async def create(
    body: InviteCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await invite_service.create_invite(db, user, body)


@router.patch("/{invite_id}", response_model=InviteDetail, dependencies=[Depends(write_limit)])
async def respond(
    invite_id: UUID,
    body: InviteRespond,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await invite_service.respond_to_invite(db, user.id, invite_id, body.status)
