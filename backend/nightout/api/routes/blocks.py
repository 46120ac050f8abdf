from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from nightout.api.deps import get_current_user, write_limit
from nightout.db.session import get_db
from nightout.models.user import User
from nightout.schemas.common import MessageResponse
from nightout.schemas.social import (
    BlockCheckResponse,
    BlockCreate,
    BlockedUserResponse,
    BlockListResponse,
    BlockResponse,
)
from nightout.schemas.user import UserSummary
from nightout.services import block_service

router = APIRouter(prefix="/blocks", tags=["Blocks"])


@router.get("", response_model=BlockListResponse)
async def list_blocked(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    blocks = await block_service.list_blocked(db, user.id)
    return BlockListResponse(
        blocked_users=[
            BlockedUserResponse(
                **UserSummary.model_validate(b.blocked).model_dump(),
                blocked_at=b.created_at,
            )
            for b in blocks
        ]
    )


@router.post(
    "",
    response_model=BlockResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(write_limit)],
)
async def block(
    body: BlockCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Block a user. Any friendship between the two is removed."""
    return await block_service.block_user(db, user.id, body.user_id)


@router.delete("/{user_id}", response_model=MessageResponse, dependencies=[Depends(write_limit)])
async def unblock(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await block_service.unblock_user(db, user.id, user_id)
    return MessageResponse(message="User unblocked")


@router.get("/check/{user_id}", response_model=BlockCheckResponse)
async def check(
    user_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return BlockCheckResponse(blocked=await block_service.has_blocked(db, user.id, user_id))
