"""
Pydantic schemas for friendships and blocks.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from nightout.models.friendship import FriendshipStatus
from nightout.schemas.user import UserSummary


class FriendshipResponse(BaseModel):
    id: UUID
    requester_id: UUID
    addressee_id: UUID
    status: FriendshipStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class FriendRequestResponse(FriendshipResponse):
    requester: UserSummary
    addressee: UserSummary


class BlockCreate(BaseModel):
    user_id: UUID


class BlockedUserResponse(UserSummary):
    blocked_at: datetime


class BlockListResponse(BaseModel):
    blocked_users: list[BlockedUserResponse]


class BlockResponse(BaseModel):
    id: UUID
    blocker_id: UUID
    blocked_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class BlockCheckResponse(BaseModel):
    blocked: bool
