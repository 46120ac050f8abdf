"""
Pydantic schemas for event invites.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from nightout.models.invite import InviteStatus
from nightout.schemas.event import EventResponse
from nightout.schemas.user import UserSummary


class InviteCreate(BaseModel):
    event_id: UUID
    recipient_id: UUID
    message: Optional[str] = Field(None, max_length=500)


class InviteRespond(BaseModel):
    status: Literal["accepted", "declined"]


class InviteResponse(BaseModel):
    id: UUID
    event_id: UUID
    sender_id: UUID
    recipient_id: UUID
    message: Optional[str]
    status: InviteStatus
    responded_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


class InviteDetail(InviteResponse):
    event: EventResponse
    sender: UserSummary
    recipient: UserSummary
