from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from nightout.schemas.event import EventResponse, RSVPCounts


class BookmarkCreate(BaseModel):
    event_id: UUID


class BookmarkResponse(BaseModel):
    id: UUID
    event_id: UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class BookmarkedEvent(EventResponse):
    bookmarked_at: datetime
    rsvp_counts: RSVPCounts = RSVPCounts()


class BookmarkCheckResponse(BaseModel):
    bookmarked: bool
