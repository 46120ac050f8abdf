"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from nightout.models.event import EventCategory, EventSource
from nightout.models.rsvp import RSVPStatus
from nightout.schemas.comment import CommentResponse
from nightout.schemas.user import UserSummary


class PriceRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: str = "USD"


class EventResponse(BaseModel):
    id: UUID
    external_id: Optional[str]
    source: EventSource
    title: str
    description: Optional[str]
    category: EventCategory
    subcategory: Optional[str]
    venue_name: str
    venue_address: str
    latitude: float
    longitude: float
    google_place_id: Optional[str]
    thumbnail_url: Optional[str]
    images: list[str] = []
    start_time: datetime
    end_time: Optional[datetime]
    price_range: Optional[PriceRange]
    ticket_url: Optional[str]
    rating: Optional[float]
    is_featured: bool
    relevance_tags: list[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RSVPCounts(BaseModel):
    going: int = 0
    interested: int = 0


class RSVPResponse(BaseModel):
    id: UUID
    user_id: UUID
    event_id: UUID
    status: RSVPStatus
    emoji_reaction: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventWithRSVP(EventResponse):
    user_rsvp: Optional[RSVPResponse] = None
    friends_attending: list[UserSummary] = []
    rsvp_counts: RSVPCounts = RSVPCounts()
    comment_count: int = 0
    distance_miles: Optional[float] = None


class GeoPoint(BaseModel):
    latitude: float
    longitude: float


class EventFeedResponse(BaseModel):
    """Tonight / week / month feeds: one unpaginated window around a point."""
    items: list[EventWithRSVP]
    location: GeoPoint
    radius_miles: int


class RSVPRequest(BaseModel):
    status: RSVPStatus
    emoji_reaction: Optional[str] = Field(None, max_length=10)


class EventUpsert(BaseModel):
    """Normalized third-party event, ready for insert-or-update."""
    external_id: str
    source: EventSource
    title: str = Field(..., max_length=500)
    description: Optional[str] = None
    category: EventCategory
    subcategory: Optional[str] = None
    venue_name: str
    venue_address: str = ""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    google_place_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    images: list[str] = []
    start_time: datetime
    end_time: Optional[datetime] = None
    price_range: Optional[PriceRange] = None
    ticket_url: Optional[str] = None
    rating: Optional[float] = None
    relevance_tags: list[str] = []


class EventDetail(EventWithRSVP):
    recent_comments: list[CommentResponse] = []


SortBy = Literal["date", "distance", "popularity", "friends"]


class EventFilters(BaseModel):
    categories: Optional[list[EventCategory]] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = Field(None, max_length=200)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_miles: Optional[float] = Field(None, ge=5, le=100)
    sort_by: SortBy = "date"

    @property
    def has_point(self) -> bool:
        return self.latitude is not None and self.longitude is not None
