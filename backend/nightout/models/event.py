"""
Event model for aggregated and user-created events.

Key design decisions:
- Unique (external_id, source) is the upsert target for the aggregation job
- `location` is generated from latitude/longitude and GiST-indexed for
  ST_DWithin radius filters and ST_Distance sorting
- Index on start_time for the "upcoming" range queries every listing uses
"""

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Computed,
    DateTime,
    Float,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from geoalchemy2 import Geography

from nightout.db.base import Base, TimestampMixin, uuid_pk
from nightout.models.user import LOCATION_EXPRESSION


class EventSource(str, enum.Enum):
    TICKETMASTER = "ticketmaster"
    SEATGEEK = "seatgeek"
    GOOGLE_PLACES = "google_places"
    USER_CREATED = "user_created"


class EventCategory(str, enum.Enum):
    CONCERT = "concert"
    SPORTS = "sports"
    RESTAURANT = "restaurant"
    BAR = "bar"
    THEATER = "theater"
    FESTIVAL = "festival"
    COMEDY = "comedy"
    ARTS = "arts"
    NIGHTLIFE = "nightlife"
    OTHER = "other"


def _in_list(column: str, enum_cls) -> str:
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = uuid_pk()
    external_id = Column(String(255), nullable=True)
    source = Column(String(20), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(20), nullable=False)
    subcategory = Column(String(100), nullable=True)
    venue_name = Column(String(255), nullable=False)
    venue_address = Column(String(500), nullable=False, default="")

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    location = Column(
        Geography(geometry_type="POINT", srid=4326),
        Computed(LOCATION_EXPRESSION, persisted=True),
    )

    google_place_id = Column(String(255), nullable=True)
    thumbnail_url = Column(String(1000), nullable=True)
    images = Column(JSONB, nullable=False, default=list)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    price_range = Column(JSONB, nullable=True)  # {"min", "max", "currency"}
    ticket_url = Column(String(1000), nullable=True)
    rating = Column(Float, nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    relevance_tags = Column(JSONB, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint("external_id", "source", name="uq_events_external_source"),
        CheckConstraint(_in_list("source", EventSource), name="check_event_source"),
        CheckConstraint(_in_list("category", EventCategory), name="check_event_category"),
        CheckConstraint("rating IS NULL OR rating BETWEEN 0 AND 5", name="check_event_rating"),
        Index("ix_events_start_time", "start_time"),
        Index("ix_events_category_start", "category", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, source={self.source})>"
