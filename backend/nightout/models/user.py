"""
User account and per-user discovery preferences.

Key design decisions:
- email and username are stored lower-cased; uniqueness is enforced by the DB
- password_hash is nullable so social-login accounts can exist without one
- `location` is a generated geography column derived from latitude/longitude,
  so writes only ever touch the two floats and PostGIS keeps the point in sync
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Computed,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from geoalchemy2 import Geography

from nightout.db.base import Base, TimestampMixin, uuid_pk

LOCATION_EXPRESSION = "ST_SetSRID(ST_MakePoint(longitude, latitude), 4326)::geography"

DEFAULT_NOTIFICATION_SETTINGS = {
    "friend_requests": True,
    "event_invites": True,
    "event_reminders": True,
    "friend_activity": True,
}


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = uuid_pk()
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(30), unique=True, index=True, nullable=False)
    display_name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    bio = Column(String(160), nullable=True)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    location = Column(
        Geography(geometry_type="POINT", srid=4326),
        Computed(LOCATION_EXPRESSION, persisted=True),
    )

    onboarding_completed = Column(Boolean, nullable=False, default=False)
    google_id = Column(String(255), unique=True, nullable=True)
    apple_id = Column(String(255), unique=True, nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)

    # Lockout after repeated failed logins
    failed_login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    last_active_at = Column(DateTime(timezone=True), nullable=True)

    preferences = relationship(
        "UserPreferences",
        back_populates="user",
        uselist=False,
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("latitude BETWEEN -90 AND 90", name="check_user_latitude"),
        CheckConstraint("longitude BETWEEN -180 AND 180", name="check_user_longitude"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"


class UserPreferences(Base, TimestampMixin):
    __tablename__ = "user_preferences"

    id = uuid_pk()
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    favorite_artists = Column(JSONB, nullable=False, default=list)
    favorite_genres = Column(JSONB, nullable=False, default=list)
    sports_teams = Column(JSONB, nullable=False, default=list)
    interests = Column(JSONB, nullable=False, default=list)
    notification_settings = Column(
        JSONB, nullable=False, default=lambda: dict(DEFAULT_NOTIFICATION_SETTINGS)
    )
    radius_miles = Column(Integer, nullable=False, default=25)

    user = relationship("User", back_populates="preferences")

    __table_args__ = (
        CheckConstraint("radius_miles BETWEEN 5 AND 100", name="check_preferences_radius"),
    )

    def __repr__(self) -> str:
        return f"<UserPreferences(user={self.user_id}, radius={self.radius_miles})>"
