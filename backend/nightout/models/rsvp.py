"""
RSVP: one row per (user, event). `hidden` doubles as "not interested".
"""

import enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from nightout.db.base import Base, TimestampMixin, uuid_pk


class RSVPStatus(str, enum.Enum):
    GOING = "going"
    INTERESTED = "interested"
    NOT_GOING = "not_going"
    HIDDEN = "hidden"


# Statuses that count toward attendance and popularity
ATTENDING_STATUSES = (RSVPStatus.GOING.value, RSVPStatus.INTERESTED.value)


class RSVP(Base, TimestampMixin):
    __tablename__ = "rsvps"

    id = uuid_pk()
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False)
    emoji_reaction = Column(String(10), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_rsvps_user_event"),
        CheckConstraint(
            "status IN ('going', 'interested', 'not_going', 'hidden')",
            name="check_rsvp_status",
        ),
        Index("ix_rsvps_event_status", "event_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<RSVP(user={self.user_id}, event={self.event_id}, status={self.status})>"
