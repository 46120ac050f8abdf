"""
Event invite sent from one friend to another.
"""

import enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from nightout.db.base import Base, TimestampMixin, uuid_pk


class InviteStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class EventInvite(Base, TimestampMixin):
    __tablename__ = "event_invites"

    id = uuid_pk()
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    recipient_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=InviteStatus.PENDING.value)
    responded_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("Event", lazy="selectin")
    sender = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    recipient = relationship("User", foreign_keys=[recipient_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("event_id", "sender_id", "recipient_id", name="uq_invites_event_pair"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined')", name="check_invite_status"
        ),
    )

    def __repr__(self) -> str:
        return f"<EventInvite(event={self.event_id}, to={self.recipient_id}, status={self.status})>"
