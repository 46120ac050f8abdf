"""
Friendship between two users. Stored once per pair; every lookup checks both
directions.
"""

import enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from nightout.db.base import Base, TimestampMixin, uuid_pk


class FriendshipStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    BLOCKED = "blocked"


class Friendship(Base, TimestampMixin):
    __tablename__ = "friendships"

    id = uuid_pk()
    requester_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    addressee_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False, default=FriendshipStatus.PENDING.value)

    requester = relationship("User", foreign_keys=[requester_id], lazy="selectin")
    addressee = relationship("User", foreign_keys=[addressee_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("requester_id", "addressee_id", name="uq_friendships_pair"),
        CheckConstraint("requester_id <> addressee_id", name="check_friendship_not_self"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'blocked')", name="check_friendship_status"
        ),
        Index("ix_friendships_addressee_status", "addressee_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Friendship({self.requester_id} -> {self.addressee_id}, {self.status})>"
