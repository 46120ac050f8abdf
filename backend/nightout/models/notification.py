"""
In-app notifications.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB, UUID

from nightout.db.base import Base, TimestampMixin, uuid_pk


class NotificationType:
    FRIEND_REQUEST = "friend_request"
    FRIEND_ACCEPTED = "friend_accepted"
    EVENT_INVITE = "event_invite"
    COMMENT_REPLY = "comment_reply"


class Notification(Base, TimestampMixin):
    __tablename__ = "notifications"

    id = uuid_pk()
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    body = Column(String(1000), nullable=True)
    data = Column(JSONB, nullable=False, default=dict)
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_notifications_user_read_created", "user_id", "read", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification(user={self.user_id}, type={self.type}, read={self.read})>"
