from sqlalchemy import Column, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from nightout.db.base import Base, TimestampMixin, uuid_pk


class Bookmark(Base, TimestampMixin):
    __tablename__ = "bookmarks"

    id = uuid_pk()
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)

    event = relationship("Event", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_bookmarks_user_event"),
    )

    def __repr__(self) -> str:
        return f"<Bookmark(user={self.user_id}, event={self.event_id})>"
