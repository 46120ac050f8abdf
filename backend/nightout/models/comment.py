"""
Event comments, threaded one level deep and soft-deleted.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from nightout.db.base import Base, TimestampMixin, uuid_pk


class Comment(Base, TimestampMixin):
    __tablename__ = "comments"

    id = uuid_pk()
    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    parent_comment_id = Column(
        UUID(as_uuid=True), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    content = Column(String(500), nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False)

    author = relationship("User", lazy="selectin")

    __table_args__ = (
        CheckConstraint("char_length(content) >= 1", name="check_comment_content_not_empty"),
        Index("ix_comments_event_created", "event_id", "created_at"),
        Index("ix_comments_parent", "parent_comment_id"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, event={self.event_id}, deleted={self.is_deleted})>"
