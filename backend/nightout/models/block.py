from sqlalchemy import CheckConstraint, Column, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from nightout.db.base import Base, TimestampMixin, uuid_pk


class Block(Base, TimestampMixin):
    __tablename__ = "user_blocks"

    id = uuid_pk()
    blocker_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    blocked_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    blocked = relationship("User", foreign_keys=[blocked_id], lazy="selectin")

    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", name="uq_blocks_pair"),
        CheckConstraint("blocker_id <> blocked_id", name="check_block_not_self"),
    )

    def __repr__(self) -> str:
        return f"<Block({self.blocker_id} -> {self.blocked_id})>"
