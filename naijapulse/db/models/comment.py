"""Comment model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from naijapulse.db.base import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(String(36), ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    # Replies outlive their parent; readers treat a dangling parent as top-level
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(String(64), nullable=True)
    guest_id = Column(String(64), nullable=True)
    content = Column(Text, nullable=False)
    creator_name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    poll = relationship("Poll", back_populates="comments")

    __table_args__ = (
        Index("idx_comments_poll_created", "poll_id", "created_at"),
        Index("idx_comments_parent", "parent_id"),
    )
