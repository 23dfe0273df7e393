"""Poll model."""
import uuid
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, Column, Integer, String, DateTime, JSON, Index
from sqlalchemy.orm import relationship

from naijapulse.db.base import Base


class Poll(Base):
    __tablename__ = "polls"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    question = Column(String(500), nullable=False)
    options = Column(JSON, nullable=False)  # ordered list of option labels
    type = Column(String(20), nullable=False, default="multiple")  # multiple | yes_no
    category = Column(String(50), nullable=False)
    duration_end = Column(DateTime(timezone=True), nullable=True)
    creator_id = Column(String(64), nullable=False)
    creator_name = Column(String(100), nullable=False)
    image_url = Column(String(500), nullable=True)
    vote_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    is_sponsored = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # ORM-level cascades so every removed child row reaches the change feed
    votes = relationship("Vote", back_populates="poll", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="poll", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_polls_category", "category"),
        Index("idx_polls_created_at", "created_at"),
    )
