"""Vote model."""
from datetime import datetime, timezone as tz
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from naijapulse.db.base import Base


class Vote(Base):
    __tablename__ = "votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(String(36), ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(64), nullable=True)
    guest_id = Column(String(64), nullable=True)
    option_index = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    poll = relationship("Poll", back_populates="votes")

    __table_args__ = (
        Index("idx_votes_poll", "poll_id"),
        # NULLs never collide, so each constraint only bites for its own identity kind
        UniqueConstraint("poll_id", "user_id", name="uq_vote_poll_user"),
        UniqueConstraint("poll_id", "guest_id", name="uq_vote_poll_guest"),
        CheckConstraint("(user_id IS NULL) <> (guest_id IS NULL)", name="ck_vote_single_identity"),
        CheckConstraint("option_index >= 0", name="ck_vote_option_index"),
    )
