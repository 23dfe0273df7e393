"""Profile model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, Column, DateTime, String

from naijapulse.db.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)  # auth provider user id
    display_name = Column(String(100), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    language = Column(String(10), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
