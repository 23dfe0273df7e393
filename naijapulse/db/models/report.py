"""Report model."""
from datetime import datetime, timezone as tz
from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String

from naijapulse.db.base import Base


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    target_type = Column(String(20), nullable=False)
    target_id = Column(String(64), nullable=False)
    reason = Column(String(50), nullable=False)
    details = Column(String(500), nullable=True)
    reporter_id = Column(String(64), nullable=True)
    guest_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    __table_args__ = (
        Index("idx_reports_target", "target_type", "target_id"),
        CheckConstraint("target_type IN ('poll', 'comment')", name="ck_report_target_type"),
    )
