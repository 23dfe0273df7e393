"""Admin dashboard queries."""
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from naijapulse.core.constants import SPONSORED_POLL_VALUE
from naijapulse.db.models import Comment, Poll, Profile, Report, Vote


def get_stats(db: Session) -> Dict[str, Any]:
    """Headline counts for the admin dashboard.

    Revenue potential values every sponsored poll at SPONSORED_POLL_VALUE.
    """
    sponsored = db.query(func.count(Poll.id)).filter(Poll.is_sponsored.is_(True)).scalar() or 0

    return {
        "total_users": db.query(func.count(Profile.id)).scalar() or 0,
        "total_polls": db.query(func.count(Poll.id)).scalar() or 0,
        "total_votes": db.query(func.count(Vote.id)).scalar() or 0,
        "total_comments": db.query(func.count(Comment.id)).scalar() or 0,
        "total_reports": db.query(func.count(Report.id)).scalar() or 0,
        "sponsored_polls": sponsored,
        "revenue_potential": sponsored * SPONSORED_POLL_VALUE,
    }
