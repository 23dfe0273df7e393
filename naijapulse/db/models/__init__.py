"""Database models."""
from naijapulse.db.models.poll import Poll
from naijapulse.db.models.vote import Vote
from naijapulse.db.models.comment import Comment
from naijapulse.db.models.report import Report
from naijapulse.db.models.profile import Profile

__all__ = ["Poll", "Vote", "Comment", "Report", "Profile"]
