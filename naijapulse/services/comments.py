"""Comment business logic."""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from naijapulse.core.actors import Actor, AuthenticatedActor
from naijapulse.core.constants import DEFAULT_DISPLAY_NAME, GUEST_DISPLAY_NAME
from naijapulse.core.exceptions import NotFoundError
from naijapulse.core.logging_config import get_logger
from naijapulse.core.sanitization import sanitize_comment_content
from naijapulse.db.models import Comment, Profile
from naijapulse.db.rows import as_row, as_rows
from naijapulse.realtime.comments import CommentNode, build_comment_tree
from naijapulse.services.polls import delete_reports_for, get_poll_model

logger = get_logger(__name__)


def commenter_name(db: Session, actor: Actor) -> str:
    """Display name snapshot stored with a new comment."""
    if not isinstance(actor, AuthenticatedActor):
        return GUEST_DISPLAY_NAME
    profile = db.query(Profile).filter(Profile.id == actor.user_id).first()
    return profile.display_name if profile else DEFAULT_DISPLAY_NAME


def fetch_comments(db: Session, poll_id: str) -> List[Dict[str, Any]]:
    """Flat comment rows for a poll, oldest first."""
    comments = (
        db.query(Comment)
        .filter(Comment.poll_id == poll_id)
        .order_by(Comment.created_at, Comment.id)
        .all()
    )
    return as_rows(comments)


def get_comment_thread(db: Session, poll_id: str) -> List[CommentNode]:
    """Threaded comments for a poll.

    Raises:
        NotFoundError: If the poll does not exist
    """
    get_poll_model(db, poll_id)
    return build_comment_tree(fetch_comments(db, poll_id))


def post_comment(
    db: Session,
    poll_id: str,
    actor: Actor,
    content: str,
    parent_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Add a comment or reply to a poll.

    Args:
        db: SQLAlchemy session
        poll_id: Poll being discussed
        actor: Author (user or guest)
        content: Comment text
        parent_id: Comment being replied to, if any

    Returns:
        dict: The new comment row

    Raises:
        NotFoundError: If the poll does not exist
        ValueError: If the content is invalid or the parent is not on this poll
    """
    content = sanitize_comment_content(content)
    poll = get_poll_model(db, poll_id, for_update=True)

    if parent_id is not None:
        parent = db.query(Comment).filter(Comment.id == parent_id).first()
        if parent is None or parent.poll_id != poll_id:
            raise ValueError("Cannot reply to a comment on a different poll")

    comment = Comment(
        poll_id=poll_id,
        parent_id=parent_id,
        content=content,
        creator_name=commenter_name(db, actor),
        **actor.to_columns(),
    )
    poll.comment_count = (poll.comment_count or 0) + 1

    try:
        db.add(comment)
        db.commit()
    except Exception:
        db.rollback()
        raise

    row = as_row(comment)
    logger.info("comment_posted", poll_id=poll_id, comment_id=row["id"], reply=parent_id is not None)
    return row


def delete_comment(db: Session, comment_id: int) -> Dict[str, Any]:
    """Delete one comment and the reports about it. Replies are left in place.

    Raises:
        NotFoundError: If the comment does not exist
    """
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if comment is None:
        raise NotFoundError("Comment not found")

    row = as_row(comment)

    try:
        poll = get_poll_model(db, comment.poll_id, for_update=True)
        poll.comment_count = max((poll.comment_count or 0) - 1, 0)
        removed_reports = delete_reports_for(db, "comment", [comment_id])
        db.delete(comment)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("comment_deleted", comment_id=comment_id, poll_id=row["poll_id"], reports=removed_reports)
    return row
