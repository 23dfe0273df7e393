"""Poll catalogue business logic."""
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from naijapulse.core.actors import AuthenticatedActor
from naijapulse.core.constants import (
    DEFAULT_POLL_DURATION_DAYS,
    MAX_POLL_OPTIONS,
    MAX_POLL_PAGE_SIZE,
    MIN_POLL_OPTIONS,
    POLL_CATEGORIES,
    POLL_DURATION_DAYS,
    POLL_TYPES,
    YES_NO_OPTIONS,
)
from naijapulse.core.exceptions import NotFoundError
from naijapulse.core.logging_config import get_logger
from naijapulse.core.sanitization import (
    sanitize_option_label,
    sanitize_poll_question,
    sanitize_poll_title,
)
from naijapulse.core.utils import compute_duration_end
from naijapulse.db.models import Comment, Poll, Report
from naijapulse.db.rows import as_row, as_rows

logger = get_logger(__name__)


def normalize_category(category: str) -> str:
    """Canonical category label, matched case-insensitively.

    Raises:
        ValueError: If the category is not one of the known categories
    """
    if category:
        for known in POLL_CATEGORIES:
            if known.lower() == category.strip().lower():
                return known
    raise ValueError(f"Category must be one of: {', '.join(POLL_CATEGORIES)}")


def normalize_options(poll_type: str, options: Optional[Sequence[str]]) -> List[str]:
    """Option labels for a new poll; yes/no polls always get the preset."""
    if poll_type == "yes_no":
        return list(YES_NO_OPTIONS)

    labels = [sanitize_option_label(option) for option in (options or [])]
    if len(labels) < MIN_POLL_OPTIONS:
        raise ValueError(f"A poll needs at least {MIN_POLL_OPTIONS} options")
    if len(labels) > MAX_POLL_OPTIONS:
        raise ValueError(f"A poll can have at most {MAX_POLL_OPTIONS} options")
    return labels


def get_poll_model(db: Session, poll_id: str, for_update: bool = False) -> Poll:
    """Load a poll row or raise NotFoundError."""
    query = db.query(Poll).filter(Poll.id == poll_id)
    if for_update:
        query = query.with_for_update()
    poll = query.first()
    if poll is None:
        raise NotFoundError("Poll not found")
    return poll


def create_poll(
    db: Session,
    actor: AuthenticatedActor,
    creator_name: str,
    title: str,
    question: str,
    category: str,
    options: Optional[Sequence[str]] = None,
    poll_type: str = "multiple",
    duration_days: int = DEFAULT_POLL_DURATION_DAYS,
    image_url: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a new poll.

    Args:
        db: SQLAlchemy session
        actor: Creator; guests cannot create polls
        creator_name: Display name snapshot stored on the poll
        title: Poll title
        question: Poll question
        category: One of POLL_CATEGORIES (any case)
        options: Option labels; ignored for yes/no polls
        poll_type: "multiple" or "yes_no"
        duration_days: 1, 3, 7 or 0 for no end
        image_url: Optional image reference

    Returns:
        dict: The created poll row

    Raises:
        ValueError: If any field is invalid
    """
    if not isinstance(actor, AuthenticatedActor):
        raise ValueError("You must be signed in to create a poll")
    if poll_type not in POLL_TYPES:
        raise ValueError(f"Poll type must be one of: {', '.join(POLL_TYPES)}")
    if duration_days not in POLL_DURATION_DAYS:
        raise ValueError("Duration must be 1, 3 or 7 days, or 0 for no limit")

    poll = Poll(
        title=sanitize_poll_title(title),
        question=sanitize_poll_question(question),
        options=normalize_options(poll_type, options),
        type=poll_type,
        category=normalize_category(category),
        duration_end=compute_duration_end(duration_days),
        creator_id=actor.user_id,
        creator_name=creator_name,
        image_url=image_url or None,
    )

    try:
        db.add(poll)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(poll)
    logger.info("poll_created", poll_id=poll.id, category=poll.category, options=len(poll.options))
    return as_row(poll)


def get_poll(db: Session, poll_id: str) -> Dict[str, Any]:
    """Point read of a single poll.

    Raises:
        NotFoundError: If the poll does not exist
    """
    return as_row(get_poll_model(db, poll_id))


def list_polls(
    db: Session,
    category: Optional[str] = None,
    search: Optional[str] = None,
    featured: bool = False,
    limit: int = 20,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    """List polls, newest first.

    Args:
        db: SQLAlchemy session
        category: Optional category filter (case-insensitive)
        search: Optional text matched against title and question
        featured: Only sponsored polls
        limit: Page size, capped at MAX_POLL_PAGE_SIZE
        offset: Rows to skip

    Returns:
        List of poll rows
    """
    query = db.query(Poll)

    if category and category.lower() != "all":
        query = query.filter(Poll.category == normalize_category(category))

    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Poll.title.ilike(pattern), Poll.question.ilike(pattern)))

    if featured:
        query = query.filter(Poll.is_sponsored.is_(True))

    limit = max(1, min(limit, MAX_POLL_PAGE_SIZE))
    polls = query.order_by(Poll.created_at.desc(), Poll.id).offset(max(offset, 0)).limit(limit).all()
    return as_rows(polls)


def set_sponsored(db: Session, poll_id: str, is_sponsored: Optional[bool] = None) -> Dict[str, Any]:
    """Set the sponsored flag, or flip it when ``is_sponsored`` is None."""
    poll = get_poll_model(db, poll_id)
    poll.is_sponsored = (not poll.is_sponsored) if is_sponsored is None else is_sponsored

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("poll_sponsorship_changed", poll_id=poll_id, is_sponsored=poll.is_sponsored)
    return as_row(poll)


def update_poll_title(db: Session, poll_id: str, title: str) -> Dict[str, Any]:
    poll = get_poll_model(db, poll_id)
    poll.title = sanitize_poll_title(title)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    return as_row(poll)


def delete_reports_for(db: Session, target_type: str, target_ids: Sequence[Any]) -> int:
    """Stage deletion of every report about the given targets. Does not commit."""
    ids = [str(target_id) for target_id in target_ids]
    if not ids:
        return 0
    reports = (
        db.query(Report)
        .filter(Report.target_type == target_type, Report.target_id.in_(ids))
        .all()
    )
    # Row-by-row so each removal reaches the change feed
    for report in reports:
        db.delete(report)
    return len(reports)


def delete_poll(db: Session, poll_id: str) -> None:
    """Delete a poll with its votes, comments and every report about either.

    Raises:
        NotFoundError: If the poll does not exist
    """
    poll = get_poll_model(db, poll_id)

    try:
        comment_ids = [comment_id for (comment_id,) in db.query(Comment.id).filter(Comment.poll_id == poll_id)]
        removed_reports = delete_reports_for(db, "poll", [poll_id])
        removed_reports += delete_reports_for(db, "comment", comment_ids)

        # Votes and comments go through the relationship cascade
        db.delete(poll)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "poll_deleted",
        poll_id=poll_id,
        comments=len(comment_ids),
        reports=removed_reports,
    )
