"""Vote business logic."""
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from naijapulse.core.actors import Actor, AuthenticatedActor
from naijapulse.core.exceptions import AlreadyVotedError
from naijapulse.core.logging_config import get_logger
from naijapulse.core.utils import is_poll_open
from naijapulse.db.models import Vote
from naijapulse.db.rows import as_row, as_rows
from naijapulse.realtime.votes import VoteAggregator
from naijapulse.services.polls import get_poll_model

logger = get_logger(__name__)


def _actor_filter(actor: Actor):
    if isinstance(actor, AuthenticatedActor):
        return Vote.user_id == actor.user_id
    return Vote.guest_id == actor.token


def validate_option_index(option_index: int, option_count: int) -> None:
    """Raises ValueError unless ``option_index`` addresses one of the poll's options."""
    if isinstance(option_index, bool) or not isinstance(option_index, int):
        raise ValueError("Invalid option")
    if not 0 <= option_index < option_count:
        raise ValueError("Invalid option")


def fetch_votes(db: Session, poll_id: str) -> List[Dict[str, Any]]:
    """Every vote row for a poll, oldest first."""
    votes = (
        db.query(Vote)
        .filter(Vote.poll_id == poll_id)
        .order_by(Vote.created_at, Vote.id)
        .all()
    )
    return as_rows(votes)


def find_vote(db: Session, poll_id: str, actor: Actor) -> Optional[Dict[str, Any]]:
    vote = db.query(Vote).filter(Vote.poll_id == poll_id, _actor_filter(actor)).first()
    return as_row(vote) if vote else None


def check_vote_eligibility(db: Session, poll_id: str, actor: Actor) -> Dict[str, Any]:
    """Whether ``actor`` already voted on the poll, and for which option.

    Returns:
        dict with has_voted, option_index and vote_id (None when not voted)
    """
    vote = find_vote(db, poll_id, actor)
    return {
        "has_voted": vote is not None,
        "option_index": vote["option_index"] if vote else None,
        "vote_id": vote["id"] if vote else None,
    }


def cast_vote(db: Session, poll_id: str, actor: Actor, option_index: int) -> Dict[str, Any]:
    """Record ``actor``'s vote.

    Args:
        db: SQLAlchemy session
        poll_id: Poll to vote in
        actor: Voter (user or guest)
        option_index: 0-based index into the poll's options

    Returns:
        dict: The new vote row

    Raises:
        NotFoundError: If the poll does not exist
        ValueError: If the option is out of range or voting has ended
        AlreadyVotedError: If the actor already has a vote on this poll
    """
    poll = get_poll_model(db, poll_id, for_update=True)

    validate_option_index(option_index, len(poll.options))

    if not is_poll_open(poll.duration_end):
        raise ValueError("Voting has ended for this poll")

    if find_vote(db, poll_id, actor) is not None:
        raise AlreadyVotedError()

    vote = Vote(poll_id=poll_id, option_index=option_index, **actor.to_columns())
    poll.vote_count = (poll.vote_count or 0) + 1

    try:
        db.add(vote)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # Concurrent request won the race; the unique constraints reject the second insert
        message = str(e.orig).lower()
        if "uq_vote_poll" in message or "unique" in message or "duplicate" in message:
            logger.info("vote_rejected_duplicate", poll_id=poll_id, guest=actor.is_guest)
            raise AlreadyVotedError()
        raise
    except Exception:
        db.rollback()
        raise

    row = as_row(vote)
    logger.info("vote_cast", poll_id=poll_id, vote_id=row["id"], option_index=option_index, guest=actor.is_guest)
    return row


def get_poll_results(db: Session, poll_id: str) -> Dict[str, Any]:
    """Per-option counts and percentages from a fresh snapshot of the poll's votes.

    Raises:
        NotFoundError: If the poll does not exist
    """
    poll = get_poll_model(db, poll_id)
    aggregator = VoteAggregator(len(poll.options))
    aggregator.merge(fetch_votes(db, poll_id))

    return {
        "poll_id": poll_id,
        "total_votes": aggregator.total,
        "options": [
            {
                "index": tally.index,
                "label": tally.label,
                "count": tally.count,
                "percentage": tally.percentage,
            }
            for tally in aggregator.tallies(poll.options)
        ],
    }
