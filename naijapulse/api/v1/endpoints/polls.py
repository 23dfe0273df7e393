"""Poll endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from naijapulse.api.deps import get_actor, get_current_profile, get_current_user, get_db, http_error
from naijapulse.core.actors import Actor, AuthenticatedActor
from naijapulse.core.cache import ADMIN_STATS_KEY, FEATURED_POLLS_KEY, global_cache
from naijapulse.core.config import settings
from naijapulse.core.constants import MAX_POLL_PAGE_SIZE
from naijapulse.core.logging_config import get_logger
from naijapulse.core.rate_limit import RATE_LIMITS, limiter
from naijapulse.schemas import (
    PollCreate,
    PollResponse,
    PollResults,
    VoteCastResponse,
    VoteEligibility,
    VoteRequest,
    VoteResponse,
)
from naijapulse.services.polls import create_poll, get_poll, list_polls
from naijapulse.services.votes import (
    cast_vote,
    check_vote_eligibility,
    fetch_votes,
    get_poll_results,
)

logger = get_logger(__name__)
router = APIRouter()


@router.post("/polls", response_model=PollResponse)
@limiter.limit(RATE_LIMITS["create_poll"])
async def create_poll_endpoint(
    request: Request,
    poll: PollCreate,
    user: AuthenticatedActor = Depends(get_current_user),
    profile: dict = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """
    Create a new poll (signed-in users only).

    The creator's current display name is stored on the poll. Yes/no polls
    ignore ``options`` and always get ["Yes", "No"].

    Raises:
        HTTPException: 400 if the category, options or duration are invalid
        HTTPException: 401 if not signed in

    Example:
        Request:
            POST /api/v1/polls
            Authorization: Bearer eyJhbGc...
            {
                "title": "Fuel price",
                "question": "Should fuel subsidy return?",
                "category": "Economy",
                "options": ["Yes", "No", "Not sure"],
                "duration_days": 7
            }
    """
    try:
        row = create_poll(
            db,
            user,
            creator_name=profile["display_name"],
            title=poll.title,
            question=poll.question,
            category=poll.category,
            options=poll.options,
            poll_type=poll.type,
            duration_days=poll.duration_days,
            image_url=poll.image_url,
        )
    except ValueError as e:
        raise http_error(e)

    global_cache.invalidate(ADMIN_STATS_KEY)
    return row


@router.get("/polls", response_model=List[PollResponse])
@limiter.limit(RATE_LIMITS["poll_read"])
async def list_polls_endpoint(
    request: Request,
    category: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    featured: bool = False,
    limit: int = Query(20, ge=1, le=MAX_POLL_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List polls newest first, optionally filtered by category, text or sponsorship."""
    try:
        return list_polls(db, category=category, search=search, featured=featured, limit=limit, offset=offset)
    except ValueError as e:
        raise http_error(e)


@router.get("/polls/featured", response_model=List[PollResponse])
@limiter.limit(RATE_LIMITS["poll_read"])
async def featured_polls_endpoint(request: Request, db: Session = Depends(get_db)):
    """Sponsored polls for the home page carousel (briefly cached)."""
    return global_cache.get_or_fetch(
        FEATURED_POLLS_KEY,
        lambda: list_polls(db, featured=True, limit=MAX_POLL_PAGE_SIZE),
        ttl_seconds=settings.FEATURED_CACHE_TTL,
    )


@router.get("/polls/{poll_id}", response_model=PollResponse)
@limiter.limit(RATE_LIMITS["poll_read"])
async def get_poll_endpoint(request: Request, poll_id: str, db: Session = Depends(get_db)):
    try:
        return get_poll(db, poll_id)
    except ValueError as e:
        raise http_error(e)


@router.get("/polls/{poll_id}/results", response_model=PollResults)
@limiter.limit(RATE_LIMITS["poll_read"])
async def poll_results_endpoint(request: Request, poll_id: str, db: Session = Depends(get_db)):
    """Per-option counts and percentages (one decimal) plus the total."""
    try:
        return get_poll_results(db, poll_id)
    except ValueError as e:
        raise http_error(e)


@router.get("/polls/{poll_id}/votes", response_model=List[VoteResponse])
@limiter.limit(RATE_LIMITS["poll_read"])
async def poll_votes_endpoint(request: Request, poll_id: str, db: Session = Depends(get_db)):
    try:
        get_poll(db, poll_id)
    except ValueError as e:
        raise http_error(e)
    return fetch_votes(db, poll_id)


@router.get("/polls/{poll_id}/eligibility", response_model=VoteEligibility)
@limiter.limit(RATE_LIMITS["poll_read"])
async def vote_eligibility_endpoint(
    request: Request,
    poll_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Whether the caller already voted on this poll.

    Clients call this once before showing the ballot; ``has_voted`` true
    means the results view should be shown with ``option_index`` marked.
    """
    try:
        get_poll(db, poll_id)
    except ValueError as e:
        raise http_error(e)
    return check_vote_eligibility(db, poll_id, actor)


@router.post("/polls/{poll_id}/votes", response_model=VoteCastResponse)
@limiter.limit(RATE_LIMITS["vote"])
async def vote_endpoint(
    request: Request,
    poll_id: str,
    vote_request: VoteRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Cast the caller's vote (signed-in user or guest).

    Guests are identified by the guestId cookie or X-Guest-Id header; a
    first-time guest gets a new guestId cookie on the response.

    Returns:
        The stored vote and the poll's updated results

    Raises:
        HTTPException: 400 if the option is out of range or the poll has ended
        HTTPException: 404 if the poll does not exist
        HTTPException: 409 if the caller already voted on this poll

    Example:
        Request:
            POST /api/v1/polls/3f1c.../votes
            Cookie: guestId=guest_1718000000000_k3j9x0a2b
            {"option_index": 1}

        Response (409):
            {"detail": "You have already voted in this poll"}

    Note:
        The (poll, user) and (poll, guest) unique constraints make the
        duplicate check atomic; the pre-check only gives the common case a
        cheaper path.
    """
    try:
        vote = cast_vote(db, poll_id, actor, vote_request.option_index)
        results = get_poll_results(db, poll_id)
    except ValueError as e:
        raise http_error(e)

    global_cache.invalidate(ADMIN_STATS_KEY)
    return {"vote": vote, "results": results}
