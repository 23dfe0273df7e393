"""Comment endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from naijapulse.api.deps import get_actor, get_db, http_error
from naijapulse.core.actors import Actor
from naijapulse.core.rate_limit import RATE_LIMITS, limiter
from naijapulse.schemas import CommentCreate, CommentResponse, CommentThread
from naijapulse.services.comments import fetch_comments, get_comment_thread, post_comment
from naijapulse.services.polls import get_poll

router = APIRouter()


@router.get("/polls/{poll_id}/comments", response_model=List[CommentThread])
@limiter.limit(RATE_LIMITS["poll_read"])
async def list_comments_endpoint(
    request: Request,
    poll_id: str,
    threaded: bool = True,
    db: Session = Depends(get_db),
):
    """
    Comments on a poll.

    With ``threaded`` (the default) replies are nested under their parent
    and top-level comments are oldest first; a reply whose parent was
    deleted is shown at the top level. ``threaded=false`` returns the flat
    list ordered by creation time.
    """
    try:
        if threaded:
            return [node.to_dict() for node in get_comment_thread(db, poll_id)]
        get_poll(db, poll_id)
        return fetch_comments(db, poll_id)
    except ValueError as e:
        raise http_error(e)


@router.post("/polls/{poll_id}/comments", response_model=CommentResponse)
@limiter.limit(RATE_LIMITS["comment"])
async def post_comment_endpoint(
    request: Request,
    poll_id: str,
    comment: CommentCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Post a comment, or a reply when ``parent_id`` is given.

    Raises:
        HTTPException: 400 if the content is empty or the parent is on another poll
        HTTPException: 404 if the poll does not exist
    """
    try:
        return post_comment(db, poll_id, actor, comment.content, parent_id=comment.parent_id)
    except ValueError as e:
        raise http_error(e)
