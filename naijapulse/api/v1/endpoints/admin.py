"""Admin endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from naijapulse.api.deps import get_db, http_error, require_admin
from naijapulse.core.cache import ADMIN_STATS_KEY, FEATURED_POLLS_KEY, global_cache
from naijapulse.core.config import settings
from naijapulse.core.constants import MAX_POLL_PAGE_SIZE
from naijapulse.core.logging_config import get_logger
from naijapulse.core.rate_limit import RATE_LIMITS, limiter
from naijapulse.schemas import (
    AdminStats,
    EnrichedReport,
    PollResponse,
    PollTitleUpdate,
    ProfileAdminUpdate,
    ProfileResponse,
    ReportTargetDeleted,
    SponsoredUpdate,
    SuccessResponse,
)
from naijapulse.services.admin import get_stats
from naijapulse.services.comments import delete_comment
from naijapulse.services.polls import delete_poll, list_polls, set_sponsored, update_poll_title
from naijapulse.services.profiles import delete_profile, list_profiles, update_profile
from naijapulse.services.reports import delete_report_target, dismiss_report, list_reports

logger = get_logger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


def _invalidate_poll_caches(reason: str) -> None:
    global_cache.invalidate(ADMIN_STATS_KEY, FEATURED_POLLS_KEY)
    logger.debug("cache_invalidated", keys=[ADMIN_STATS_KEY, FEATURED_POLLS_KEY], reason=reason)


@router.get("/stats", response_model=AdminStats)
@limiter.limit(RATE_LIMITS["admin_read"])
async def stats_endpoint(request: Request, db: Session = Depends(get_db)):
    """
    Dashboard counters (admin only).

    Revenue potential is the number of sponsored polls times the flat
    sponsorship value. Cached for ADMIN_STATS_CACHE_TTL seconds and
    invalidated by writes that change any counter.
    """
    return global_cache.get_or_fetch(
        ADMIN_STATS_KEY,
        lambda: get_stats(db),
        ttl_seconds=settings.ADMIN_STATS_CACHE_TTL,
    )


@router.get("/polls", response_model=List[PollResponse])
@limiter.limit(RATE_LIMITS["admin_read"])
async def admin_list_polls(
    request: Request,
    limit: int = Query(MAX_POLL_PAGE_SIZE, ge=1, le=MAX_POLL_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return list_polls(db, limit=limit, offset=offset)


@router.patch("/polls/{poll_id}/sponsored", response_model=PollResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def sponsor_poll(
    request: Request,
    poll_id: str,
    update: SponsoredUpdate = SponsoredUpdate(),
    db: Session = Depends(get_db),
):
    """Set the sponsored flag; an empty body flips it."""
    try:
        row = set_sponsored(db, poll_id, update.is_sponsored)
    except ValueError as e:
        raise http_error(e)

    _invalidate_poll_caches("poll sponsorship changed")
    return row


@router.patch("/polls/{poll_id}/title", response_model=PollResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def rename_poll(
    request: Request,
    poll_id: str,
    update: PollTitleUpdate,
    db: Session = Depends(get_db),
):
    try:
        row = update_poll_title(db, poll_id, update.title)
    except ValueError as e:
        raise http_error(e)

    global_cache.invalidate(FEATURED_POLLS_KEY)
    return row


@router.delete("/polls/{poll_id}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def delete_poll_endpoint(request: Request, poll_id: str, db: Session = Depends(get_db)):
    """
    Delete a poll (admin only).

    Votes, comments and every report about the poll or its comments are
    removed in the same transaction.
    """
    try:
        delete_poll(db, poll_id)
    except ValueError as e:
        raise http_error(e)

    _invalidate_poll_caches("poll deleted")
    return SuccessResponse(success=True)


@router.delete("/comments/{comment_id}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def delete_comment_endpoint(request: Request, comment_id: int, db: Session = Depends(get_db)):
    """Delete one comment; its replies stay and move to the top level."""
    try:
        delete_comment(db, comment_id)
    except ValueError as e:
        raise http_error(e)

    global_cache.invalidate(ADMIN_STATS_KEY)
    return SuccessResponse(success=True)


@router.get("/users", response_model=List[ProfileResponse])
@limiter.limit(RATE_LIMITS["admin_read"])
async def list_users(
    request: Request,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return list_profiles(db, limit=limit, offset=offset)


@router.patch("/users/{user_id}", response_model=ProfileResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def update_user(
    request: Request,
    user_id: str,
    update: ProfileAdminUpdate,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Rename a user or grant/revoke admin. Admins cannot revoke their own flag."""
    if user_id == admin["id"] and update.is_admin is False:
        raise HTTPException(status_code=400, detail="You cannot remove your own admin access")

    try:
        return update_profile(db, user_id, display_name=update.display_name, is_admin=update.is_admin)
    except ValueError as e:
        raise http_error(e)


@router.delete("/users/{user_id}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def delete_user(
    request: Request,
    user_id: str,
    admin: dict = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if user_id == admin["id"]:
        raise HTTPException(status_code=400, detail="You cannot delete your own profile")

    try:
        delete_profile(db, user_id)
    except ValueError as e:
        raise http_error(e)

    global_cache.invalidate(ADMIN_STATS_KEY)
    return SuccessResponse(success=True)


@router.get("/reports", response_model=List[EnrichedReport])
@limiter.limit(RATE_LIMITS["admin_read"])
async def list_reports_endpoint(
    request: Request,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    Reports newest first, each with a preview of what was reported.

    A report whose poll or comment can no longer be loaded is still listed,
    with empty preview fields.
    """
    return list_reports(db, limit=limit)


@router.delete("/reports/{report_id}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
async def dismiss_report_endpoint(request: Request, report_id: int, db: Session = Depends(get_db)):
    """Dismiss a report; the reported content is left alone."""
    try:
        dismiss_report(db, report_id)
    except ValueError as e:
        raise http_error(e)

    global_cache.invalidate(ADMIN_STATS_KEY)
    return SuccessResponse(success=True)


@router.delete("/reports/{report_id}/target", response_model=ReportTargetDeleted)
@limiter.limit(RATE_LIMITS["admin_write"])
async def delete_report_target_endpoint(request: Request, report_id: int, db: Session = Depends(get_db)):
    """Delete the reported poll or comment together with the report."""
    try:
        result = delete_report_target(db, report_id)
    except ValueError as e:
        raise http_error(e)

    _invalidate_poll_caches("reported content deleted")
    return result
