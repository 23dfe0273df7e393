"""Report endpoints."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from naijapulse.api.deps import get_actor, get_db, http_error
from naijapulse.core.actors import Actor
from naijapulse.core.cache import ADMIN_STATS_KEY, global_cache
from naijapulse.core.rate_limit import RATE_LIMITS, limiter
from naijapulse.schemas import ReportCreate, ReportResponse
from naijapulse.services.reports import submit_report

router = APIRouter()


@router.post("", response_model=ReportResponse)
@limiter.limit(RATE_LIMITS["report"])
async def submit_report_endpoint(
    request: Request,
    report: ReportCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Report a poll or comment for moderation.

    Raises:
        HTTPException: 400 if no reason was selected or the reason is unknown
        HTTPException: 404 if the reported poll or comment does not exist

    Example:
        Request:
            POST /api/v1/reports
            {
                "target_type": "comment",
                "target_id": "42",
                "reason": "Spam",
                "details": "Same link posted ten times"
            }
    """
    try:
        row = submit_report(db, actor, report.target_type, report.target_id, report.reason, report.details)
    except ValueError as e:
        raise http_error(e)

    global_cache.invalidate(ADMIN_STATS_KEY)
    return row
