"""Report (moderation) business logic."""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from naijapulse.core.actors import Actor
from naijapulse.core.constants import REPORT_REASONS, REPORT_TARGET_TYPES
from naijapulse.core.exceptions import NotFoundError
from naijapulse.core.logging_config import get_logger
from naijapulse.core.sanitization import sanitize_report_details
from naijapulse.db.models import Comment, Poll, Report
from naijapulse.db.rows import as_row, as_rows
from naijapulse.realtime.reports import ReportFeedCache
from naijapulse.services.comments import delete_comment
from naijapulse.services.polls import delete_poll

logger = get_logger(__name__)


def validate_report(target_type: str, reason: Optional[str]) -> str:
    """Check a report's target type and reason before anything touches the database.

    Returns:
        str: The reason

    Raises:
        ValueError: If the reason is missing or unknown, or the target type is invalid
    """
    if target_type not in REPORT_TARGET_TYPES:
        raise ValueError(f"Target type must be one of: {', '.join(REPORT_TARGET_TYPES)}")
    if not reason or not reason.strip():
        raise ValueError("Please select a reason for reporting")
    reason = reason.strip()
    if reason not in REPORT_REASONS:
        raise ValueError(f"Reason must be one of: {', '.join(REPORT_REASONS)}")
    return reason


def _comment_id(target_id: Any) -> int:
    try:
        return int(target_id)
    except (TypeError, ValueError):
        raise NotFoundError("Comment not found")


def _load_target(db: Session, target_type: str, target_id: Any):
    if target_type == "poll":
        target = db.query(Poll).filter(Poll.id == str(target_id)).first()
        if target is None:
            raise NotFoundError("Poll not found")
        return target

    target = db.query(Comment).filter(Comment.id == _comment_id(target_id)).first()
    if target is None:
        raise NotFoundError("Comment not found")
    return target


def submit_report(
    db: Session,
    actor: Actor,
    target_type: str,
    target_id: Any,
    reason: Optional[str],
    details: Optional[str] = None,
) -> Dict[str, Any]:
    """File a report against a poll or a comment.

    Raises:
        ValueError: If the reason or target type is invalid
        NotFoundError: If the target does not exist
    """
    reason = validate_report(target_type, reason)
    details = sanitize_report_details(details)
    _load_target(db, target_type, target_id)

    columns = actor.to_columns()
    report = Report(
        target_type=target_type,
        target_id=str(target_id),
        reason=reason,
        details=details,
        reporter_id=columns["user_id"],
        guest_id=columns["guest_id"],
    )

    try:
        db.add(report)
        db.commit()
    except Exception:
        db.rollback()
        raise

    row = as_row(report)
    logger.info("report_submitted", report_id=row["id"], target_type=target_type, target_id=str(target_id), reason=reason)
    return row


def fetch_reports(db: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Report rows, newest first."""
    query = db.query(Report).order_by(Report.created_at.desc(), Report.id.desc())
    if limit:
        query = query.limit(limit)
    return as_rows(query.all())


def load_target_preview(db: Session, target_type: str, target_id: Any) -> Dict[str, Any]:
    """Short preview of a report's target.

    Raises:
        NotFoundError: If the target no longer exists
    """
    target = _load_target(db, target_type, target_id)
    if target_type == "poll":
        return {
            "poll_title": target.title,
            "poll_question": target.question,
            "creator_name": target.creator_name,
        }
    return {
        "poll_title": target.poll.title if target.poll else None,
        "comment_content": target.content,
        "creator_name": target.creator_name,
    }


def preview_loader(db: Session):
    """Bind ``load_target_preview`` to a session for a ReportFeedCache."""
    def load(row):
        return load_target_preview(db, row["target_type"], row["target_id"])
    return load


def list_reports(db: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Enriched reports, newest first. Unresolvable targets get an empty preview."""
    cache = ReportFeedCache(preview_loader(db))
    cache.merge(fetch_reports(db, limit))
    return cache.reports


def _get_report(db: Session, report_id: int) -> Report:
    report = db.query(Report).filter(Report.id == report_id).first()
    if report is None:
        raise NotFoundError("Report not found")
    return report


def dismiss_report(db: Session, report_id: int) -> None:
    """Delete a report and leave its target alone."""
    report = _get_report(db, report_id)

    try:
        db.delete(report)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("report_dismissed", report_id=report_id)


def delete_report_target(db: Session, report_id: int) -> Dict[str, Any]:
    """Delete the reported poll or comment, then the report.

    Deleting the target also removes every other report about it. A target
    that is already gone only costs the report itself.

    Raises:
        NotFoundError: If the report does not exist
    """
    report = _get_report(db, report_id)
    target_type, target_id = report.target_type, report.target_id

    try:
        if target_type == "poll":
            delete_poll(db, target_id)
        else:
            delete_comment(db, _comment_id(target_id))
    except NotFoundError:
        logger.info("report_target_missing", report_id=report_id, target_type=target_type, target_id=target_id)

    # Normally already removed together with the target
    remaining = db.query(Report).filter(Report.id == report_id).first()
    if remaining is not None:
        try:
            db.delete(remaining)
            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info("report_target_deleted", report_id=report_id, target_type=target_type, target_id=target_id)
    return {"report_id": report_id, "target_type": target_type, "target_id": target_id}
