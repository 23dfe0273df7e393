"""Server-Sent Events endpoints."""
import asyncio
import json
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import DatabaseError, SQLAlchemyError
from sqlalchemy.orm import Session

from naijapulse.api.deps import get_actor, get_db, get_session_factory, http_error, require_admin
from naijapulse.core.actors import Actor
from naijapulse.core.config import settings
from naijapulse.core.exceptions import NotFoundError
from naijapulse.core.logging_config import get_logger
from naijapulse.realtime.bus import NotificationBus, notification_bus, parse_topics
from naijapulse.realtime.composer import PollViewComposer
from naijapulse.realtime.moderation import ModerationFeed
from naijapulse.services.polls import get_poll

logger = get_logger(__name__)
router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable buffering in nginx
}

MAX_CONSECUTIVE_ERRORS = 3


def format_event(data: Any, event: Optional[str] = None) -> str:
    """Encode one SSE message."""
    payload = json.dumps(jsonable_encoder(data))
    if event:
        return f"event: {event}\ndata: {payload}\n\n"
    return f"data: {payload}\n\n"


async def live_view_generator(request: Request, view, render, interval: float):
    """
    Generic SSE generator for a live view (poll composer or moderation feed).

    Emits ``render(view)`` once the view is open, then after every change.
    When nothing changes for ``interval`` seconds the view refetches its
    snapshot to cover missed events.

    Args:
        request: FastAPI request object to check for client disconnect
        view: Async context manager with wait_for_change() and refetch()
        render: Returns the payload for the current state
        interval: Seconds without changes before a full refetch
    """
    consecutive_errors = 0

    try:
        async with view:
            yield format_event(render(view))

            while True:
                if await request.is_disconnected():
                    break

                changed = await view.wait_for_change(timeout=interval)

                try:
                    if not changed:
                        await view.refetch()
                    yield format_event(render(view))
                    consecutive_errors = 0
                except (SQLAlchemyError, DatabaseError) as e:
                    consecutive_errors += 1
                    logger.warning(
                        "sse_database_error",
                        attempt=consecutive_errors,
                        max_attempts=MAX_CONSECUTIVE_ERRORS,
                        error=str(e),
                    )
                    if consecutive_errors >= MAX_CONSECUTIVE_ERRORS:
                        yield format_event({"error": "Service temporarily unavailable"}, event="error")
                        break

                if getattr(view, "deleted", False):
                    yield format_event({"error": "Poll not found"}, event="deleted")
                    break

    except NotFoundError as e:
        # Gone between the request's point read and the stream opening
        yield format_event({"error": str(e)}, event="error")
    except (SQLAlchemyError, DatabaseError) as e:
        logger.warning("sse_open_failed", error=str(e))
        yield format_event({"error": "Service temporarily unavailable"}, event="error")
    except asyncio.CancelledError:
        # Client disconnected
        pass
    except Exception as e:
        logger.exception("sse_unexpected_error", error=str(e))
        yield format_event({"error": "Internal error"}, event="error")


async def notification_generator(request: Request, bus: NotificationBus, topics, keepalive: float):
    """Stream bus notifications for ``topics``; comment lines keep idle proxies open."""
    subscription = bus.subscribe(topics)
    try:
        while True:
            if await request.is_disconnected():
                break
            notification = await subscription.get(timeout=keepalive)
            if notification is None:
                yield ": keepalive\n\n"
                continue
            yield format_event(notification.to_dict(), event="notification")
    except asyncio.CancelledError:
        pass
    finally:
        subscription.close()


@router.get("/sse/polls/{poll_id}")
async def sse_poll(
    request: Request,
    poll_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
    session_factory=Depends(get_session_factory),
):
    """
    SSE stream of one poll's live view for the caller.

    Each message carries the poll, per-option results, the caller's vote
    eligibility and the threaded comments. A message is sent on connect,
    after every vote/comment/poll change, and after a full refetch when
    SSE_POLL_REFRESH_INTERVAL seconds pass without changes.

    Returns 404 before streaming if the poll does not exist. An ``error``
    event ends the stream after repeated database failures; a ``deleted``
    event ends it when the poll is removed.
    """
    try:
        get_poll(db, poll_id)
    except ValueError as e:
        raise http_error(e)

    composer = PollViewComposer(poll_id, actor, session_factory=session_factory)

    return StreamingResponse(
        live_view_generator(
            request,
            composer,
            lambda view: view.view(),
            interval=settings.SSE_POLL_REFRESH_INTERVAL,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/sse/admin/reports", dependencies=[Depends(require_admin)])
async def sse_admin_reports(request: Request, session_factory=Depends(get_session_factory)):
    """
    SSE stream of the moderation queue (admin only).

    Reports are newest first and enriched with a preview of their target.
    """
    feed = ModerationFeed(session_factory=session_factory)

    return StreamingResponse(
        live_view_generator(
            request,
            feed,
            lambda view: {"reports": view.reports, "live": view.is_live},
            interval=settings.SSE_ADMIN_REFRESH_INTERVAL,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/sse/notifications")
async def sse_notifications(request: Request, topics: str = ""):
    """
    SSE stream of site-wide notifications.

    Query params:
        topics: Comma-separated subset of vote.created, comment.created,
            report.created, poll.created (default: all)
    """
    try:
        selected = parse_topics(topics)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return StreamingResponse(
        notification_generator(request, notification_bus, selected, keepalive=settings.SSE_KEEPALIVE_INTERVAL),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
