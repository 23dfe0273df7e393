"""Persist freshly generated guest identities."""
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from naijapulse.core import config
from naijapulse.core.constants import GUEST_ID_COOKIE

logger = structlog.get_logger(__name__)

# Guest identity lives for the lifetime of the browser profile
GUEST_COOKIE_MAX_AGE = 60 * 60 * 24 * 365 * 5


class GuestIdentityMiddleware(BaseHTTPMiddleware):
    """Set the guestId cookie when a request had to mint a new guest token.

    Tokens are generated lazily by ``resolve_actor`` and parked on
    ``request.state``; this writes them back so the next request reuses
    the same identity.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        token = getattr(request.state, "new_guest_token", None)
        if token:
            response.set_cookie(
                key=GUEST_ID_COOKIE,
                value=token,
                max_age=GUEST_COOKIE_MAX_AGE,
                httponly=False,  # the frontend reads it for optimistic "my vote" checks
                secure=config.settings.ENVIRONMENT == "production",
                samesite="lax",
            )
            logger.info("guest_identity_issued")

        return response
