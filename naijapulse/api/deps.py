"""Shared API dependencies."""
from typing import Any, Dict

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from naijapulse.core.actors import Actor, AuthenticatedActor
from naijapulse.core.exceptions import AlreadyVotedError, NotFoundError
from naijapulse.core.security import get_token_claims, resolve_actor
from naijapulse.db import get_db, get_db_context
from naijapulse.services.profiles import ensure_profile


def get_actor(request: Request, db: Session = Depends(get_db)) -> Actor:
    """The caller as a user (profile created on first sight) or a guest."""
    actor = resolve_actor(request)
    if isinstance(actor, AuthenticatedActor):
        request.state.profile = ensure_profile(db, actor.user_id, request.state.token_claims)
    return actor


def get_current_user(request: Request, db: Session = Depends(get_db)) -> AuthenticatedActor:
    """
    Require a signed-in user.

    Raises:
        HTTPException: 401 if the request carries no valid access token
    """
    claims = get_token_claims(request)
    if not claims:
        raise HTTPException(status_code=401, detail="Not authenticated")

    request.state.token_claims = claims
    request.state.profile = ensure_profile(db, claims["sub"], claims)
    return AuthenticatedActor(claims["sub"])


def get_current_profile(
    request: Request,
    user: AuthenticatedActor = Depends(get_current_user),
) -> Dict[str, Any]:
    return request.state.profile


def require_admin(profile: Dict[str, Any] = Depends(get_current_profile)) -> Dict[str, Any]:
    """
    Require a signed-in user whose profile has the admin flag.

    Raises:
        HTTPException: 401 if not signed in, 403 if not an admin
    """
    if not profile.get("is_admin"):
        raise HTTPException(status_code=403, detail="Admin access required")
    return profile


def get_session_factory():
    """Session factory for streams that open short sessions long after the request started."""
    return get_db_context


def http_error(error: ValueError) -> HTTPException:
    """Map a service error to the HTTP status the client should see."""
    if isinstance(error, AlreadyVotedError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


__all__ = [
    "get_db",
    "get_db_context",
    "get_actor",
    "get_current_user",
    "get_current_profile",
    "require_admin",
    "get_session_factory",
    "http_error",
]
