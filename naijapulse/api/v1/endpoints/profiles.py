"""Identity and profile endpoints."""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from naijapulse.api.deps import get_actor, get_current_user, get_db, http_error
from naijapulse.core import config
from naijapulse.core.actors import Actor, AuthenticatedActor
from naijapulse.core.constants import LANGUAGE_COOKIE
from naijapulse.core.rate_limit import RATE_LIMITS, limiter
from naijapulse.schemas import (
    DisplayNameUpdate,
    IdentityResponse,
    LanguageResponse,
    LanguageUpdate,
    ProfileResponse,
)
from naijapulse.services.profiles import set_language, update_display_name

router = APIRouter()

LANGUAGE_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


@router.get("", response_model=IdentityResponse)
async def whoami(request: Request, actor: Actor = Depends(get_actor)):
    """The caller's identity: profile for signed-in users, guest token otherwise."""
    if isinstance(actor, AuthenticatedActor):
        return IdentityResponse(is_guest=False, user_id=actor.user_id, profile=request.state.profile)
    return IdentityResponse(is_guest=True, guest_id=actor.token)


@router.patch("/display-name", response_model=ProfileResponse)
@limiter.limit(RATE_LIMITS["profile_write"])
async def update_display_name_endpoint(
    request: Request,
    update: DisplayNameUpdate,
    user: AuthenticatedActor = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return update_display_name(db, user.user_id, update.display_name)
    except ValueError as e:
        raise http_error(e)


@router.put("/language", response_model=LanguageResponse)
@limiter.limit(RATE_LIMITS["profile_write"])
async def set_language_endpoint(
    request: Request,
    response: Response,
    update: LanguageUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """
    Set the interface language.

    Always stored in the language cookie; mirrored to the profile when
    the caller is signed in.
    """
    persisted = False
    if isinstance(actor, AuthenticatedActor):
        try:
            set_language(db, actor.user_id, update.language)
        except ValueError as e:
            raise http_error(e)
        persisted = True

    response.set_cookie(
        key=LANGUAGE_COOKIE,
        value=update.language,
        max_age=LANGUAGE_COOKIE_MAX_AGE,
        secure=config.settings.ENVIRONMENT == "production",
        samesite="lax",
    )
    return LanguageResponse(language=update.language, persisted=persisted)
