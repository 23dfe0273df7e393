"""Profile business logic."""
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from naijapulse.core.constants import LANGUAGES
from naijapulse.core.exceptions import NotFoundError
from naijapulse.core.logging_config import get_logger
from naijapulse.core.sanitization import sanitize_display_name
from naijapulse.core.utils import display_name_from_claims
from naijapulse.db.models import Profile
from naijapulse.db.rows import as_row, as_rows

logger = get_logger(__name__)


def get_profile_model(db: Session, user_id: str) -> Profile:
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def get_profile(db: Session, user_id: str) -> Dict[str, Any]:
    return as_row(get_profile_model(db, user_id))


def ensure_profile(db: Session, user_id: str, claims: Optional[dict] = None) -> Dict[str, Any]:
    """Return the user's profile, creating it on first sight.

    The display name of a new profile is derived from the token claims.
    An existing profile is returned unchanged.
    """
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile is not None:
        return as_row(profile)

    profile = Profile(id=user_id, display_name=display_name_from_claims(claims or {}), is_admin=False)
    try:
        db.add(profile)
        db.commit()
    except IntegrityError:
        # Another request created it first
        db.rollback()
        return get_profile(db, user_id)
    except Exception:
        db.rollback()
        raise

    logger.info("profile_created", user_id=user_id)
    return as_row(profile)


def update_display_name(db: Session, user_id: str, display_name: str) -> Dict[str, Any]:
    profile = get_profile_model(db, user_id)
    profile.display_name = sanitize_display_name(display_name)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("profile_display_name_updated", user_id=user_id)
    return as_row(profile)


def validate_language(language: str) -> str:
    if language not in LANGUAGES:
        raise ValueError(f"Language must be one of: {', '.join(LANGUAGES)}")
    return language


def set_language(db: Session, user_id: str, language: str) -> Dict[str, Any]:
    profile = get_profile_model(db, user_id)
    profile.language = validate_language(language)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    return as_row(profile)


def list_profiles(db: Session, limit: int = 100, offset: int = 0) -> List[Dict[str, Any]]:
    profiles = (
        db.query(Profile)
        .order_by(Profile.created_at.desc(), Profile.id)
        .offset(max(offset, 0))
        .limit(limit)
        .all()
    )
    return as_rows(profiles)


def update_profile(
    db: Session,
    user_id: str,
    display_name: Optional[str] = None,
    is_admin: Optional[bool] = None,
) -> Dict[str, Any]:
    """Admin edit of another user's profile."""
    profile = get_profile_model(db, user_id)
    if display_name is not None:
        profile.display_name = sanitize_display_name(display_name)
    if is_admin is not None:
        profile.is_admin = is_admin

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("profile_updated_by_admin", user_id=user_id, is_admin=profile.is_admin)
    return as_row(profile)


def delete_profile(db: Session, user_id: str) -> None:
    profile = get_profile_model(db, user_id)

    try:
        db.delete(profile)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("profile_deleted", user_id=user_id)
