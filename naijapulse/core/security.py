"""Security and authentication utilities.

Sign-in (OTP / magic link) happens at the external auth provider, which
issues HS256 access tokens signed with the project JWT secret. This
module only verifies those tokens and resolves the request's actor.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import HTTPException, Request

from naijapulse.core import config
from naijapulse.core.actors import Actor, AuthenticatedActor, GuestActor
from naijapulse.core.constants import (
    ACCESS_TOKEN_COOKIE,
    GUEST_ID_COOKIE,
    GUEST_ID_HEADER,
)
from naijapulse.core.sanitization import validate_guest_token
from naijapulse.core.utils import generate_guest_token

logger = structlog.get_logger(__name__)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token in the provider's format (used by tests and tooling)."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=config.settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    if config.settings.AUTH_JWT_AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = config.settings.AUTH_JWT_AUDIENCE
    return jwt.encode(to_encode, config.settings.AUTH_JWT_SECRET, algorithm=config.settings.AUTH_JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a provider access token.

    Raises:
        HTTPException: 401 if the token is expired, malformed or has no subject
    """
    options = {"verify_aud": bool(config.settings.AUTH_JWT_AUDIENCE)}
    try:
        payload = jwt.decode(
            token,
            config.settings.AUTH_JWT_SECRET,
            algorithms=[config.settings.AUTH_JWT_ALGORITHM],
            audience=config.settings.AUTH_JWT_AUDIENCE,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload


def get_bearer_token(request: Request) -> Optional[str]:
    """Access token from the Authorization header, else the access_token cookie."""
    authorization = request.headers.get("Authorization")
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def get_token_claims(request: Request) -> Optional[dict]:
    """Claims of a valid access token, or None for anonymous requests.

    Bad tokens on public routes degrade to a guest rather than failing.
    """
    token = get_bearer_token(request)
    if not token:
        return None
    try:
        return decode_access_token(token)
    except HTTPException as e:
        logger.info("access_token_rejected", reason=e.detail)
        return None


def get_guest_token(request: Request) -> Optional[str]:
    """Previously issued guest token from the request, if well-formed."""
    token = request.headers.get(GUEST_ID_HEADER) or request.cookies.get(GUEST_ID_COOKIE)
    if not token:
        return None
    try:
        return validate_guest_token(token)
    except ValueError:
        logger.info("guest_token_rejected")
        return None


def resolve_actor(request: Request) -> Actor:
    """
    Resolve the request's actor.

    Authenticated users win; otherwise the persisted guest token is reused,
    or a fresh one is generated and remembered on ``request.state`` so the
    response can persist it.
    """
    claims = get_token_claims(request)
    if claims:
        request.state.token_claims = claims
        return AuthenticatedActor(claims["sub"])

    token = get_guest_token(request)
    if token is None:
        token = generate_guest_token()
        request.state.new_guest_token = token
    return GuestActor(token)
