"""Request authentication.

The front end signs users in and hands the backend a signed session token
(HS256, keyed by ``NEXTAUTH_SECRET``) either as a bearer token or in one of
the NextAuth session cookies. The ``sub`` claim is the user id.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import settings
from app.errors import AppError

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAMES = (
    "__Secure-authjs.session-token",
    "authjs.session-token",
    "__Secure-next-auth.session-token",
    "next-auth.session-token",
)
DEV_TOKEN = "dev-token"
DEV_USER_ID = "dev-user-id"

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    """The verified caller, passed explicitly into every service call."""

    user_id: str


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    for name in SESSION_COOKIE_NAMES:
        value = request.cookies.get(name)
        if value:
            return value
    return None


def verify_session_token(token: str) -> str:
    """Return the user id carried by ``token`` or raise an unauthorized AppError."""
    if settings.is_development and token == DEV_TOKEN:
        logger.debug("Auth: using dev token bypass")
        return DEV_USER_ID

    try:
        # expiry is checked below so a missing exp claim is tolerated
        claims = jwt.decode(
            token,
            settings.NEXTAUTH_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False, "verify_exp": False},
        )
    except JWTError as exc:
        logger.info("Auth: invalid token: %s", exc)
        raise AppError.unauthorized("Invalid token")

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        logger.info("Auth: token has no 'sub' claim")
        raise AppError.unauthorized("Invalid token content")

    exp = claims.get("exp")
    if isinstance(exp, (int, float)) and exp < datetime.now(timezone.utc).timestamp():
        logger.info("Auth: token expired for %s", subject)
        raise AppError.unauthorized("Token expired")

    return subject


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> AuthenticatedUser:
    """FastAPI dependency: the authenticated caller, or 401."""
    token = _extract_token(request, credentials)
    if not token:
        raise AppError.unauthorized("No token provided")
    return AuthenticatedUser(user_id=verify_session_token(token))


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[AuthenticatedUser]:
    """Like ``get_current_user`` but anonymous callers yield ``None``."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    return AuthenticatedUser(user_id=verify_session_token(token))
