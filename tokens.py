"""
Signed identity tokens.

Tokens are HS256 JWTs that live for a fixed seven days. Nothing is stored
server side: a token is valid while its signature checks out and its expiry is
in the future, so logging out only clears the client's cookie.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime, timedelta
from typing import Optional

from jose import JOSEError, jwt
from jose.utils import base64url_decode, base64url_encode
from pydantic import BaseModel
from sqlalchemy.orm import Session

from models import User
from repositories import UserRepository

logger = logging.getLogger(__name__)

_DEV_SECRET = "exam-authority-dev-secret-change-me"

# Load once at module import
SECRET_KEY = os.getenv("JWT_SECRET", "")
if not SECRET_KEY:
    logger.warning("JWT_SECRET is not set; falling back to the development secret. Do not run like this in production.")
    SECRET_KEY = _DEV_SECRET

ALGORITHM = "HS256"
TOKEN_TTL = timedelta(days=7)

AUTH_COOKIE = "auth-token"
BEARER_SCHEME = "bearer"


class TokenPayload(BaseModel):
    """Claims carried by a verified token."""

    user_id: int
    username: str
    role: str
    iat: datetime
    exp: datetime


def _timestamp(now: Optional[datetime]) -> int:
    return int((now or datetime.now(UTC)).timestamp())


def issue_token(user: User, now: Optional[datetime] = None) -> str:
    issued_at = _timestamp(now)
    payload = {
        "user_id": user.id,
        "username": user.username,
        "role": user.role,
        "iat": issued_at,
        "exp": issued_at + int(TOKEN_TTL.total_seconds()),
    }
    token = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
    logger.info("Issued token for user: %s", user.username)
    return token


def _is_canonical(token: str) -> bool:
    # base64 decoders ignore the spare low bits of the final character, so two
    # spellings can carry the same signature; only the canonical one is accepted.
    parts = token.split(".")
    if len(parts) != 3:
        return False
    for part in parts:
        raw = part.encode("ascii")
        if base64url_encode(base64url_decode(raw)) != raw:
            return False
    return True


def decode_token(token: str, now: Optional[datetime] = None) -> Optional[TokenPayload]:
    """
    Verify a token's signature and expiry.

    Returns the claims, or None for anything malformed, tampered with or
    expired. Never raises: callers treat this as a lookup.
    """
    try:
        if not _is_canonical(token):
            logger.warning("Token verification failed: non-canonical encoding")
            return None
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], options={"verify_exp": False})
        exp = int(claims["exp"])
        if _timestamp(now) >= exp:
            logger.warning("Token has expired")
            return None
        return TokenPayload(
            user_id=claims["user_id"],
            username=claims["username"],
            role=claims["role"],
            iat=datetime.fromtimestamp(int(claims["iat"]), tz=UTC),
            exp=datetime.fromtimestamp(exp, tz=UTC),
        )
    except JOSEError as e:
        logger.warning("Token verification failed: %s", type(e).__name__)
        return None
    except (KeyError, TypeError, ValueError) as e:
        # includes binascii/unicode errors and claim validation failures
        logger.warning("Token verification failed: %s", type(e).__name__)
        return None


def resolve_token(db: Session, token: str, now: Optional[datetime] = None) -> Optional[User]:
    """Verify a token and return the live user record it names."""
    payload = decode_token(token, now=now)
    if payload is None:
        return None
    user = UserRepository(db).get(payload.user_id)
    if user is None:
        logger.warning("Token names unknown user id %s", payload.user_id)
    return user


def token_from_request(authorization: Optional[str], cookie: Optional[str]) -> Optional[str]:
    """The Authorization header wins over the cookie when both are present."""
    if authorization:
        # auth schemes are case-insensitive
        scheme, _, token = authorization.partition(" ")
        token = token.strip()
        if scheme.lower() == BEARER_SCHEME and token:
            return token
    return cookie or None
