import logging
from typing import Annotated, Callable, Optional

from fastapi import Cookie, Depends, Header
from sqlalchemy.orm import Session

from db import get_db
from errors import AuthenticationError, AuthorizationError
from models import User
from tokens import AUTH_COOKIE, resolve_token, token_from_request

logger = logging.getLogger(__name__)


def get_current_user(
    authorization: Annotated[Optional[str], Header()] = None,
    auth_token: Annotated[Optional[str], Cookie(alias=AUTH_COOKIE)] = None,
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the caller from a Bearer header or the auth cookie.
    The header wins when both are sent.
    """
    token = token_from_request(authorization, auth_token)
    if not token:
        raise AuthenticationError("Authentication required. Please provide a valid token.", reason="token_missing")
    user = resolve_token(db, token)
    if user is None:
        raise AuthenticationError("Invalid or expired token", reason="token_invalid")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_role(*roles: str) -> Callable[..., User]:
    """Dependency factory: the caller must hold one of ``roles``."""

    def role_checker(user: CurrentUser) -> User:
        if user.role not in roles:
            logger.warning("Access denied for %s with role %s; required %s", user.username, user.role, roles)
            raise AuthorizationError(f"Access denied. Required role(s): {', '.join(roles)}")
        return user

    return role_checker
