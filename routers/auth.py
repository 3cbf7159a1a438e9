from __future__ import annotations

import logging
import os

from fastapi import APIRouter, Depends, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db import get_db
from deps.auth import CurrentUser, require_role
from errors import AuthenticationError, ConflictError, ValidationError
from models import User
from passwords import hash_password, verify_password
from repositories import UserRepository
from schemas.auth import LoginData, LoginRequest, RegisterData, RegisterRequest, UserOut
from schemas.common import Envelope, ok
from tokens import AUTH_COOKIE, TOKEN_TTL, issue_token
from validators import is_valid_email, password_problems, username_problems

logger = logging.getLogger(__name__)

SECURE_COOKIES = os.getenv("APP_ENV", "development") == "production"

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_auth_cookie(response: Response, token: str, max_age: int) -> None:
    response.set_cookie(
        AUTH_COOKIE,
        token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=SECURE_COOKIES,
        samesite="strict",
    )


@router.post("/login", response_model=Envelope[LoginData])
def login(req: LoginRequest, response: Response, db: Session = Depends(get_db)):
    if not req.username or not req.password:
        raise ValidationError("Username and password are required", reason="credentials_required")

    user = UserRepository(db).find_by_username(req.username)
    # one message for unknown user and wrong password
    if user is None or not verify_password(req.password, user.password_hash):
        logger.info("Failed login for username: %s", req.username)
        raise AuthenticationError("Invalid username or password", reason="invalid_credentials")

    token = issue_token(user)
    _set_auth_cookie(response, token, int(TOKEN_TTL.total_seconds()))
    logger.info("User logged in: %s", user.username)
    return ok(LoginData(user=UserOut.model_validate(user), token=token), "Login successful")


@router.post("/register", response_model=Envelope[RegisterData])
def register(
    req: RegisterRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_role("admin")),
):
    problems = username_problems(req.username)
    if problems:
        raise ValidationError(
            "Username validation failed",
            errors=[{"field": "username", "detail": p} for p in problems],
        )
    if not is_valid_email(req.email):
        raise ValidationError("Invalid email format", errors=[{"field": "email", "detail": "Invalid email format"}])
    problems = password_problems(req.password)
    if problems:
        raise ValidationError(
            "Password validation failed",
            errors=[{"field": "password", "detail": p} for p in problems],
        )

    users = UserRepository(db)
    if users.find_by_username(req.username):
        raise ConflictError("Username already exists", reason="duplicate_username")
    if users.find_by_email(req.email):
        raise ConflictError("Email already exists", reason="duplicate_email")

    user = User(
        username=req.username,
        email=req.email,
        password_hash=hash_password(req.password),
        role=req.role,
        full_name=req.full_name,
        class_name=req.class_name,
        subject=req.subject,
    )
    try:
        users.add(user)
        db.commit()
    except IntegrityError:
        # lost a race with another registration
        db.rollback()
        raise ConflictError("Username or email already exists", reason="duplicate_user")

    logger.info("Admin %s registered %s %s", admin.username, user.role, user.username)
    return ok(RegisterData(user_id=user.id), "User created successfully")


@router.get("/me", response_model=Envelope[UserOut])
def me(user: CurrentUser):
    return ok(UserOut.model_validate(user), "Token valid")


@router.post("/verify", response_model=Envelope[UserOut])
def verify(user: CurrentUser):
    return ok(UserOut.model_validate(user), "Token valid")


@router.post("/logout", response_model=Envelope[None])
def logout(response: Response):
    # Stateless tokens: clearing the cookie is all a logout can do.
    _set_auth_cookie(response, "", 0)
    return ok(None, "Logged out successfully")
