from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from schemas.common import ApiModel, UTCDateTime


class LoginRequest(ApiModel):
    username: str = ""
    password: str = ""


class RegisterRequest(ApiModel):
    username: str
    email: str
    password: str
    role: Literal["teacher", "student"]
    full_name: str = Field(min_length=1)
    class_name: Optional[str] = Field(default=None, alias="class")
    subject: Optional[str] = None


class UserOut(ApiModel):
    """A user as clients see it; the password hash is never part of it."""

    id: int
    username: str
    email: str
    role: str
    full_name: str
    class_name: Optional[str] = Field(default=None, alias="class")
    subject: Optional[str] = None
    created_at: Optional[UTCDateTime] = None
    updated_at: Optional[UTCDateTime] = None


class LoginData(ApiModel):
    user: UserOut
    token: str


class RegisterData(ApiModel):
    user_id: int
