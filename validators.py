from __future__ import annotations

import re
from typing import List

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_BYTES = 72


def username_problems(username: str) -> List[str]:
    errors = []
    if len(username) < 3:
        errors.append("Username must be at least 3 characters long")
    if len(username) > 20:
        errors.append("Username must be less than 20 characters")
    if not _USERNAME_RE.fullmatch(username):
        errors.append("Username can only contain letters, numbers, and underscores")
    return errors


def is_valid_email(email: str) -> bool:
    return _EMAIL_RE.fullmatch(email) is not None


def password_problems(password: str) -> List[str]:
    errors = []
    if len(password) < 6:
        errors.append("Password must be at least 6 characters long")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        errors.append(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    if not re.search(r"[A-Za-z]", password):
        errors.append("Password must contain at least one letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    return errors
