"""
Access rules.

Every function here is a pure decision over the caller's role and id and, where
it matters, the owner of the resource. Nothing touches the database, so the
rules can be checked without a transport or a store.
"""

from __future__ import annotations

from typing import Any, Optional

ADMIN = "admin"
TEACHER = "teacher"
STUDENT = "student"


def _is(identity: Any, role: str) -> bool:
    return identity is not None and identity.role == role


def can_access_exam(identity: Any, owner_id: Optional[int]) -> bool:
    """Admins, the owning teacher, and any student (who needs the exam to take it)."""
    if _is(identity, ADMIN):
        return True
    if _is(identity, TEACHER) and owner_id == identity.id:
        return True
    return _is(identity, STUDENT)


def can_manage_exam(identity: Any, owner_id: Optional[int]) -> bool:
    if _is(identity, ADMIN):
        return True
    return _is(identity, TEACHER) and owner_id == identity.id


def can_view_answer_key(identity: Any, review: bool = False) -> bool:
    """Staff always; a student only when reviewing an exam they may review."""
    if _is(identity, ADMIN) or _is(identity, TEACHER):
        return True
    return _is(identity, STUDENT) and review


def can_take_exam(identity: Any) -> bool:
    return _is(identity, STUDENT)


def can_author_exams(identity: Any) -> bool:
    return _is(identity, ADMIN) or _is(identity, TEACHER)


def can_register_users(identity: Any) -> bool:
    return _is(identity, ADMIN)


def can_view_result(identity: Any, student_id: int, owner_id: Optional[int]) -> bool:
    if _is(identity, STUDENT):
        return identity.id == student_id
    return can_manage_exam(identity, owner_id)
