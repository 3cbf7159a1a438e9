"""
Narrow per-entity access to the record store.

Repositories share the caller's Session and never commit; the caller owns the
transaction so several writes can land together.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from models import (
    ATTEMPT_ABANDONED,
    ATTEMPT_IN_PROGRESS,
    Answer,
    Attempt,
    Exam,
    Question,
    Result,
    User,
)


class _Repository:
    model: Any = None

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, pk: int):
        return self.db.get(self.model, pk)

    def add(self, obj):
        """Stage and flush so constraint violations surface here."""
        self.db.add(obj)
        self.db.flush()
        return obj


class UserRepository(_Repository):
    model = User

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.username == username)).first()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.email == email)).first()

    def has_role(self, role: str) -> bool:
        return self.db.scalars(select(User.id).where(User.role == role).limit(1)).first() is not None


class ExamRepository(_Repository):
    model = Exam

    def list_all(self) -> list[Exam]:
        return list(self.db.scalars(select(Exam).order_by(Exam.created_at.desc(), Exam.id.desc())))

    def list_by_teacher(self, teacher_id: int) -> list[Exam]:
        stmt = select(Exam).where(Exam.teacher_id == teacher_id).order_by(Exam.created_at.desc(), Exam.id.desc())
        return list(self.db.scalars(stmt))

    def list_open(self, now: datetime) -> list[Exam]:
        stmt = (
            select(Exam)
            .where(Exam.is_active.is_(True), Exam.start_time <= now, Exam.end_time >= now)
            .order_by(Exam.start_time)
        )
        return list(self.db.scalars(stmt))


class QuestionRepository(_Repository):
    model = Question

    def list_for_exam(self, exam_id: int) -> list[Question]:
        stmt = select(Question).where(Question.exam_id == exam_id).order_by(Question.position, Question.id)
        return list(self.db.scalars(stmt))

    def count_for_exam(self, exam_id: int) -> int:
        return self.db.scalar(select(func.count(Question.id)).where(Question.exam_id == exam_id)) or 0

    def next_position(self, exam_id: int) -> int:
        current = self.db.scalar(select(func.max(Question.position)).where(Question.exam_id == exam_id))
        return (current or 0) + 1


class AttemptRepository(_Repository):
    model = Attempt

    def find_live(self, student_id: int, exam_id: int) -> Optional[Attempt]:
        stmt = select(Attempt).where(
            Attempt.student_id == student_id,
            Attempt.exam_id == exam_id,
            Attempt.status != ATTEMPT_ABANDONED,
        )
        return self.db.scalars(stmt).first()

    def list_for_student(self, student_id: int) -> list[Attempt]:
        stmt = select(Attempt).where(Attempt.student_id == student_id).order_by(Attempt.created_at.desc(), Attempt.id.desc())
        return list(self.db.scalars(stmt))

    def list_in_progress(self) -> list[Attempt]:
        return list(self.db.scalars(select(Attempt).where(Attempt.status == ATTEMPT_IN_PROGRESS)))

    def finish(self, attempt: Attempt, status: str, **values: Any) -> bool:
        """
        Move an attempt out of in_progress.

        The status guard is part of the UPDATE itself, so of two racing callers
        only one sees a row change. Returns False when nothing changed.
        """
        stmt = (
            update(Attempt)
            .where(Attempt.id == attempt.id, Attempt.status == ATTEMPT_IN_PROGRESS)
            .values(status=status, **values)
            .execution_options(synchronize_session=False)
        )
        changed = self.db.execute(stmt).rowcount == 1
        self.db.refresh(attempt)
        return changed


class AnswerRepository(_Repository):
    model = Answer

    def list_for_attempt(self, attempt_id: int) -> list[Answer]:
        return list(self.db.scalars(select(Answer).where(Answer.attempt_id == attempt_id).order_by(Answer.id)))


class ResultRepository(_Repository):
    model = Result

    def find_by_attempt(self, attempt_id: int) -> Optional[Result]:
        return self.db.scalars(select(Result).where(Result.attempt_id == attempt_id)).first()

    def list_for_exam(self, exam_id: int) -> list[Result]:
        stmt = select(Result).where(Result.exam_id == exam_id).order_by(Result.percentage.desc(), Result.id)
        return list(self.db.scalars(stmt))

    def stats_for_exam(self, exam_id: int) -> dict[str, Any]:
        row = self.db.execute(
            select(
                func.count(Result.id),
                func.avg(Result.percentage),
                func.count(Result.id).filter(Result.passed.is_(True)),
            ).where(Result.exam_id == exam_id)
        ).one()
        total, average, passed = row
        return {
            "total_attempts": total or 0,
            "average_score": round(float(average), 2) if average is not None else 0.0,
            "passed_count": passed or 0,
        }
