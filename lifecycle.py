"""
Exam attempt lifecycle.

An attempt moves in_progress -> completed on submission. The store's partial
unique index on (student_id, exam_id) is what guarantees a single live attempt
per pair: starting is a plain insert and a uniqueness violation is reported as
"already attempted". Submission flips the status with a guarded UPDATE and
writes answers and the result in the same transaction.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import policy
from errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from models import (
    ATTEMPT_COMPLETED,
    ATTEMPT_IN_PROGRESS,
    ATTEMPT_TIME_OUT,
    Answer,
    Attempt,
    Exam,
    Question,
    Result,
    User,
    as_utc,
    utcnow,
)
from repositories import (
    AnswerRepository,
    AttemptRepository,
    ExamRepository,
    QuestionRepository,
    ResultRepository,
)
from scoring import ScoreCard, score_answers

logger = logging.getLogger(__name__)

PASSED_FEEDBACK = "Congratulations! You passed this exam."
FAILED_FEEDBACK = "You did not pass this exam yet. Keep studying and try to improve."

_USER_AGENT_MAX = 512


@dataclass
class StartedAttempt:
    attempt: Attempt
    exam: Exam
    questions: List[Dict[str, Any]]


@dataclass
class SubmittedAttempt:
    attempt: Attempt
    result: Result
    card: ScoreCard


def public_question(q: Question) -> Dict[str, Any]:
    """Question fields a test taker may see; the answer key and explanation stay behind."""
    return {
        "id": q.id,
        "question_text": q.question_text,
        "question_type": q.question_type,
        "options": list(q.options or []),
        "points": q.points,
        "image_url": q.image_url,
        "order": q.position,
    }


def present_questions(
    questions: List[Question], shuffle: bool, rng: Optional[random.Random] = None
) -> List[Dict[str, Any]]:
    """Build the response view. Shuffling reorders this list only, never the stored positions."""
    view = [public_question(q) for q in questions]
    if shuffle:
        (rng or random.Random()).shuffle(view)
    return view


def _require_student(identity: User) -> None:
    if not policy.can_take_exam(identity):
        raise AuthorizationError("Student access required", reason="students_only")


def start_attempt(
    db: Session,
    student: User,
    exam_id: int,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> StartedAttempt:
    _require_student(student)
    now = now or utcnow()

    exam = ExamRepository(db).get(exam_id)
    if exam is None:
        raise NotFoundError("Exam not found", reason="exam_not_found")
    if not exam.is_active:
        raise ValidationError("This exam is not active", reason="exam_inactive")
    if now < as_utc(exam.start_time):
        raise ValidationError("Exam has not started yet", reason="exam_not_started")
    if now > as_utc(exam.end_time):
        raise ValidationError("Exam has ended", reason="exam_ended")

    student_id = student.id
    attempts = AttemptRepository(db)
    attempt = Attempt(
        exam_id=exam.id,
        student_id=student_id,
        start_time=now,
        status=ATTEMPT_IN_PROGRESS,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:_USER_AGENT_MAX] or None,
    )
    try:
        attempts.add(attempt)
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = attempts.find_live(student_id, exam_id)
        if existing is None:
            raise
        logger.info("Student %s already has attempt %s for exam %s", student_id, existing.id, exam_id)
        raise ConflictError(
            "You have already taken this exam",
            reason="already_attempted",
            data={"attempt_id": existing.id},
        )

    logger.info("Student %s started attempt %s for exam %s", student_id, attempt.id, exam.id)
    questions = QuestionRepository(db).list_for_exam(exam.id)
    return StartedAttempt(attempt, exam, present_questions(questions, exam.shuffle_questions, rng))


def _closed_attempt_conflict(db: Session, attempt: Attempt) -> ConflictError:
    if attempt.status == ATTEMPT_COMPLETED:
        result = ResultRepository(db).find_by_attempt(attempt.id)
        return ConflictError(
            "Attempt already completed",
            reason="attempt_completed",
            data={"attempt_id": attempt.id, "result_id": result.id if result else None},
        )
    return ConflictError(
        f"Attempt is {attempt.status} and can no longer be submitted",
        reason="attempt_closed",
        data={"attempt_id": attempt.id},
    )


def submit_attempt(
    db: Session,
    student: User,
    exam_id: int,
    attempt_id: int,
    answers: Mapping[Any, Any],
    time_spent: Optional[int] = None,
    now: Optional[datetime] = None,
) -> SubmittedAttempt:
    _require_student(student)
    now = now or utcnow()

    attempts = AttemptRepository(db)
    attempt = attempts.get(attempt_id)
    if attempt is None or attempt.student_id != student.id or attempt.exam_id != exam_id:
        raise NotFoundError("Invalid attempt", reason="invalid_attempt")
    if attempt.status != ATTEMPT_IN_PROGRESS:
        raise _closed_attempt_conflict(db, attempt)

    exam = ExamRepository(db).get(exam_id)
    questions = QuestionRepository(db).list_for_exam(exam_id)
    card = score_answers(questions, answers, exam.passing_score)
    elapsed = max(int(time_spent or 0), 0)

    try:
        finished = attempts.finish(
            attempt,
            ATTEMPT_COMPLETED,
            end_time=now,
            score=card.total_score,
            total_points=card.total_points,
            percentage=card.percentage,
            time_spent=elapsed,
        )
        if not finished:
            db.rollback()
            raise _closed_attempt_conflict(db, attempt)

        answer_rows = AnswerRepository(db)
        for mark in card.marks:
            # per-question timing is not collected; stored as 0
            answer_rows.add(
                Answer(
                    attempt_id=attempt.id,
                    question_id=mark.question_id,
                    answer=mark.answer,
                    is_correct=mark.is_correct,
                    points_earned=mark.points_earned,
                    time_spent=0,
                )
            )
        result = ResultRepository(db).add(
            Result(
                attempt_id=attempt.id,
                student_id=student.id,
                exam_id=exam_id,
                score=card.total_score,
                total_points=card.total_points,
                percentage=card.percentage,
                grade=card.grade,
                passed=card.passed,
                completion_time=elapsed,
                correct_answers=card.correct_count,
                wrong_answers=card.wrong_count,
                skipped_answers=card.skipped_count,
                feedback=PASSED_FEEDBACK if card.passed else FAILED_FEEDBACK,
            )
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        db.refresh(attempt)
        raise _closed_attempt_conflict(db, attempt)

    logger.info(
        "Student %s submitted attempt %s: %s/%s (%s)",
        student.id,
        attempt.id,
        card.total_score,
        card.total_points,
        card.grade,
    )
    return SubmittedAttempt(attempt, result, card)


def expire_overdue_attempts(db: Session, now: Optional[datetime] = None) -> int:
    """
    Time out in_progress attempts that outlived the exam duration or whose
    exam window has closed, whichever comes first.

    Explicit housekeeping, never scheduled by the service itself. Safe to run
    repeatedly: only attempts still in progress are touched. The score is what
    the scoring engine gives for an empty submission; no Result row is written
    because results belong to completed attempts only.
    """
    now = now or utcnow()
    attempts = AttemptRepository(db)
    questions = QuestionRepository(db)
    question_lists: Dict[int, List[Question]] = {}
    expired = 0

    for attempt in attempts.list_in_progress():
        exam = attempt.exam
        started = as_utc(attempt.start_time)
        deadline = min(started + timedelta(minutes=exam.duration), as_utc(exam.end_time))
        if now <= deadline:
            continue
        if exam.id not in question_lists:
            question_lists[exam.id] = questions.list_for_exam(exam.id)
        card = score_answers(question_lists[exam.id], {}, exam.passing_score)
        if attempts.finish(
            attempt,
            ATTEMPT_TIME_OUT,
            end_time=now,
            score=card.total_score,
            total_points=card.total_points,
            percentage=card.percentage,
            time_spent=max(int((deadline - started).total_seconds()), 0),
        ):
            expired += 1

    db.commit()
    if expired:
        logger.info("Timed out %s overdue attempt(s)", expired)
    return expired


def review_permitted(db: Session, identity: User, exam: Exam) -> bool:
    """A student may see the answer key once they completed an exam that allows review."""
    if not policy.can_take_exam(identity) or not exam.allow_review:
        return False
    attempt = AttemptRepository(db).find_live(identity.id, exam.id)
    return attempt is not None and attempt.status == ATTEMPT_COMPLETED


def list_student_attempts(db: Session, student: User) -> List[Attempt]:
    _require_student(student)
    return AttemptRepository(db).list_for_student(student.id)


def get_result_for_attempt(db: Session, identity: User, attempt_id: int) -> Result:
    attempt = AttemptRepository(db).get(attempt_id)
    if attempt is None:
        raise NotFoundError("Attempt not found", reason="attempt_not_found")
    if not policy.can_view_result(identity, attempt.student_id, attempt.exam.teacher_id):
        raise AuthorizationError("Unauthorized to view this result")
    result = ResultRepository(db).find_by_attempt(attempt.id)
    if result is None:
        raise NotFoundError("Attempt has no result yet", reason="result_not_found")
    return result
