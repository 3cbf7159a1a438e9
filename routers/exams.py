from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import policy
from db import get_db
from deps.auth import CurrentUser
from errors import AuthorizationError, NotFoundError, ValidationError
from lifecycle import public_question, review_permitted
from models import Exam, Question, User, as_utc, utcnow
from repositories import ExamRepository, QuestionRepository, ResultRepository, UserRepository
from schemas.attempts import ExamResultsData, ResultOut
from schemas.common import Envelope, ok
from schemas.exams import (
    ExamCreate,
    ExamCreated,
    ExamDetail,
    ExamOut,
    ExamUpdate,
    QuestionCreate,
    QuestionOut,
    QuestionView,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exams", tags=["exams"])


def _get_exam(db: Session, exam_id: int) -> Exam:
    exam = ExamRepository(db).get(exam_id)
    if exam is None:
        raise NotFoundError("Exam not found", reason="exam_not_found")
    return exam


def _managed_exam(db: Session, user: User, exam_id: int, action: str) -> Exam:
    exam = _get_exam(db, exam_id)
    if not policy.can_manage_exam(user, exam.teacher_id):
        logger.warning("User %s may not %s exam %s", user.username, action, exam_id)
        raise AuthorizationError(f"Unauthorized to {action} this exam")
    return exam


def _full_question(q: Question) -> Dict[str, Any]:
    view = {**public_question(q), "correct_answer": q.correct_answer, "explanation": q.explanation}
    return QuestionOut.model_validate(view).model_dump(by_alias=True)


@router.get("", response_model=Envelope[List[ExamOut]])
def list_exams(
    user: CurrentUser,
    db: Session = Depends(get_db),
    teacher_id: Optional[int] = Query(default=None, alias="teacherId"),
    active_only: bool = Query(default=False, alias="activeOnly"),
):
    exams = ExamRepository(db)
    if teacher_id is not None:
        if not policy.can_access_exam(user, teacher_id):
            raise AuthorizationError("Unauthorized to view these exams")
        rows = exams.list_by_teacher(teacher_id)
    elif active_only:
        rows = exams.list_open(utcnow())
    else:
        if user.role != policy.ADMIN:
            raise AuthorizationError("Admin access required")
        rows = exams.list_all()
    return ok([ExamOut.model_validate(e) for e in rows], "Exams retrieved successfully")


@router.post("", response_model=Envelope[ExamCreated])
def create_exam(req: ExamCreate, user: CurrentUser, db: Session = Depends(get_db)):
    if not policy.can_author_exams(user):
        raise AuthorizationError("Teacher or admin access required")

    teacher_id = user.id
    if user.role == policy.ADMIN and req.teacher_id is not None:
        owner = UserRepository(db).get(req.teacher_id)
        if owner is None or owner.role != policy.TEACHER:
            raise ValidationError(
                "teacherId must name a teacher",
                errors=[{"field": "teacherId", "detail": "Unknown teacher"}],
            )
        teacher_id = owner.id

    exam = Exam(
        title=req.title,
        description=req.description,
        subject=req.subject,
        teacher_id=teacher_id,
        duration=req.duration,
        passing_score=req.passing_score,
        start_time=req.start_time,
        end_time=req.end_time,
        is_active=req.is_active,
        allow_review=req.allow_review,
        shuffle_questions=req.shuffle_questions,
        total_questions=0,
    )
    ExamRepository(db).add(exam)
    db.commit()
    logger.info("User %s created exam %s for teacher %s", user.username, exam.id, teacher_id)
    return ok(ExamCreated(exam_id=exam.id), "Exam created successfully")


@router.get("/{exam_id}", response_model=Envelope[ExamDetail])
def get_exam(
    exam_id: int,
    user: CurrentUser,
    db: Session = Depends(get_db),
    include_questions: bool = Query(default=False, alias="includeQuestions"),
    include_answers: bool = Query(default=False, alias="includeAnswers"),
):
    exam = _get_exam(db, exam_id)
    if not policy.can_access_exam(user, exam.teacher_id):
        raise AuthorizationError("Unauthorized to access this exam")

    detail = ExamDetail.model_validate(exam)
    if include_questions:
        questions = QuestionRepository(db).list_for_exam(exam.id)
        review = include_answers and review_permitted(db, user, exam)
        if policy.can_view_answer_key(user, review=review):
            detail.questions = [_full_question(q) for q in questions]
        else:
            detail.questions = [
                QuestionView.model_validate(public_question(q)).model_dump(by_alias=True) for q in questions
            ]
    return ok(detail, "Exam retrieved successfully")


@router.put("/{exam_id}", response_model=Envelope[ExamOut])
def update_exam(exam_id: int, req: ExamUpdate, user: CurrentUser, db: Session = Depends(get_db)):
    exam = _managed_exam(db, user, exam_id, "update")

    changes = req.model_dump(exclude_unset=True)
    start = changes.get("start_time") or as_utc(exam.start_time)
    end = changes.get("end_time") or as_utc(exam.end_time)
    if start >= end:
        raise ValidationError(
            "End time must be after start time",
            errors=[{"field": "endTime", "detail": "End time must be after start time"}],
        )
    for field, value in changes.items():
        if value is None:
            continue
        setattr(exam, field, value)
    db.commit()
    db.refresh(exam)
    logger.info("User %s updated exam %s: %s", user.username, exam.id, sorted(changes))
    return ok(ExamOut.model_validate(exam), "Exam updated successfully")


@router.delete("/{exam_id}", response_model=Envelope[ExamOut])
def deactivate_exam(exam_id: int, user: CurrentUser, db: Session = Depends(get_db)):
    # never a physical delete: attempts and results keep pointing at the exam
    exam = _managed_exam(db, user, exam_id, "delete")
    exam.is_active = False
    db.commit()
    db.refresh(exam)
    logger.info("User %s deactivated exam %s", user.username, exam.id)
    return ok(ExamOut.model_validate(exam), "Exam deactivated successfully")


@router.post("/{exam_id}/questions", response_model=Envelope[QuestionOut])
def add_question(exam_id: int, req: QuestionCreate, user: CurrentUser, db: Session = Depends(get_db)):
    exam = _managed_exam(db, user, exam_id, "update")
    questions = QuestionRepository(db)

    question = Question(
        exam_id=exam.id,
        question_text=req.question_text,
        question_type=req.question_type,
        options=req.options,
        correct_answer=req.correct_answer,
        points=req.points,
        explanation=req.explanation,
        image_url=req.image_url,
        position=req.order or questions.next_position(exam.id),
    )
    questions.add(question)
    exam.total_questions = questions.count_for_exam(exam.id)
    db.commit()
    return ok(_full_question(question), "Question created successfully")


@router.get("/{exam_id}/results", response_model=Envelope[ExamResultsData])
def exam_results(exam_id: int, user: CurrentUser, db: Session = Depends(get_db)):
    exam = _managed_exam(db, user, exam_id, "view results of")
    results = ResultRepository(db)
    stats = results.stats_for_exam(exam.id)
    data = ExamResultsData(
        results=[ResultOut.model_validate(r) for r in results.list_for_exam(exam.id)],
        **stats,
    )
    return ok(data, "Results retrieved successfully")
