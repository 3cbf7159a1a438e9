from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

import lifecycle
from db import get_db
from deps.auth import CurrentUser, require_role
from models import User
from schemas.attempts import AttemptOut, ExpireData, ResultOut, StartData, SubmitData, SubmitRequest
from schemas.common import Envelope, ok
from schemas.exams import ExamSummary

router = APIRouter(tags=["attempts"])


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


@router.post("/exams/{exam_id}/attempts", response_model=Envelope[StartData])
def start_attempt(exam_id: int, request: Request, user: CurrentUser, db: Session = Depends(get_db)):
    started = lifecycle.start_attempt(
        db,
        user,
        exam_id,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    data = StartData(
        attempt_id=started.attempt.id,
        exam=ExamSummary.model_validate(started.exam),
        questions=started.questions,
        start_time=started.attempt.start_time,
    )
    return ok(data, "Exam attempt started successfully")


@router.put("/exams/{exam_id}/attempts", response_model=Envelope[SubmitData])
def submit_attempt(exam_id: int, req: SubmitRequest, user: CurrentUser, db: Session = Depends(get_db)):
    submitted = lifecycle.submit_attempt(
        db,
        user,
        exam_id,
        req.attempt_id,
        req.answers,
        time_spent=req.time_spent,
    )
    card = submitted.card
    data = SubmitData(
        result_id=submitted.result.id,
        score=card.total_score,
        total_points=card.total_points,
        percentage=round(card.percentage, 2),
        grade=card.grade,
        passed=card.passed,
        correct_answers=card.correct_count,
        wrong_answers=card.wrong_count,
        skipped_answers=card.skipped_count,
    )
    return ok(data, "Exam submitted successfully")


@router.get("/attempts/mine", response_model=Envelope[List[AttemptOut]])
def my_attempts(user: CurrentUser, db: Session = Depends(get_db)):
    rows = lifecycle.list_student_attempts(db, user)
    return ok([AttemptOut.model_validate(a) for a in rows], "Attempts retrieved successfully")


@router.get("/attempts/{attempt_id}/result", response_model=Envelope[ResultOut])
def attempt_result(attempt_id: int, user: CurrentUser, db: Session = Depends(get_db)):
    result = lifecycle.get_result_for_attempt(db, user, attempt_id)
    return ok(ResultOut.model_validate(result), "Result retrieved successfully")


@router.post("/attempts/expire", response_model=Envelope[ExpireData])
def expire_attempts(db: Session = Depends(get_db), admin: User = Depends(require_role("admin"))):
    expired = lifecycle.expire_overdue_attempts(db)
    return ok(ExpireData(expired=expired), f"{expired} attempt(s) timed out")
