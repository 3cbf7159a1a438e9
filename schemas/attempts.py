from typing import Any, Dict, List, Optional

from pydantic import Field

from schemas.common import ApiModel, UTCDateTime
from schemas.exams import ExamSummary, QuestionView


class StartData(ApiModel):
    attempt_id: int
    exam: ExamSummary
    questions: List[QuestionView]
    start_time: UTCDateTime


class SubmitRequest(ApiModel):
    attempt_id: int
    # keyed by question id; values are whatever the client picked or typed
    answers: Dict[int, Any]
    time_spent: Optional[int] = Field(default=0, ge=0)  # seconds, client-reported


class SubmitData(ApiModel):
    result_id: int
    score: int
    total_points: int
    percentage: float
    grade: str
    passed: bool
    correct_answers: int
    wrong_answers: int
    skipped_answers: int


class AttemptOut(ApiModel):
    id: int
    exam_id: int
    student_id: int
    status: str
    start_time: UTCDateTime
    end_time: Optional[UTCDateTime] = None
    score: Optional[int] = None
    total_points: Optional[int] = None
    percentage: Optional[float] = None
    time_spent: int = 0


class ResultOut(ApiModel):
    id: int
    attempt_id: int
    student_id: int
    exam_id: int
    score: int
    total_points: int
    percentage: float
    grade: str
    passed: bool
    completion_time: int
    correct_answers: int
    wrong_answers: int
    skipped_answers: int
    feedback: Optional[str] = None
    created_at: Optional[UTCDateTime] = None


class ExamResultsData(ApiModel):
    results: List[ResultOut]
    total_attempts: int
    average_score: float
    passed_count: int


class ExpireData(ApiModel):
    expired: int
