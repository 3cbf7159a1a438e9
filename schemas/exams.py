from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, model_validator

from schemas.common import ApiModel, UTCDateTime

QuestionType = Literal["multiple_choice", "true_false", "essay"]


class ExamCreate(ApiModel):
    title: str = Field(min_length=1)
    description: str = ""
    subject: str = Field(min_length=1)
    duration: int = Field(gt=0)  # minutes
    passing_score: int = Field(default=60, ge=0, le=100)
    start_time: UTCDateTime
    end_time: UTCDateTime
    is_active: bool = True
    allow_review: bool = True
    shuffle_questions: bool = False
    # only honoured for admins creating on behalf of a teacher
    teacher_id: Optional[int] = None

    @model_validator(mode="after")
    def _window(self):
        if self.start_time >= self.end_time:
            raise ValueError("End time must be after start time")
        return self


class ExamUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    subject: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[int] = Field(default=None, gt=0)
    passing_score: Optional[int] = Field(default=None, ge=0, le=100)
    start_time: Optional[UTCDateTime] = None
    end_time: Optional[UTCDateTime] = None
    is_active: Optional[bool] = None
    allow_review: Optional[bool] = None
    shuffle_questions: Optional[bool] = None


class ExamOut(ApiModel):
    id: int
    title: str
    description: str
    subject: str
    teacher_id: int
    duration: int
    total_questions: int
    passing_score: int
    start_time: UTCDateTime
    end_time: UTCDateTime
    is_active: bool
    allow_review: bool
    shuffle_questions: bool
    created_at: Optional[UTCDateTime] = None
    updated_at: Optional[UTCDateTime] = None


class ExamSummary(ApiModel):
    id: int
    title: str
    description: str
    duration: int
    total_questions: int


class QuestionCreate(ApiModel):
    question_text: str = Field(min_length=1)
    question_type: QuestionType
    options: List[Any] = Field(default_factory=list)
    correct_answer: str
    points: int = Field(default=1, gt=0)
    explanation: Optional[str] = None
    image_url: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=1)


class QuestionView(ApiModel):
    """What a test taker sees: no answer key, no explanation."""

    id: int
    question_text: str
    question_type: str
    options: List[Any] = Field(default_factory=list)
    points: int
    image_url: Optional[str] = None
    order: int


class QuestionOut(QuestionView):
    correct_answer: str
    explanation: Optional[str] = None


class ExamDetail(ExamOut):
    # already-serialized QuestionOut or QuestionView, depending on who asks
    questions: Optional[List[Dict[str, Any]]] = None


class ExamCreated(ApiModel):
    exam_id: int
