from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

# (inclusive lower bound, grade), highest first
GRADE_BANDS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))
FALLBACK_GRADE = "E"


@dataclass(frozen=True)
class Mark:
    question_id: int
    answer: str
    is_correct: bool
    points_earned: int
    skipped: bool


@dataclass(frozen=True)
class ScoreCard:
    total_score: int
    total_points: int
    correct_count: int
    wrong_count: int
    skipped_count: int
    percentage: float
    grade: str
    passed: bool
    marks: List[Mark] = field(default_factory=list)


def grade_for(percentage: float) -> str:
    for bound, letter in GRADE_BANDS:
        if percentage >= bound:
            return letter
    return FALLBACK_GRADE


def answer_text(value: Any) -> Optional[str]:
    """
    String form of a submitted answer, or None when it counts as skipped.

    Clients send JSON, so booleans and numbers are spelled the way JSON spells
    them: true/false, and 2 rather than 2.0.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value)
    return text or None


def _lookup(answers: Mapping[Any, Any], question_id: int) -> Any:
    if question_id in answers:
        return answers[question_id]
    return answers.get(str(question_id))


def score_answers(questions: Iterable[Any], answers: Mapping[Any, Any], passing_score: float) -> ScoreCard:
    """
    Grade one submission.

    ``questions`` need ``id``, ``points`` and ``correct_answer``; ``answers`` is
    keyed by question id (int or str). Matching is exact and case-sensitive.
    """
    total_score = total_points = 0
    correct = wrong = skipped = 0
    marks: List[Mark] = []

    for q in questions:
        total_points += q.points
        given = answer_text(_lookup(answers, q.id))
        if given is None:
            skipped += 1
            marks.append(Mark(q.id, "", False, 0, True))
            continue
        is_correct = given == str(q.correct_answer)
        earned = q.points if is_correct else 0
        total_score += earned
        if is_correct:
            correct += 1
        else:
            wrong += 1
        marks.append(Mark(q.id, given, is_correct, earned, False))

    percentage = (total_score / total_points) * 100 if total_points > 0 else 0.0
    return ScoreCard(
        total_score=total_score,
        total_points=total_points,
        correct_count=correct,
        wrong_count=wrong,
        skipped_count=skipped,
        percentage=percentage,
        grade=grade_for(percentage),
        passed=percentage >= passing_score,
        marks=marks,
    )
