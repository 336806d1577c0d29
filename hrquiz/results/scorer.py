from __future__ import annotations

"""Scoring for completed sessions."""

from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..engine.models import DEFAULT_PASS_PERCENTAGE, Question, Result, Session


def percentage(correct: int, total: int) -> int:
    """Integer percentage rounded half-up (12.5 -> 13, 66.7 -> 67)."""
    if total <= 0:
        raise ValueError("total must be positive")
    return (200 * correct + total) // (2 * total)


def count_correct(questions: Sequence[Question], answers: Mapping[str, int]) -> int:
    # Unanswered questions simply never match
    return sum(1 for q in questions if answers.get(q.id) == q.correct_index)


def score(
    session: Session,
    *,
    pass_percentage: int = DEFAULT_PASS_PERCENTAGE,
    user_id: Optional[str] = None,
) -> Result:
    """Compute the Result for a session.

    ``total`` is always the full question count, never the number answered.
    Timestamp and duration come from the session's own start/finish stamps, so
    the same session always scores to the same Result.
    """
    total = len(session.questions)
    correct = count_correct(session.questions, session.answers)
    pct = percentage(correct, total)
    finished: datetime = session.finished_at or session.started_at
    duration_ms = max(0, int((finished - session.started_at).total_seconds() * 1000))
    return Result(
        session_id=session.session_id,
        user_id=user_id,
        correct=correct,
        total=total,
        percentage=pct,
        passed=pct >= pass_percentage,
        timestamp=finished,
        duration_ms=duration_ms,
        question_count=total,
        category=session.config.category_filter,
        submission_reason=session.submission_reason or "manual",
        pass_percentage=pass_percentage,
    )
