from __future__ import annotations

"""Post-submission review: per-question chosen vs. correct breakdown."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..engine.errors import SessionNotCompletedError
from ..engine.models import Session


@dataclass(frozen=True)
class ReviewEntry:
    question_index: int
    question_id: str
    category: str
    question_text: str
    options: Tuple[str, ...]
    correct_index: int
    chosen_index: Optional[int]
    is_correct: bool

    @property
    def answered(self) -> bool:
        return self.chosen_index is not None


def build_review(session: Session) -> List[ReviewEntry]:
    """One entry per question, in the order the session was dealt."""
    if not session.is_completed:
        raise SessionNotCompletedError(session.state.value)
    entries: List[ReviewEntry] = []
    for idx, q in enumerate(session.questions):
        chosen = session.answers.get(q.id)
        entries.append(
            ReviewEntry(
                question_index=idx,
                question_id=q.id,
                category=q.category,
                question_text=q.text,
                options=q.options,
                correct_index=q.correct_index,
                chosen_index=chosen,
                is_correct=chosen == q.correct_index,
            )
        )
    return entries


def _letter(i: int) -> str:
    return chr(ord("A") + i)


def format_review(entries: Sequence[ReviewEntry]) -> str:
    """Plain-text review. '*' marks the correct option, '>' the chosen one."""
    lines: List[str] = []
    for e in entries:
        badge = "Correct" if e.is_correct else ("Incorrect" if e.answered else "Unanswered")
        lines.append(f"Question {e.question_index + 1} [{e.category}] - {badge}")
        lines.append(f"  {e.question_text}")
        for i, opt in enumerate(e.options):
            mark = ("*" if i == e.correct_index else " ") + (">" if i == e.chosen_index else " ")
            lines.append(f"  {mark} {_letter(i)}. {opt}")
    return "\n".join(lines)
