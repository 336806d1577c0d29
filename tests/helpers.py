from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List

from hrquiz.engine.models import Question


def make_question(qid: str, correct: int = 0, category: str = "assessment", n_options: int = 4) -> Question:
    return Question(
        id=qid,
        category=category,
        text=f"Question {qid}?",
        options=tuple(f"Option {qid}-{i}" for i in range(n_options)),
        correct_index=correct,
    )


def question_pool() -> List[Question]:
    return [
        make_question("a1", 0, "assessment"),
        make_question("a2", 1, "assessment"),
        make_question("o1", 2, "ops"),
        make_question("o2", 3, "ops"),
        make_question("h1", 1, "hr"),
    ]


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FailingResultsLog:
    def __init__(self) -> None:
        self.attempts = 0

    def append(self, result) -> None:
        from hrquiz.engine.errors import PersistenceError

        self.attempts += 1
        raise PersistenceError("disk full")

    def list(self):
        return []


class BrokenResultsLog:
    """Results log whose append fails with a non-persistence error."""

    def append(self, result) -> None:
        raise AttributeError("'NoneType' object has no attribute 'append'")

    def list(self):
        return []
