from __future__ import annotations

"""Question bank collaborators.

The engine only depends on ``QuestionBank.list_questions``. The JSON bank adds
the admin operations (add, duplicate, delete, import/export, demo seeding) on
top of a single JSON array file.
"""

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence
from uuid import uuid4

from pydantic import ValidationError

from ..engine.errors import PersistenceError, QuestionValidationError
from ..engine.models import CATEGORIES, CATEGORY_FILTERS, Question
from .demo import DEMO_QUESTIONS

logger = logging.getLogger(__name__)


class QuestionBank(Protocol):
    def list_questions(self, category_filter: str = "all") -> Sequence[Question]: ...


def _filter(questions: Iterable[Question], category_filter: str) -> List[Question]:
    if category_filter not in CATEGORY_FILTERS:
        raise ValueError(f"Unknown category filter: {category_filter!r}")
    if category_filter == "all":
        return list(questions)
    return [q for q in questions if q.category == category_filter]


def make_question(data: Dict[str, Any]) -> Question:
    """Validate a raw record, assigning a fresh id when it has none."""
    payload = dict(data)
    if payload.get("id") in (None, ""):
        payload["id"] = uuid4().hex
    try:
        return Question.from_json(payload)
    except ValidationError as e:
        raise QuestionValidationError(str(e)) from e


class InMemoryQuestionBank:
    def __init__(self, questions: Optional[Iterable[Question]] = None) -> None:
        self._questions: List[Question] = list(questions or [])

    def add(self, question: Question) -> Question:
        self._questions.append(question)
        return question

    def add_many(self, questions: Iterable[Question]) -> int:
        before = len(self._questions)
        self._questions.extend(questions)
        return len(self._questions) - before

    def list_questions(self, category_filter: str = "all") -> List[Question]:
        return _filter(self._questions, category_filter)


class JsonQuestionBank:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    # Storage

    def _read(self) -> List[Question]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read question bank {self.path}: {e}") from e
        if not isinstance(raw, list):
            raise PersistenceError(f"Question bank {self.path} is not a JSON array")
        questions: List[Question] = []
        for row in raw:
            if not isinstance(row, dict):
                logger.warning("Skipping non-object entry in %s: %r", self.path, row)
                continue
            try:
                questions.append(Question.from_json(row))
            except ValidationError as e:
                logger.warning("Skipping invalid question in %s: %s", self.path, e)
        return questions

    def _write(self, questions: Sequence[Question]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump([q.to_json() for q in questions], f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Cannot write question bank {self.path}: {e}") from e

    # Queries

    def list_questions(self, category_filter: str = "all") -> List[Question]:
        return _filter(self._read(), category_filter)

    def get(self, question_id: str) -> Optional[Question]:
        return next((q for q in self._read() if q.id == str(question_id)), None)

    def counts_by_category(self) -> Dict[str, int]:
        counts = Counter(q.category for q in self._read())
        out = {c: int(counts.get(c, 0)) for c in CATEGORIES}
        out["total"] = sum(out.values())
        return out

    # Admin operations

    def add_question(self, data: Dict[str, Any]) -> Question:
        question = make_question(data)
        questions = self._read()
        if any(q.id == question.id for q in questions):
            raise QuestionValidationError(f"Duplicate question id: {question.id}")
        questions.append(question)
        self._write(questions)
        return question

    def add_many(self, records: Iterable[Dict[str, Any]]) -> List[Question]:
        """Bulk add; the whole batch is validated before anything is written."""
        new = [make_question(r) for r in records]
        questions = self._read()
        taken = {q.id for q in questions}
        for q in new:
            if q.id in taken:
                raise QuestionValidationError(f"Duplicate question id: {q.id}")
            taken.add(q.id)
        self._write(questions + new)
        return new

    def delete_question(self, question_id: str) -> bool:
        questions = self._read()
        kept = [q for q in questions if q.id != str(question_id)]
        if len(kept) == len(questions):
            return False
        self._write(kept)
        return True

    def duplicate_question(self, question_id: str) -> Question:
        source = self.get(question_id)
        if source is None:
            raise QuestionValidationError(f"Unknown question id: {question_id}")
        return self.add_question(
            {
                "category": source.category,
                "text": f"{source.text} (Copy)",
                "options": list(source.options),
                "correct_index": source.correct_index,
            }
        )

    def clear(self) -> None:
        self._write([])

    def seed_demo(self) -> List[Question]:
        return self.add_many(DEMO_QUESTIONS)

    def import_file(self, path: str | Path) -> List[Question]:
        """Append questions from a JSON array file. Imported ids are replaced."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read import file {path}: {e}") from e
        if not isinstance(raw, list):
            raise QuestionValidationError("Import file must contain a JSON array of questions")
        records = []
        for row in raw:
            if not isinstance(row, dict):
                raise QuestionValidationError("Every imported question must be a JSON object")
            records.append({k: v for k, v in row.items() if k != "id"})
        return self.add_many(records)

    def export_file(self, path: str | Path) -> int:
        questions = self._read()
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with Path(path).open("w", encoding="utf-8") as f:
                json.dump([q.to_json() for q in questions], f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Cannot write export file {path}: {e}") from e
        return len(questions)
