from __future__ import annotations

"""Core data model: questions, session configuration, live sessions and results."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import ConfigurationError

CATEGORIES = ("assessment", "ops", "hr")
CATEGORY_FILTERS = ("all",) + CATEGORIES
SUBMISSION_REASONS = ("manual", "expired")
MIN_OPTIONS = 2
MAX_OPTIONS = 4
DEFAULT_PASS_PERCENTAGE = 60
EXCELLENT_PERCENTAGE = 80


class SessionState(str, Enum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    REVIEWING = "reviewing"


# --- Pydantic models ---

class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: Literal["assessment", "ops", "hr"]
    text: str = Field(min_length=1)
    options: Tuple[str, ...] = Field(min_length=MIN_OPTIONS, max_length=MAX_OPTIONS)
    correct_index: int = Field(ge=0)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> str:
        # Imported files may carry numeric ids
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("question text must not be blank")
        return v

    @field_validator("options")
    @classmethod
    def _options_unique(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        opts = tuple(o.strip() for o in v)
        if any(not o for o in opts):
            raise ValueError("answer options must not be blank")
        if len({o.lower() for o in opts}) != len(opts):
            raise ValueError("answer options must be unique")
        return opts

    @model_validator(mode="after")
    def _correct_in_range(self) -> "Question":
        if self.correct_index >= len(self.options):
            raise ValueError(f"correct_index {self.correct_index} outside 0..{len(self.options) - 1}")
        return self

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Question":
        # Accept the camelCase shape used by exported banks
        payload = dict(data)
        if "correctIndex" in payload and "correct_index" not in payload:
            payload["correct_index"] = payload.pop("correctIndex")
        return cls.model_validate(payload)

    def to_json(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["options"] = list(self.options)
        return data


class Result(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: Optional[str] = None
    correct: int = Field(ge=0)
    total: int = Field(ge=1)
    percentage: int = Field(ge=0, le=100)
    passed: bool
    timestamp: datetime
    duration_ms: int = Field(ge=0)
    question_count: int = Field(ge=1)
    category: Literal["all", "assessment", "ops", "hr"] = "all"
    submission_reason: Literal["manual", "expired"] = "manual"
    pass_percentage: int = Field(default=DEFAULT_PASS_PERCENTAGE, ge=0, le=100)

    @field_validator("timestamp")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _correct_le_total(self) -> "Result":
        if self.correct > self.total:
            raise ValueError("correct must be <= total")
        return self

    @property
    def grade(self) -> str:
        if self.percentage >= EXCELLENT_PERCENTAGE:
            return "excellent"
        if self.percentage >= self.pass_percentage:
            return "good"
        return "poor"


# --- Session dataclasses ---

@dataclass(frozen=True)
class SessionConfig:
    category_filter: str = "all"
    question_count: Union[int, str] = "all"
    time_limit_minutes: int = 10

    def validate(self) -> None:
        if self.category_filter not in CATEGORY_FILTERS:
            raise ConfigurationError(f"Unknown category filter: {self.category_filter!r}")
        if self.question_count != "all":
            if isinstance(self.question_count, bool) or not isinstance(self.question_count, int):
                raise ConfigurationError(f"question_count must be a positive integer or 'all', got {self.question_count!r}")
            if self.question_count <= 0:
                raise ConfigurationError(f"question_count must be positive, got {self.question_count}")
        if isinstance(self.time_limit_minutes, bool) or not isinstance(self.time_limit_minutes, int):
            raise ConfigurationError(f"time_limit_minutes must be an integer, got {self.time_limit_minutes!r}")
        if self.time_limit_minutes <= 0:
            raise ConfigurationError(f"time_limit_minutes must be positive, got {self.time_limit_minutes}")

    def resolve_count(self, available: int) -> int:
        if self.question_count == "all":
            return available
        return min(int(self.question_count), available)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        count = data.get("questions", data.get("question_count", "all"))
        if isinstance(count, str) and count.strip().isdigit():
            count = int(count)
        return cls(
            category_filter=str(data.get("category", data.get("category_filter", "all"))),
            question_count=count,
            time_limit_minutes=data.get("time_limit_minutes", 10),
        )


@dataclass
class Session:
    session_id: str
    config: SessionConfig
    questions: Tuple[Question, ...]
    started_at: datetime
    current_index: int = 0
    answers: Dict[str, int] = field(default_factory=dict)
    remaining_seconds: int = 0
    paused: bool = False
    state: SessionState = SessionState.RUNNING
    finished_at: Optional[datetime] = None
    submission_reason: Optional[str] = None
    result: Optional[Result] = None

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_index]

    @property
    def is_completed(self) -> bool:
        return self.state in (SessionState.COMPLETED, SessionState.REVIEWING)

    def question_by_id(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot handed to whatever renders the session."""

    state: SessionState
    session_id: Optional[str] = None
    current_index: int = 0
    question_count: int = 0
    question: Optional[Question] = None
    answers: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    remaining_seconds: int = 0
    paused: bool = False
    time_warning: bool = False
    result: Optional[Result] = None

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def is_first(self) -> bool:
        return self.current_index == 0

    @property
    def is_last(self) -> bool:
        return self.question_count > 0 and self.current_index == self.question_count - 1

    @property
    def chosen_index(self) -> Optional[int]:
        if self.question is None:
            return None
        return self.answers.get(self.question.id)
