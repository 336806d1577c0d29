"""hrquiz: timed, navigable HR-training assessments.

The engine turns a question bank into a live, pausable, time-bounded exam,
scores it and keeps an append-only history of attempts.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .app.events import EventBus
from .app.session_engine import SessionEngine
from .bank.question_bank import InMemoryQuestionBank, JsonQuestionBank, QuestionBank
from .engine.errors import (
    AlreadyCompletedError,
    ConfigurationError,
    InvalidStateError,
    NoQuestionsAvailableError,
    OutOfRangeError,
    PersistenceError,
    QuestionValidationError,
    QuizError,
    SessionNotCompletedError,
)
from .engine.models import Question, Result, Session, SessionConfig, SessionState, SessionView
from .engine.timer import CountdownTimer, ManualScheduler, ThreadingScheduler
from .results.results_log import InMemoryResultsLog, JsonResultsLog, ResultsLog
from .results.review import ReviewEntry, build_review
from .results.scorer import score

__all__ = [
    "__version__",
    "AlreadyCompletedError",
    "ConfigurationError",
    "CountdownTimer",
    "EventBus",
    "InMemoryQuestionBank",
    "InMemoryResultsLog",
    "InvalidStateError",
    "JsonQuestionBank",
    "JsonResultsLog",
    "ManualScheduler",
    "NoQuestionsAvailableError",
    "OutOfRangeError",
    "PersistenceError",
    "Question",
    "QuestionBank",
    "QuestionValidationError",
    "QuizError",
    "Result",
    "ResultsLog",
    "ReviewEntry",
    "Session",
    "SessionConfig",
    "SessionEngine",
    "SessionNotCompletedError",
    "SessionState",
    "SessionView",
    "ThreadingScheduler",
    "build_review",
    "score",
]
