from __future__ import annotations

"""Session Engine: the timed assessment state machine.

Idle -> Configuring -> Running <-> Paused -> Completed -> Reviewing

The engine owns the live Session and its countdown timer, pulls candidate
questions from an injected QuestionBank and appends Results to an injected
ResultsLog. Every mutation returns a ``SessionView`` snapshot so a rendering
layer can redraw from it without touching engine state.

All public operations are serialised on one lock. ``tick()`` is single-flight:
a tick that arrives while another tick or a submit is in progress is dropped,
so a timer expiry and a manual submit can never both score the session.
Events are emitted while the lock is held; handlers run on the emitting thread
and may call back into the engine.
"""

import logging
import random
import threading
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from ..bank.question_bank import QuestionBank
from ..engine.errors import (
    AlreadyCompletedError,
    InvalidStateError,
    NoQuestionsAvailableError,
    OutOfRangeError,
    PersistenceError,
    SessionNotCompletedError,
)
from ..engine.models import DEFAULT_PASS_PERCENTAGE, Result, Session, SessionConfig, SessionState, SessionView
from ..engine.timer import CountdownTimer, ManualScheduler, Scheduler
from ..results.results_log import ResultsLog
from ..results.review import ReviewEntry, build_review
from ..results.scorer import score
from ..util.randomness import make_rng, sample
from .events import EventBus
from .explain import trace as xtrace

logger = logging.getLogger(__name__)

SECONDS_PER_MINUTE = 60
DEFAULT_WARNING_SECONDS = 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionEngine:
    def __init__(
        self,
        bank: QuestionBank,
        results_log: ResultsLog,
        *,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        events: Optional[EventBus] = None,
        pass_percentage: int = DEFAULT_PASS_PERCENTAGE,
        warning_seconds: int = DEFAULT_WARNING_SECONDS,
        tick_interval_s: float = 1.0,
        user_id: Optional[str] = None,
    ) -> None:
        self.bank = bank
        self.results_log = results_log
        self.scheduler = scheduler or ManualScheduler()
        self.rng = rng or make_rng()
        self.clock = clock or _utcnow
        self.events = events or EventBus()
        self.pass_percentage = int(pass_percentage)
        self.warning_seconds = int(warning_seconds)
        self.tick_interval_s = float(tick_interval_s)
        self.user_id = user_id
        self.persistence_error: Optional[PersistenceError] = None

        self._state = SessionState.IDLE
        self._session: Optional[Session] = None
        self._timer: Optional[CountdownTimer] = None
        self._lock = threading.RLock()
        self._busy = False

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], bank: QuestionBank, results_log: ResultsLog, **kwargs: Any) -> "SessionEngine":
        scoring = cfg.get("scoring", {})
        kwargs.setdefault("pass_percentage", int(scoring.get("pass_percentage", DEFAULT_PASS_PERCENTAGE)))
        kwargs.setdefault("warning_seconds", int(scoring.get("warning_seconds", DEFAULT_WARNING_SECONDS)))
        kwargs.setdefault("tick_interval_s", float(cfg.get("timer", {}).get("interval_s", 1.0)))
        kwargs.setdefault("user_id", cfg.get("results", {}).get("user_id"))
        return cls(bank, results_log, **kwargs)

    # --- Read accessors ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def result(self) -> Optional[Result]:
        return self._session.result if self._session else None

    def view(self) -> SessionView:
        with self._lock:
            return self._view()

    def _view(self) -> SessionView:
        s = self._session
        if s is None or self._state == SessionState.IDLE:
            return SessionView(state=self._state)
        in_progress = self._state in (SessionState.RUNNING, SessionState.PAUSED)
        return SessionView(
            state=self._state,
            session_id=s.session_id,
            current_index=s.current_index,
            question_count=len(s.questions),
            question=s.current_question,
            answers=MappingProxyType(dict(s.answers)),
            remaining_seconds=s.remaining_seconds,
            paused=s.paused,
            time_warning=in_progress and s.remaining_seconds <= self.warning_seconds,
            result=s.result,
        )

    def _require(self, operation: str, *states: SessionState) -> Session:
        if self._state not in states or self._session is None:
            raise InvalidStateError(operation, self._state.value)
        return self._session

    # --- Lifecycle ---

    def start(self, config: SessionConfig) -> SessionView:
        with self._lock:
            if self._state not in (SessionState.IDLE, SessionState.COMPLETED, SessionState.REVIEWING):
                raise InvalidStateError("start a session", self._state.value)
            config.validate()

            previous = self._state
            self._state = SessionState.CONFIGURING
            try:
                pool = tuple(self.bank.list_questions(config.category_filter))
                if not pool:
                    raise NoQuestionsAvailableError(config.category_filter)
                picked = tuple(sample(pool, config.resolve_count(len(pool)), self.rng))
                total_seconds = config.time_limit_minutes * SECONDS_PER_MINUTE
                session = Session(
                    session_id=uuid4().hex,
                    config=config,
                    questions=picked,
                    started_at=self.clock(),
                    remaining_seconds=total_seconds,
                    state=SessionState.RUNNING,
                )
                timer = CountdownTimer(
                    self.scheduler,
                    callback=self.tick,
                    on_expire=self._on_expire,
                    interval_s=self.tick_interval_s,
                )
                # Both timers share the scheduler; the old one must let go first
                if self._timer is not None:
                    self._timer.stop()
                timer.start(total_seconds)
            except Exception:
                self._state = previous
                raise

            self._session = session
            self._timer = timer
            self._state = SessionState.RUNNING
            self.persistence_error = None

            logger.info(
                "Session %s started: %d/%d questions, category=%s, %d min",
                session.session_id, len(picked), len(pool), config.category_filter, config.time_limit_minutes,
            )
            xtrace("session_started", {"session": session.session_id, "questions": len(picked), "category": config.category_filter})
            view = self._view()
            self.events.emit("session_started", view)
            return view

    def reset(self) -> SessionView:
        with self._lock:
            self._require("reset", SessionState.COMPLETED, SessionState.REVIEWING)
            if self._timer is not None:
                self._timer.stop()
            self._timer = None
            self._session = None
            self._state = SessionState.IDLE
            xtrace("session_reset")
            self.events.emit("reset", None)
            return self._view()

    def retake(self) -> SessionView:
        """Discard the finished session and start a new one with the same settings."""
        with self._lock:
            session = self._require("retake", SessionState.COMPLETED, SessionState.REVIEWING)
            config = session.config
            self.reset()
            return self.start(config)

    # --- Answering and navigation ---

    def record_answer(self, question_id: str, option_index: int) -> SessionView:
        with self._lock:
            session = self._require("record an answer", SessionState.RUNNING)
            question = session.question_by_id(str(question_id))
            if question is None:
                raise OutOfRangeError(f"Question {question_id} is not part of this session")
            if isinstance(option_index, bool) or not isinstance(option_index, int) or not 0 <= option_index < len(question.options):
                raise OutOfRangeError(f"Option {option_index!r} outside 0..{len(question.options) - 1}")
            session.answers[question.id] = option_index
            self.events.emit("answered", {"question_id": question.id, "option_index": option_index})
            return self._view()

    def answer_current(self, option_index: int) -> SessionView:
        with self._lock:
            session = self._require("record an answer", SessionState.RUNNING)
            return self.record_answer(session.current_question.id, option_index)

    def clear_answer(self, question_id: str) -> SessionView:
        with self._lock:
            session = self._require("clear an answer", SessionState.RUNNING)
            if session.question_by_id(str(question_id)) is None:
                raise OutOfRangeError(f"Question {question_id} is not part of this session")
            session.answers.pop(str(question_id), None)
            return self._view()

    def navigate(self, delta: int) -> SessionView:
        if delta not in (-1, 1):
            raise OutOfRangeError(f"Navigation step must be -1 or +1, got {delta!r}")
        with self._lock:
            session = self._require("navigate", SessionState.RUNNING)
            return self._move_to(session, session.current_index + delta)

    def go_to(self, index: int) -> SessionView:
        with self._lock:
            session = self._require("navigate", SessionState.RUNNING)
            return self._move_to(session, index)

    def _move_to(self, session: Session, index: int) -> SessionView:
        if not 0 <= index < len(session.questions):
            raise OutOfRangeError(f"Question index {index} outside 0..{len(session.questions) - 1}")
        session.current_index = index
        view = self._view()
        self.events.emit("navigated", view)
        return view

    # --- Timer ---

    def pause(self) -> SessionView:
        with self._lock:
            session = self._require("pause", SessionState.RUNNING)
            self._timer.pause()
            session.paused = True
            session.state = self._state = SessionState.PAUSED
            view = self._view()
            xtrace("session_paused", {"remaining": session.remaining_seconds})
            self.events.emit("paused", view)
            return view

    def resume(self) -> SessionView:
        with self._lock:
            session = self._require("resume", SessionState.PAUSED)
            session.paused = False
            session.state = self._state = SessionState.RUNNING
            self._timer.resume()
            view = self._view()
            xtrace("session_resumed", {"remaining": session.remaining_seconds})
            self.events.emit("resumed", view)
            return view

    def tick(self) -> bool:
        """Advance the countdown by one second.

        Returns True when this tick ran the clock out and submitted the session.
        """
        if not self._lock.acquire(blocking=False):
            logger.debug("Dropping tick: engine busy")
            return False
        try:
            if self._busy or self._state != SessionState.RUNNING or self._timer is None:
                return False
            self._busy = True
            try:
                expired = self._timer.tick()
                if not expired:
                    self._session.remaining_seconds = self._timer.remaining
                    self.events.emit("tick", self._session.remaining_seconds)
            finally:
                self._busy = False
            return expired
        finally:
            self._lock.release()

    def _on_expire(self) -> None:
        logger.info("Time is up for session %s; submitting", self._session.session_id)
        self.events.emit("expired", self._session.session_id)
        self._finish("expired")

    # --- Submission and review ---

    def submit(self) -> Result:
        with self._lock:
            if self._state in (SessionState.COMPLETED, SessionState.REVIEWING):
                raise AlreadyCompletedError(self._state.value)
            self._require("submit", SessionState.RUNNING, SessionState.PAUSED)
            self._busy = True
            try:
                return self._finish("manual")
            finally:
                self._busy = False

    def _finish(self, reason: str) -> Result:
        session = self._session
        self._timer.stop()
        session.remaining_seconds = self._timer.remaining
        session.paused = False
        session.finished_at = self.clock()
        session.submission_reason = reason
        result = score(session, pass_percentage=self.pass_percentage, user_id=self.user_id)
        session.result = result
        session.state = self._state = SessionState.COMPLETED

        # Scoring already happened in memory; a failed write only gets reported
        try:
            self.results_log.append(result)
        except Exception as e:
            error = e if isinstance(e, PersistenceError) else PersistenceError(f"Results log failed: {e!r}")
            self.persistence_error = error
            logger.warning("Could not persist result for session %s: %s", session.session_id, error)
            self.events.emit("persist_failed", error)

        logger.info(
            "Session %s submitted (%s): %d/%d (%d%%) %s",
            session.session_id, reason, result.correct, result.total, result.percentage,
            "passed" if result.passed else "failed",
        )
        xtrace("session_submitted", {"session": session.session_id, "reason": reason, "percentage": result.percentage})
        self.events.emit("submitted", result)
        return result

    def review(self) -> List[ReviewEntry]:
        with self._lock:
            if self._session is None or self._state not in (SessionState.COMPLETED, SessionState.REVIEWING):
                raise SessionNotCompletedError(self._state.value)
            entries = build_review(self._session)
            self._session.state = self._state = SessionState.REVIEWING
            return entries

    def close_review(self) -> SessionView:
        with self._lock:
            session = self._require("close the review", SessionState.REVIEWING)
            session.state = self._state = SessionState.COMPLETED
            return self._view()
