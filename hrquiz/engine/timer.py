from __future__ import annotations

"""Cooperative countdown timer with pause/resume and a single expiry notification.

The timer never reads the wall clock. Each call to ``tick()`` is one elapsed
second; who calls it, and how often, is decided by the injected scheduler.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional, Protocol

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class Scheduler(Protocol):
    def arm(self, interval_s: float, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...


class ManualScheduler:
    """Scheduler that never fires by itself; callers drive ticks by hand."""

    def __init__(self) -> None:
        self.armed = False
        self.interval_s: Optional[float] = None
        self.callback: Optional[Callable[[], None]] = None
        self.arm_count = 0

    def arm(self, interval_s: float, callback: Callable[[], None]) -> None:
        self.armed = True
        self.interval_s = interval_s
        self.callback = callback
        self.arm_count += 1

    def cancel(self) -> None:
        self.armed = False

    def fire(self) -> None:
        """Invoke the armed callback once, as a periodic host would."""
        if self.armed and self.callback is not None:
            self.callback()


class ThreadingScheduler:
    """Re-arming ``threading.Timer`` that calls back every interval until cancelled."""

    def __init__(self) -> None:
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._interval_s = 1.0
        self._callback: Optional[Callable[[], None]] = None
        self._armed = False

    def arm(self, interval_s: float, callback: Callable[[], None]) -> None:
        with self._lock:
            self._interval_s = float(interval_s)
            self._callback = callback
            self._armed = True
            self._arm_timer()

    def _arm_timer(self) -> None:
        if self._timer:
            self._timer.cancel()
        self._timer = threading.Timer(self._interval_s, self._on_fire)
        self._timer.daemon = True
        self._timer.start()

    def _on_fire(self) -> None:
        with self._lock:
            if not self._armed or self._callback is None:
                return
            callback = self._callback
            self._arm_timer()
        # Run outside the lock so the callback may cancel us
        callback()

    def cancel(self) -> None:
        with self._lock:
            self._armed = False
            if self._timer:
                self._timer.cancel()
                self._timer = None


class CountdownTimer:
    def __init__(
        self,
        scheduler: Scheduler,
        callback: Optional[Callable[[], None]] = None,
        on_expire: Optional[Callable[[], None]] = None,
        interval_s: float = 1.0,
    ) -> None:
        self.scheduler = scheduler
        self.callback = callback or self.tick
        self.on_expire = on_expire
        self.interval_s = interval_s
        self.remaining = 0
        self.state = TimerState.IDLE
        self._expired = False

    @property
    def paused(self) -> bool:
        return self.state == TimerState.PAUSED

    @property
    def expired(self) -> bool:
        return self._expired

    def start(self, total_seconds: int) -> None:
        if int(total_seconds) <= 0:
            raise ConfigurationError(f"Timer needs a positive duration, got {total_seconds}")
        self.scheduler.cancel()
        self.remaining = int(total_seconds)
        self._expired = False
        self.state = TimerState.RUNNING
        self.scheduler.arm(self.interval_s, self.callback)

    def tick(self) -> bool:
        """Count one second down. Returns True only on the tick that expires the timer."""
        if self.state != TimerState.RUNNING:
            return False
        self.remaining = max(0, self.remaining - 1)
        if self.remaining > 0:
            return False
        self.scheduler.cancel()
        self.state = TimerState.STOPPED
        self._expired = True
        logger.debug("Timer expired")
        if self.on_expire is not None:
            self.on_expire()
        return True

    def pause(self) -> None:
        if self.state != TimerState.RUNNING:
            return
        self.scheduler.cancel()
        self.state = TimerState.PAUSED

    def resume(self) -> None:
        if self.state != TimerState.PAUSED:
            return
        self.state = TimerState.RUNNING
        self.scheduler.arm(self.interval_s, self.callback)

    def stop(self) -> None:
        self.scheduler.cancel()
        if self.state != TimerState.IDLE:
            self.state = TimerState.STOPPED

    def is_warning(self, threshold: int = 60) -> bool:
        return self.state != TimerState.IDLE and self.remaining <= threshold
