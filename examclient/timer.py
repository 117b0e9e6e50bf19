"""Cancellable one-second countdown used by the exam session."""
import enum
import logging
import threading
import time
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerError(RuntimeError):
    """Invalid timer use (double start, negative duration)."""


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class ThreadingScheduler:
    """Runs each callback on its own daemon ``threading.Timer``."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        handle = threading.Timer(delay, callback)
        handle.daemon = True
        handle.start()
        return handle


class TimerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class CountdownTimer:
    """Counts whole seconds down to zero and fires ``on_expired`` once.

    Every scheduled callback carries the generation it was scheduled under;
    pause/cancel bump the generation so a callback that is already queued
    on the scheduler becomes a no-op when it runs.

    A pause keeps the fraction of the current second that had already
    elapsed, so resuming only waits for the rest of that second.
    """

    def __init__(
        self,
        on_expired: Callable[[], None],
        on_tick: Callable[[int], None] | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._on_expired = on_expired
        self._on_tick = on_tick
        self._scheduler = scheduler or ThreadingScheduler()
        self._clock = clock
        self._lock = threading.RLock()
        self._state = TimerState.IDLE
        self._remaining = 0
        self._generation = 0
        self._handle: Cancellable | None = None
        self._second_started_at = 0.0
        self._carried = 0.0

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    def start(self, duration_seconds: int) -> None:
        expired = False
        with self._lock:
            if self._state != TimerState.IDLE:
                raise TimerError(f"Timer already {self._state.value}")
            if duration_seconds < 0:
                raise TimerError("Duration must be >= 0")
            self._remaining = int(duration_seconds)
            if self._remaining == 0:
                self._state = TimerState.EXPIRED
                expired = True
            else:
                self._state = TimerState.RUNNING
                self._carried = 0.0
                self._schedule(1.0)
        logger.debug(f"Timer started for {duration_seconds}s")
        if expired:
            self._on_expired()

    def pause(self) -> bool:
        """Freeze the countdown. Returns False when not running."""
        with self._lock:
            if self._state != TimerState.RUNNING:
                return False
            elapsed = self._clock() - self._second_started_at
            self._carried = min(max(elapsed, 0.0), 0.999)
            self._invalidate()
            self._state = TimerState.PAUSED
        logger.debug(f"Timer paused with {self._remaining}s left")
        return True

    def resume(self) -> bool:
        """Continue from the frozen value. Returns False when not paused."""
        with self._lock:
            if self._state != TimerState.PAUSED:
                return False
            self._state = TimerState.RUNNING
            self._schedule(1.0 - self._carried)
        logger.debug(f"Timer resumed with {self._remaining}s left")
        return True

    def cancel(self) -> None:
        """Stop for good; safe to call repeatedly or before ``start``."""
        with self._lock:
            if self._state in (TimerState.EXPIRED, TimerState.CANCELLED):
                return
            self._invalidate()
            self._state = TimerState.CANCELLED
        logger.debug("Timer cancelled")

    def _schedule(self, delay: float) -> None:
        self._generation += 1
        generation = self._generation
        self._second_started_at = self._clock() - (1.0 - delay)
        self._handle = self._scheduler.call_later(delay, lambda: self._tick(generation))

    def _invalidate(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._state != TimerState.RUNNING:
                return
            self._handle = None
            self._carried = 0.0
            self._remaining -= 1
            remaining = self._remaining
            expired = remaining <= 0
            if expired:
                self._state = TimerState.EXPIRED
            else:
                self._schedule(1.0)

        # Callbacks run outside the lock so they may call back into the timer
        if self._on_tick is not None:
            self._on_tick(remaining)
        if expired:
            logger.debug("Timer expired")
            self._on_expired()
