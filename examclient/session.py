"""Exam session state machine.

NOT_STARTED -> ACTIVE <-> PAUSED -> SUBMITTING -> COMPLETED

SUBMITTING falls back to the phase it came from when grading fails, so the
user can retry. ABANDONED is entered from any non-terminal phase by
``abandon()`` or when the signed-in user changes. Nothing leaves COMPLETED
or ABANDONED.
"""
import enum
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Protocol

from examclient.auth import CurrentUser, SessionRepository
from examclient.models import (
    ExamPaper,
    GradingResult,
    Question,
    QuestionType,
    SubmissionPayload,
)
from examclient.timer import CountdownTimer, TimerState

logger = logging.getLogger(__name__)


class SessionPhase(str, enum.Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    PAUSED = "paused"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


TERMINAL_PHASES = (SessionPhase.COMPLETED, SessionPhase.ABANDONED)


class SessionError(RuntimeError):
    """Operation not possible in the current session state."""


class SubmissionError(RuntimeError):
    """Grading failed; the session is back in its pre-submit phase."""


class Grader(Protocol):
    def submit_exam(self, payload: SubmissionPayload) -> GradingResult: ...


TimerFactory = Callable[[Callable[[], None], Callable[[int], None]], CountdownTimer]


def _default_timer(on_expired: Callable[[], None], on_tick: Callable[[int], None]) -> CountdownTimer:
    return CountdownTimer(on_expired, on_tick)


class ExamSessionController:
    """One user's run through one exam, from ``start()`` to a graded attempt."""

    def __init__(
        self,
        paper: ExamPaper,
        grader: Grader,
        repository: SessionRepository,
        timer_factory: TimerFactory = _default_timer,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        if not paper.questions:
            raise SessionError(f"Test {paper.id} has no questions")
        self.paper = paper
        self._grader = grader
        self._repository = repository
        self._timer_factory = timer_factory
        self._now = now
        self._lock = threading.RLock()

        self._questions: dict[str, Question] = {q.id: q for q in paper.questions}
        self._answers: dict[str, set[str]] = {}
        self._current_index = 0
        self._phase = SessionPhase.NOT_STARTED
        self._timer = self._new_timer()
        self._pending_seconds = paper.duration_minutes * 60
        self._user: CurrentUser | None = None
        self._started_at: datetime | None = None
        self._unsubscribe: Callable[[], None] | None = None

        self.session_key = uuid.uuid4().hex
        self.result: GradingResult | None = None
        self.last_error: Exception | None = None

    # --- read side ---

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> Question:
        return self.paper.questions[self._current_index]

    @property
    def remaining_seconds(self) -> int:
        if self._timer.state == TimerState.IDLE:
            return self._pending_seconds
        return self._timer.remaining_seconds

    @property
    def started_at(self) -> datetime | None:
        return self._started_at

    @property
    def answers(self) -> dict[str, list[str]]:
        with self._lock:
            return {qid: sorted(ids) for qid, ids in self._answers.items()}

    def selected(self, question_id: str) -> set[str]:
        return set(self._answers.get(question_id, ()))

    # --- transitions ---

    def start(self) -> None:
        """Bind the signed-in user, stamp the start time and start the clock."""
        with self._lock:
            if self._phase != SessionPhase.NOT_STARTED:
                raise SessionError(f"Session already {self._phase.value}")
            user = self._repository.get_current_user()
            if user is None:
                raise SessionError("Sign in to start an exam")
            self._user = user
            self._started_at = self._now()
            self._unsubscribe = self._repository.on_auth_change(self._on_auth_change)
            self._phase = SessionPhase.ACTIVE
            seconds = self._pending_seconds
        logger.info(f"Exam {self.paper.id} started by user {user.id} ({seconds}s)")
        self._timer.start(seconds)

    def select_answer(self, question_id: str, option_id: str) -> bool:
        """Single choice replaces, multiple choice toggles. Active phase only."""
        with self._lock:
            if self._phase != SessionPhase.ACTIVE:
                return False
            question = self._questions.get(question_id)
            if question is None or not question.has_option(option_id):
                logger.warning(f"Ignoring selection {option_id!r} for question {question_id!r}")
                return False

            if question.type == QuestionType.SINGLE:
                self._answers[question_id] = {option_id}
                return True

            selection = self._answers.setdefault(question_id, set())
            if option_id in selection:
                selection.discard(option_id)
            else:
                selection.add(option_id)
            if not selection:
                del self._answers[question_id]
            return True

    def navigate(self, target: str | int) -> bool:
        """Move to ``"prev"``, ``"next"`` or an absolute index.

        Out-of-range targets leave the position unchanged.
        """
        with self._lock:
            if self._phase not in (SessionPhase.ACTIVE, SessionPhase.PAUSED):
                return False
            if target == "prev":
                index = self._current_index - 1
            elif target == "next":
                index = self._current_index + 1
            elif isinstance(target, int) and not isinstance(target, bool):
                index = target
            else:
                raise ValueError(f"Unknown navigation target {target!r}")
            if not 0 <= index < len(self.paper.questions):
                return False
            self._current_index = index
            return True

    def toggle_pause(self) -> SessionPhase:
        restart_seconds = None
        with self._lock:
            if self._phase == SessionPhase.ACTIVE:
                if self._timer.state == TimerState.RUNNING:
                    self._timer.pause()
                elif self._timer.state != TimerState.IDLE or self._pending_seconds <= 0:
                    return self._phase
                self._phase = SessionPhase.PAUSED
            elif self._phase == SessionPhase.PAUSED:
                self._phase = SessionPhase.ACTIVE
                if self._timer.state == TimerState.PAUSED:
                    self._timer.resume()
                elif self._timer.state == TimerState.IDLE:
                    restart_seconds = self._pending_seconds
            else:
                return self._phase
            phase = self._phase
        logger.debug(f"Exam {self.paper.id} now {phase.value}")
        if restart_seconds is not None:
            self._timer.start(restart_seconds)
        return phase

    def submit(self) -> GradingResult | None:
        """Hand the answers to the grader.

        Returns None without doing anything when the phase does not allow a
        submission (already submitting, finished or not started).

        Raises:
            SubmissionError: grading failed; the previous phase is restored.
        """
        with self._lock:
            if self._phase not in (SessionPhase.ACTIVE, SessionPhase.PAUSED):
                logger.debug(f"Submit ignored in phase {self._phase.value}")
                return None
            previous = self._phase
            self._phase = SessionPhase.SUBMITTING
            remaining = self.remaining_seconds
            self._timer.cancel()
            payload = self._snapshot()

        logger.info(f"Submitting exam {self.paper.id} ({len(payload.answers)} answered)")
        try:
            result = self._grader.submit_exam(payload)
        except Exception as exc:
            self._revert(previous, remaining)
            raise SubmissionError(f"Submission failed: {exc}") from exc

        with self._lock:
            if self._phase != SessionPhase.SUBMITTING:
                logger.info(f"Exam {self.paper.id} graded after the session was abandoned")
                return None
            self.result = result
            self.last_error = None
            self._phase = SessionPhase.COMPLETED
            self._detach()
        logger.info(f"Exam {self.paper.id} completed with score {result.score}")
        return result

    def on_timer_expired(self) -> None:
        """Automatic submit; a manual submit already in flight wins."""
        if self._phase == SessionPhase.SUBMITTING:
            logger.info(f"Timer expiry ignored, exam {self.paper.id} is already submitting")
            return
        try:
            self.submit()
        except SubmissionError as exc:
            self.last_error = exc
            logger.error(f"Automatic submission of exam {self.paper.id} failed: {exc}")

    def abandon(self) -> None:
        """Leave without grading; answers are discarded."""
        with self._lock:
            if self._phase in TERMINAL_PHASES:
                return
            self._phase = SessionPhase.ABANDONED
            self._timer.cancel()
            self._answers.clear()
            self._detach()
        logger.info(f"Exam {self.paper.id} abandoned")

    # --- internals ---

    def _new_timer(self) -> CountdownTimer:
        return self._timer_factory(self.on_timer_expired, self._on_tick)

    def _on_tick(self, remaining: int) -> None:
        self._pending_seconds = remaining

    def _snapshot(self) -> SubmissionPayload:
        return SubmissionPayload(
            test_id=self.paper.id,
            user_id=self._user.id,
            answers={qid: sorted(ids) for qid, ids in self._answers.items()},
            started_at=self._started_at.isoformat(),
            session_key=self.session_key,
        )

    def _revert(self, previous: SessionPhase, remaining: int) -> None:
        with self._lock:
            if self._phase != SessionPhase.SUBMITTING:
                return
            self._phase = previous
            self._pending_seconds = remaining
            self._timer = self._new_timer()
            restart = previous == SessionPhase.ACTIVE and remaining > 0
            timer = self._timer
        logger.warning(f"Exam {self.paper.id} back to {previous.value} after failed submit")
        if restart:
            timer.start(remaining)

    def _detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_auth_change(self, user: CurrentUser | None) -> None:
        if user is None or self._user is None or user.id != self._user.id:
            self.abandon()
