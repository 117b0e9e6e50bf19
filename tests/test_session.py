from datetime import datetime, timezone

import pytest

from examclient.api_client import ApiError
from examclient.auth import CurrentUser, SessionRepository
from examclient.models import (
    AnswerOption,
    ExamPaper,
    GradingResult,
    Question,
    QuestionType,
)
from examclient.session import (
    ExamSessionController,
    SessionError,
    SessionPhase,
    SubmissionError,
)
from examclient.timer import CountdownTimer, TimerState

STARTED = datetime(2026, 3, 15, 9, 0, tzinfo=timezone.utc)


class FakeGrader:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls = []
        self.during_call = None

    def submit_exam(self, payload):
        self.calls.append(payload)
        if self.during_call is not None:
            self.during_call()
        if self.failures:
            self.failures -= 1
            raise ApiError("Service unavailable", 503)
        return GradingResult(
            attempt_id="attempt-1",
            score=50,
            total_questions=2,
            correct_answers=1,
        )


def _paper(duration_minutes: int = 1) -> ExamPaper:
    return ExamPaper(
        id="t1",
        title="Networking Basics",
        duration_minutes=duration_minutes,
        questions=[
            Question("q1", "Pick one", QuestionType.SINGLE,
                     [AnswerOption("a", "A"), AnswerOption("b", "B")]),
            Question("q2", "Pick many", QuestionType.MULTIPLE,
                     [AnswerOption("x", "X"), AnswerOption("y", "Y"), AnswerOption("z", "Z")]),
            Question("q3", "Pick one", QuestionType.SINGLE,
                     [AnswerOption("c", "C"), AnswerOption("d", "D")]),
        ],
    )


@pytest.fixture()
def repository():
    repo = SessionRepository()
    repo.sign_in(CurrentUser(id=7, username="alice", token="token"))
    return repo


@pytest.fixture()
def grader():
    return FakeGrader()


@pytest.fixture()
def make_controller(repository, grader, scheduler, clock):
    def _make(paper=None, grader_override=None):
        return ExamSessionController(
            paper or _paper(),
            grader_override or grader,
            repository,
            timer_factory=lambda on_expired, on_tick: CountdownTimer(
                on_expired, on_tick, scheduler=scheduler, clock=clock
            ),
            now=lambda: STARTED,
        )

    return _make


@pytest.fixture()
def controller(make_controller):
    session = make_controller()
    session.start()
    return session


def test_start_requires_signed_in_user(make_controller, repository) -> None:
    repository.sign_out()
    session = make_controller()
    with pytest.raises(SessionError):
        session.start()
    assert session.phase == SessionPhase.NOT_STARTED


def test_start_activates_and_runs_timer(controller, scheduler) -> None:
    assert controller.phase == SessionPhase.ACTIVE
    assert controller.started_at == STARTED
    assert controller.remaining_seconds == 60
    scheduler.advance(5)
    assert controller.remaining_seconds == 55


def test_start_twice_fails(controller) -> None:
    with pytest.raises(SessionError):
        controller.start()


def test_single_choice_replaces_selection(controller) -> None:
    assert controller.select_answer("q1", "a")
    assert controller.select_answer("q1", "b")
    assert controller.answers == {"q1": ["b"]}


def test_multiple_choice_toggles_selection(controller) -> None:
    controller.select_answer("q2", "x")
    controller.select_answer("q2", "z")
    assert controller.answers == {"q2": ["x", "z"]}

    controller.select_answer("q2", "x")
    assert controller.answers == {"q2": ["z"]}

    controller.select_answer("q2", "z")
    assert controller.answers == {}


def test_unknown_question_or_option_is_ignored(controller) -> None:
    assert not controller.select_answer("nope", "a")
    assert not controller.select_answer("q1", "x")
    assert controller.answers == {}


def test_selection_only_while_active(controller) -> None:
    controller.toggle_pause()
    assert not controller.select_answer("q1", "a")
    assert controller.answers == {}


def test_navigation(controller) -> None:
    assert not controller.navigate("prev")
    assert controller.current_index == 0

    assert controller.navigate("next")
    assert controller.navigate(2)
    assert controller.current_question.id == "q3"
    assert not controller.navigate("next")
    assert not controller.navigate(5)
    assert not controller.navigate(-1)
    assert controller.current_index == 2

    with pytest.raises(ValueError):
        controller.navigate("last")


def test_toggle_pause_freezes_timer(controller, scheduler) -> None:
    scheduler.advance(10)
    assert controller.toggle_pause() == SessionPhase.PAUSED

    scheduler.advance(120)
    assert controller.remaining_seconds == 50
    assert controller.phase == SessionPhase.PAUSED

    assert controller.toggle_pause() == SessionPhase.ACTIVE
    scheduler.advance(10)
    assert controller.remaining_seconds == 40


def test_submit_completes_session(controller, grader, scheduler) -> None:
    controller.select_answer("q2", "y")
    controller.select_answer("q2", "x")
    controller.select_answer("q1", "a")

    result = controller.submit()

    assert result is not None and result.score == 50
    assert controller.phase == SessionPhase.COMPLETED
    payload = grader.calls[0]
    assert payload.test_id == "t1"
    assert payload.user_id == 7
    assert payload.answers == {"q1": ["a"], "q2": ["x", "y"]}
    assert payload.started_at == STARTED.isoformat()
    assert payload.session_key == controller.session_key

    scheduler.advance(120)
    assert len(grader.calls) == 1


def test_completed_session_ignores_input(controller, grader) -> None:
    controller.submit()

    assert controller.submit() is None
    assert not controller.select_answer("q1", "a")
    assert not controller.navigate("next")
    assert controller.toggle_pause() == SessionPhase.COMPLETED
    controller.abandon()
    assert controller.phase == SessionPhase.COMPLETED
    assert len(grader.calls) == 1


def test_submit_from_paused(controller, grader) -> None:
    controller.toggle_pause()
    assert controller.submit() is not None
    assert controller.phase == SessionPhase.COMPLETED


def test_failed_submit_reverts_and_allows_retry(make_controller, scheduler) -> None:
    grader = FakeGrader(failures=1)
    session = make_controller(grader_override=grader)
    session.start()
    scheduler.advance(20)

    with pytest.raises(SubmissionError):
        session.submit()

    assert session.phase == SessionPhase.ACTIVE
    assert session.remaining_seconds == 40
    scheduler.advance(10)
    assert session.remaining_seconds == 30

    assert session.submit() is not None
    assert session.phase == SessionPhase.COMPLETED
    assert [c.session_key for c in grader.calls] == [session.session_key] * 2


def test_failed_submit_from_paused_stays_paused(make_controller, scheduler) -> None:
    grader = FakeGrader(failures=1)
    session = make_controller(grader_override=grader)
    session.start()
    scheduler.advance(15)
    session.toggle_pause()

    with pytest.raises(SubmissionError):
        session.submit()

    assert session.phase == SessionPhase.PAUSED
    scheduler.advance(30)
    assert session.remaining_seconds == 45

    session.toggle_pause()
    scheduler.advance(5)
    assert session.remaining_seconds == 40


def test_timer_expiry_submits_automatically(controller, grader, scheduler) -> None:
    controller.select_answer("q1", "b")
    scheduler.advance(60)

    assert controller.phase == SessionPhase.COMPLETED
    assert len(grader.calls) == 1
    assert grader.calls[0].answers == {"q1": ["b"]}


def test_expiry_during_manual_submit_is_ignored(controller, grader) -> None:
    grader.during_call = controller.on_timer_expired

    controller.submit()

    assert len(grader.calls) == 1
    assert controller.phase == SessionPhase.COMPLETED


def test_failed_automatic_submit_is_recorded(make_controller, scheduler) -> None:
    grader = FakeGrader(failures=1)
    session = make_controller(grader_override=grader)
    session.start()

    scheduler.advance(60)

    assert session.phase == SessionPhase.ACTIVE
    assert isinstance(session.last_error, SubmissionError)
    assert session.remaining_seconds == 0

    assert session.submit() is not None
    assert session.phase == SessionPhase.COMPLETED
    assert len(grader.calls) == 2


def test_abandon_cancels_timer_and_discards_answers(controller, grader, scheduler) -> None:
    controller.select_answer("q1", "a")
    controller.abandon()

    assert controller.phase == SessionPhase.ABANDONED
    assert controller.answers == {}
    scheduler.advance(120)
    assert grader.calls == []
    assert controller.submit() is None


def test_sign_out_abandons_session(controller, repository, grader, scheduler) -> None:
    repository.sign_out()

    assert controller.phase == SessionPhase.ABANDONED
    scheduler.advance(120)
    assert grader.calls == []


def test_completed_session_stops_listening(controller, repository) -> None:
    controller.submit()
    repository.sign_out()
    assert controller.phase == SessionPhase.COMPLETED


def test_zero_duration_exam_submits_on_start(make_controller, grader) -> None:
    session = make_controller(paper=_paper(duration_minutes=0))
    session.start()
    assert session.phase == SessionPhase.COMPLETED
    assert len(grader.calls) == 1


def test_paper_without_questions_is_rejected(repository, grader) -> None:
    paper = ExamPaper(id="empty", title="Empty", duration_minutes=5, questions=[])
    with pytest.raises(SessionError):
        ExamSessionController(paper, grader, repository)


def test_timer_state_after_submit(controller) -> None:
    timer = controller._timer
    controller.submit()
    assert timer.state == TimerState.CANCELLED
