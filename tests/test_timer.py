import pytest

from conftest import FakeScheduler
from examclient.timer import CountdownTimer, TimerError, TimerState


class Recorder:
    def __init__(self) -> None:
        self.ticks: list[int] = []
        self.expired = 0

    def on_tick(self, remaining: int) -> None:
        self.ticks.append(remaining)

    def on_expired(self) -> None:
        self.expired += 1


def _timer(scheduler, clock, recorder: Recorder) -> CountdownTimer:
    return CountdownTimer(
        recorder.on_expired,
        recorder.on_tick,
        scheduler=scheduler,
        clock=clock,
    )


def test_expires_once_after_duration(scheduler, clock) -> None:
    rec = Recorder()
    timer = _timer(scheduler, clock, rec)
    timer.start(5)

    scheduler.advance(4)
    assert rec.ticks == [4, 3, 2, 1]
    assert rec.expired == 0

    scheduler.advance(1)
    assert rec.ticks == [4, 3, 2, 1, 0]
    assert rec.expired == 1
    assert timer.state == TimerState.EXPIRED

    scheduler.advance(10)
    assert rec.expired == 1
    assert len(rec.ticks) == 5


def test_pause_freezes_remaining_time(scheduler, clock) -> None:
    rec = Recorder()
    timer = _timer(scheduler, clock, rec)
    timer.start(5)

    scheduler.advance(2)
    assert timer.pause()
    scheduler.advance(10)
    assert timer.remaining_seconds == 3
    assert len(rec.ticks) == 2

    assert timer.resume()
    scheduler.advance(2)
    assert rec.expired == 0
    scheduler.advance(1)
    assert rec.expired == 1
    assert len(rec.ticks) == 5


def test_pause_mid_second_keeps_elapsed_fraction(scheduler, clock) -> None:
    rec = Recorder()
    timer = _timer(scheduler, clock, rec)
    timer.start(3)

    scheduler.advance(0.75)
    timer.pause()
    scheduler.advance(30)
    timer.resume()

    scheduler.advance(0.25)
    assert rec.ticks == [2]


def test_pause_and_resume_outside_their_states_are_noops(scheduler, clock) -> None:
    timer = _timer(scheduler, clock, Recorder())
    assert not timer.pause()
    assert not timer.resume()

    timer.start(3)
    assert not timer.resume()
    assert timer.pause()
    assert not timer.pause()


def test_cancel_stops_ticks_and_expiry(scheduler, clock) -> None:
    rec = Recorder()
    timer = _timer(scheduler, clock, rec)
    timer.start(3)
    scheduler.advance(1)

    timer.cancel()
    scheduler.advance(10)

    assert rec.ticks == [2]
    assert rec.expired == 0
    assert timer.state == TimerState.CANCELLED


def test_cancel_beats_already_scheduled_callback(clock) -> None:
    scheduler = FakeScheduler(clock, honor_cancel=False)
    rec = Recorder()
    timer = _timer(scheduler, clock, rec)
    timer.start(1)

    timer.cancel()
    scheduler.advance(5)

    assert rec.ticks == []
    assert rec.expired == 0


def test_pause_beats_already_scheduled_callback(clock) -> None:
    scheduler = FakeScheduler(clock, honor_cancel=False)
    rec = Recorder()
    timer = _timer(scheduler, clock, rec)
    timer.start(2)

    timer.pause()
    scheduler.advance(5)

    assert rec.ticks == []
    assert timer.remaining_seconds == 2


def test_cancel_is_idempotent_and_safe_before_start(scheduler, clock) -> None:
    timer = _timer(scheduler, clock, Recorder())
    timer.cancel()
    timer.cancel()
    assert timer.state == TimerState.CANCELLED

    with pytest.raises(TimerError):
        timer.start(5)


def test_cancel_after_expiry_keeps_expired_state(scheduler, clock) -> None:
    rec = Recorder()
    timer = _timer(scheduler, clock, rec)
    timer.start(1)
    scheduler.advance(1)
    timer.cancel()
    assert timer.state == TimerState.EXPIRED
    assert rec.expired == 1


def test_zero_duration_expires_immediately(scheduler, clock) -> None:
    rec = Recorder()
    timer = _timer(scheduler, clock, rec)
    timer.start(0)
    assert rec.expired == 1
    assert scheduler.pending == []


def test_invalid_start(scheduler, clock) -> None:
    timer = _timer(scheduler, clock, Recorder())
    with pytest.raises(TimerError):
        timer.start(-1)
    timer.start(5)
    with pytest.raises(TimerError):
        timer.start(5)
