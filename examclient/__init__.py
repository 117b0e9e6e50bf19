"""Exam-taking client: countdown timer, session state machine and API transport."""
from examclient.api_client import ApiClient, ApiError
from examclient.auth import CurrentUser, SessionRepository
from examclient.session import (
    ExamSessionController,
    SessionError,
    SessionPhase,
    SubmissionError,
)
from examclient.timer import CountdownTimer, ThreadingScheduler, TimerError, TimerState

__all__ = [
    "ApiClient",
    "ApiError",
    "CountdownTimer",
    "CurrentUser",
    "ExamSessionController",
    "SessionError",
    "SessionPhase",
    "SessionRepository",
    "SubmissionError",
    "ThreadingScheduler",
    "TimerError",
    "TimerState",
]
