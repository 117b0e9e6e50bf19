import os
import tempfile

# Keep the default on-disk database out of the working tree
os.environ.setdefault("DB_DIR", tempfile.mkdtemp(prefix="certprep_test_"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import certprep.models.db  # noqa: F401
from certprep.app import app
from certprep.database import Base, get_db
from certprep.services.auth_service import create_user, open_session
from certprep.services.exam_service import build_exam


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db_session):
    def _make(username: str = "alice"):
        return create_user(db_session, username, f"{username}@example.com", "secret123")

    return _make


@pytest.fixture()
def user(make_user):
    return make_user()


@pytest.fixture()
def auth_headers(db_session):
    def _headers(account) -> dict[str, str]:
        return {"Authorization": f"Bearer {open_session(db_session, account)}"}

    return _headers


@pytest.fixture()
def make_exam(db_session):
    """Create an exam from ``(type, [is_correct, ...])`` question tuples."""

    def _make(questions=None, title: str = "Networking Basics", **fields):
        if questions is None:
            questions = [("single", [True, False, False])] * 5
        payload = {
            "title": title,
            "categoryId": fields.pop("category_id", "cat-net"),
            "questions": [
                {
                    "content": f"Question {q_index + 1}",
                    "type": q_type,
                    "options": [
                        {"content": f"Option {o_index + 1}", "isCorrect": flag}
                        for o_index, flag in enumerate(flags)
                    ],
                }
                for q_index, (q_type, flags) in enumerate(questions)
            ],
            **fields,
        }
        exam = build_exam(payload)
        db_session.add(exam)
        db_session.commit()
        db_session.refresh(exam)
        return exam

    return _make


def correct_answers_for(exam) -> dict[str, list[str]]:
    return {
        question.id: [option.id for option in question.options if option.is_correct]
        for question in exam.questions
    }


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FakeHandle:
    def __init__(self, due: float, callback) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Deterministic scheduler driven by ``advance``.

    With ``honor_cancel=False`` cancelled callbacks still run, like a timer
    thread that was already about to fire.
    """

    def __init__(self, clock: FakeClock, honor_cancel: bool = True) -> None:
        self.clock = clock
        self.honor_cancel = honor_cancel
        self.pending: list[FakeHandle] = []

    def call_later(self, delay: float, callback) -> FakeHandle:
        handle = FakeHandle(self.clock.now + delay, callback)
        self.pending.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        target = self.clock.now + seconds
        while True:
            due = [
                h for h in self.pending
                if h.due <= target + 1e-9 and (not h.cancelled or not self.honor_cancel)
            ]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.pending.remove(handle)
            self.clock.now = max(self.clock.now, handle.due)
            handle.callback()
        self.clock.now = target


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def scheduler(clock):
    return FakeScheduler(clock)
