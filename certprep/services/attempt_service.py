"""Read access to persisted attempts: review lookup and history."""
from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession, selectinload

from certprep.errors import BadRequest, NotFound, Unauthorized
from certprep.models.db.attempt import Attempt
from certprep.models.db.exam import Exam
from certprep.models.db.user import User
from certprep.services.exam_service import count_participants, get_exam, serialize_exam
from certprep.services.grading_service import correct_answer_map
from certprep.utils import isoformat, percentage, round_half_up


def serialize_attempt(attempt: Attempt) -> dict[str, object]:
    """Attempt payload (answers hold only answered questions)."""
    return {
        "id": attempt.id,
        "testId": attempt.exam_id,
        "userId": attempt.user_id,
        "answers": attempt.selected_options(),
        "score": attempt.score,
        "totalQuestions": attempt.total_questions,
        "correctAnswers": attempt.correct_answers,
        "startedAt": isoformat(attempt.started_at),
        "completedAt": isoformat(attempt.completed_at),
    }


def build_attempt_response(db: DbSession, attempt: Attempt) -> dict[str, object]:
    """Attempt + test with answer key + correctAnswerMap, for review screens."""
    exam = get_exam(db, attempt.exam_id)
    return {
        "attempt": serialize_attempt(attempt),
        "test": serialize_exam(
            exam,
            include_answers=True,
            participants=count_participants(db, exam.id),
        ),
        "correctAnswerMap": correct_answer_map(exam.questions),
    }


def get_attempt_for_user(db: DbSession, attempt_id: str, user: User) -> Attempt:
    """Load an attempt owned by ``user``.

    Raises:
        NotFound: no such attempt.
        Unauthorized: the attempt belongs to someone else.
    """
    attempt = db.execute(
        select(Attempt)
        .options(selectinload(Attempt.answers))
        .where(Attempt.id == attempt_id)
    ).scalar_one_or_none()
    if attempt is None:
        raise NotFound("Attempt not found")
    if attempt.user_id != user.id:
        raise Unauthorized("Attempt belongs to another user")
    return attempt


def get_completed_attempts(db: DbSession, user_id: int) -> list[Attempt]:
    """All of a user's attempts, newest first."""
    return list(
        db.execute(
            select(Attempt)
            .where(Attempt.user_id == user_id)
            .order_by(Attempt.completed_at.desc())
        ).scalars().all()
    )


HISTORY_STATUSES = {"passed", "failed"}
HISTORY_SORT_FIELDS = {"date", "score"}


def list_history(
    db: DbSession,
    user_id: int,
    category_id: str | None = None,
    status: str | None = None,
    sort_by: str = "date",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 10,
) -> dict[str, object]:
    """Paginated attempt history with pass/fail stats over the whole filter."""
    if status and status not in HISTORY_STATUSES:
        raise BadRequest(f"Unknown status filter {status!r}")
    if sort_by not in HISTORY_SORT_FIELDS:
        raise BadRequest(f"Unknown sort field {sort_by!r}")

    query = (
        select(Attempt, Exam)
        .join(Exam, Exam.id == Attempt.exam_id)
        .where(Attempt.user_id == user_id, Exam.deleted_at.is_(None))
    )
    if category_id:
        query = query.where(Exam.category_id == category_id)
    if status == "passed":
        query = query.where(Attempt.score >= Exam.passing_score)
    elif status == "failed":
        query = query.where(Attempt.score < Exam.passing_score)

    column = Attempt.score if sort_by == "score" else Attempt.completed_at
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc())

    rows = db.execute(query).all()
    passed = sum(1 for attempt, exam in rows if attempt.score >= exam.passing_score)
    total = len(rows)

    offset = (page - 1) * limit
    items = []
    for attempt, exam in rows[offset:offset + limit]:
        items.append(
            {
                "id": attempt.id,
                "attemptId": attempt.id,
                "testId": exam.id,
                "testTitle": exam.title,
                "categoryId": exam.category_id,
                "score": attempt.score,
                "totalQuestions": attempt.total_questions,
                "correctAnswers": attempt.correct_answers,
                "duration": attempt.duration_minutes,
                "completedAt": isoformat(attempt.completed_at),
                "isPassed": attempt.score >= exam.passing_score,
            }
        )

    return {
        "items": items,
        "stats": {
            "totalTests": total,
            "passedTests": passed,
            "failedTests": total - passed,
            "averageScore": round_half_up(sum(a.score for a, _ in rows) / total) if total else 0,
            "passRate": percentage(passed, total),
        },
        "totalPages": -(-total // limit) if limit else 0,
        "currentPage": page,
    }
