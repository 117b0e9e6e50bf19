"""Exam (test) endpoints: fetch for taking, list by category, submit for grading."""
from fastapi import APIRouter, status

from certprep.dependencies.auth import CurrentUser, Db
from certprep.models import ExamSubmitRequest
from certprep.services.attempt_service import build_attempt_response
from certprep.services.exam_service import (
    count_participants,
    get_exam,
    list_exams_by_category,
    serialize_exam,
)
from certprep.services.grading_service import submit_attempt
from certprep.utils import validate_id

router = APIRouter(prefix="/api", tags=["tests"])


@router.get("/tests/{test_id}")
def get_test(test_id: str, db: Db, current_user: CurrentUser) -> dict[str, object]:
    """Exam with its questions; correct flags are never sent here."""
    test_id = validate_id("testId", test_id)
    exam = get_exam(db, test_id)
    return serialize_exam(
        exam,
        include_answers=False,
        participants=count_participants(db, exam.id),
    )


@router.get("/categories/{category_id}/tests")
def get_category_tests(
    category_id: str,
    db: Db,
    current_user: CurrentUser,
) -> list[dict[str, object]]:
    category_id = validate_id("categoryId", category_id)
    return list_exams_by_category(db, category_id)


@router.post("/tests/submit", status_code=status.HTTP_201_CREATED)
def submit_test(
    payload: ExamSubmitRequest,
    db: Db,
    current_user: CurrentUser,
) -> dict[str, object]:
    """Grade a submission and return the stored attempt with its review data."""
    test_id = validate_id("testId", payload.testId)
    attempt = submit_attempt(
        db,
        current_user.id,
        test_id,
        payload.answers,
        started_at=payload.startedAt,
        session_key=payload.sessionKey,
    )
    return build_attempt_response(db, attempt)
