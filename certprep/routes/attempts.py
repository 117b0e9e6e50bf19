"""Attempt review endpoint."""
from fastapi import APIRouter

from certprep.dependencies.auth import CurrentUser, Db
from certprep.services.attempt_service import build_attempt_response, get_attempt_for_user
from certprep.utils import validate_id

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


@router.get("/{attempt_id}")
def get_attempt(attempt_id: str, db: Db, current_user: CurrentUser) -> dict[str, object]:
    """Attempt, its exam (with correct flags) and the correct answer map.

    Only the attempt's owner may read it.
    """
    attempt_id = validate_id("attemptId", attempt_id)
    attempt = get_attempt_for_user(db, attempt_id, current_user)
    return build_attempt_response(db, attempt)
