"""Attempt history endpoint."""
from typing import Literal

from fastapi import APIRouter, Query

from certprep.dependencies.auth import CurrentUser, Db
from certprep.services.attempt_service import list_history

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("")
def get_history(
    db: Db,
    current_user: CurrentUser,
    categoryId: str | None = None,
    status: str | None = None,
    sortBy: str = "date",
    sortOrder: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> dict[str, object]:
    """Paginated history; ``status`` is ``passed`` or ``failed``."""
    return list_history(
        db,
        current_user.id,
        category_id=categoryId,
        status=status,
        sort_by=sortBy,
        sort_order=sortOrder,
        page=page,
        limit=limit,
    )
