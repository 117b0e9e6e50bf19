"""Dashboard endpoints.

Every endpoint takes a ``timezone`` offset (``+HH:MM``) that decides which
local day an attempt belongs to.
"""
from fastapi import APIRouter, Query

from certprep.config import DEFAULT_TIMEZONE, RECENT_ACTIVITY_LIMIT
from certprep.dependencies.auth import CurrentUser, Db
from certprep.services.dashboard_service import (
    get_dashboard_stats,
    get_heatmap,
    get_recent_activity,
    get_streak,
)
from certprep.utils import validate_timezone

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats")
def dashboard_stats(
    db: Db,
    current_user: CurrentUser,
    timezone: str = DEFAULT_TIMEZONE,
) -> dict[str, object]:
    return get_dashboard_stats(db, current_user.id, validate_timezone(timezone))


@router.get("/recent-activity")
def recent_activity(
    db: Db,
    current_user: CurrentUser,
    limit: int = Query(RECENT_ACTIVITY_LIMIT, ge=1, le=50),
) -> list[dict[str, object]]:
    return get_recent_activity(db, current_user.id, limit)


@router.get("/heatmap")
def heatmap(
    db: Db,
    current_user: CurrentUser,
    timezone: str = DEFAULT_TIMEZONE,
) -> list[dict[str, object]]:
    """One entry per local day for the last year, oldest first."""
    return get_heatmap(db, current_user.id, validate_timezone(timezone))


@router.get("/streak")
def streak(
    db: Db,
    current_user: CurrentUser,
    timezone: str = DEFAULT_TIMEZONE,
) -> dict[str, int]:
    return get_streak(db, current_user.id, validate_timezone(timezone))
