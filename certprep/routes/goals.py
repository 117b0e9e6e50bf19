"""Study goal endpoints."""
from fastapi import APIRouter, status

from certprep.dependencies.auth import CurrentUser, Db
from certprep.errors import BadRequest
from certprep.models import GoalCreate, GoalUpdate, MessageResponse
from certprep.models.db.goal import GoalPriority, GoalStatus
from certprep.services.goal_service import (
    create_goal,
    delete_goal,
    get_goal,
    list_goals,
    serialize_goal,
    update_goal,
)
from certprep.utils import validate_id

router = APIRouter(prefix="/api/goals", tags=["goals"])


def _status_filter(value: str | None) -> GoalStatus | None:
    if value is None or value == "all":
        return None
    try:
        return GoalStatus(value)
    except ValueError:
        raise BadRequest(f"Unknown goal status {value!r}")


def _priority_filter(value: str | None) -> str | None:
    if value is None or value == "all":
        return None
    try:
        return GoalPriority(value).value
    except ValueError:
        raise BadRequest(f"Unknown goal priority {value!r}")


@router.get("")
def get_goals(
    db: Db,
    current_user: CurrentUser,
    status: str | None = None,
    priority: str | None = None,
) -> dict[str, object]:
    """Goals with progress, plus counts by status."""
    return list_goals(
        db,
        current_user,
        status=_status_filter(status),
        priority=_priority_filter(priority),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def post_goal(data: GoalCreate, db: Db, current_user: CurrentUser) -> dict[str, object]:
    goal = create_goal(db, current_user, data)
    return serialize_goal(db, goal)


@router.get("/{goal_id}")
def get_one_goal(goal_id: str, db: Db, current_user: CurrentUser) -> dict[str, object]:
    goal = get_goal(db, current_user, validate_id("goalId", goal_id))
    return serialize_goal(db, goal)


@router.put("/{goal_id}")
def put_goal(
    goal_id: str,
    data: GoalUpdate,
    db: Db,
    current_user: CurrentUser,
) -> dict[str, object]:
    goal = update_goal(db, current_user, validate_id("goalId", goal_id), data)
    return serialize_goal(db, goal)


@router.delete("/{goal_id}", response_model=MessageResponse)
def remove_goal(goal_id: str, db: Db, current_user: CurrentUser) -> MessageResponse:
    delete_goal(db, current_user, validate_id("goalId", goal_id))
    return MessageResponse(message="Goal deleted")
