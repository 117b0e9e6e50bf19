"""Goal CRUD with progress derived from attempt history on every read."""
import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from certprep.config import DEFAULT_PASSING_SCORE
from certprep.errors import BadRequest, NotFound
from certprep.models.db.attempt import Attempt
from certprep.models.db.goal import Goal, GoalStatus, GoalTargetType
from certprep.models.db.user import User
from certprep.models.goals import GoalCreate, GoalUpdate
from certprep.services.analytics import GoalExamScore, best_exam_scores, goal_progress
from certprep.services.exam_service import exam_ids_in_category, exam_titles
from certprep.utils import ensure_utc, isoformat, percentage, utc_now

logger = logging.getLogger(__name__)


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def goal_exam_scores(db: DbSession, goal: Goal) -> list[GoalExamScore]:
    """Best score per goal exam within the goal's date window, best first."""
    exam_ids = goal.exam_ids
    if not exam_ids:
        return []

    query = select(Attempt.exam_id, Attempt.score, Attempt.completed_at).where(
        Attempt.user_id == goal.user_id,
        Attempt.exam_id.in_(exam_ids),
    )
    if goal.start_date:
        query = query.where(Attempt.completed_at >= _day_start(goal.start_date))
    if goal.end_date:
        query = query.where(Attempt.completed_at < _day_start(goal.end_date + timedelta(days=1)))

    rows = [(exam_id, score, ensure_utc(ts)) for exam_id, score, ts in db.execute(query).all()]
    best = best_exam_scores(rows, exam_ids)
    titles = exam_titles(db, list(best))
    scores = [
        GoalExamScore(s.exam_id, s.score, s.completed_at, titles.get(s.exam_id))
        for s in best.values()
    ]
    return sorted(scores, key=lambda s: (-s.score, s.exam_id))


def serialize_goal(db: DbSession, goal: Goal) -> dict[str, object]:
    """Goal payload with freshly computed progress and award tier."""
    exam_ids = goal.exam_ids
    scores = goal_exam_scores(db, goal)
    progress = goal_progress(
        exam_ids, goal.passing_score, {s.exam_id: s.score for s in scores}
    )
    titles = exam_titles(db, exam_ids)
    return {
        "id": goal.id,
        "name": goal.name,
        "description": goal.description,
        "targetType": goal.target_type,
        "categoryId": goal.category_id,
        "examIds": exam_ids,
        "examTitles": [titles[exam_id] for exam_id in exam_ids if exam_id in titles],
        "passingScore": goal.passing_score,
        "startDate": goal.start_date.isoformat() if goal.start_date else None,
        "endDate": goal.end_date.isoformat() if goal.end_date else None,
        "status": goal.status,
        "priority": goal.priority,
        "awardTier": progress.award_tier.value,
        "progress": progress.as_dict(),
        "topScores": [
            {
                "examId": s.exam_id,
                "examTitle": s.exam_title,
                "score": s.score,
                "completedAt": isoformat(s.completed_at),
            }
            for s in scores
        ],
        "createdAt": isoformat(goal.created_at),
        "updatedAt": isoformat(goal.updated_at),
    }


def _check_dates(start: date | None, end: date | None) -> None:
    if start and end and start > end:
        raise BadRequest("startDate must not be after endDate")


def get_goal(db: DbSession, user: User, goal_id: str) -> Goal:
    goal = db.execute(
        select(Goal).where(
            Goal.id == goal_id, Goal.user_id == user.id, Goal.deleted_at.is_(None)
        )
    ).scalar_one_or_none()
    if goal is None:
        raise NotFound("Goal not found")
    return goal


def list_goals(
    db: DbSession,
    user: User,
    status: GoalStatus | None = None,
    priority: str | None = None,
) -> dict[str, object]:
    """The user's goals (newest first) plus status counts over all of them."""
    query = select(Goal).where(Goal.user_id == user.id, Goal.deleted_at.is_(None))
    if status:
        query = query.where(Goal.status == status.value)
    if priority:
        query = query.where(Goal.priority == priority)
    goals = db.execute(query.order_by(Goal.created_at.desc())).scalars().all()

    statuses = list(
        db.execute(
            select(Goal.status).where(Goal.user_id == user.id, Goal.deleted_at.is_(None))
        ).scalars()
    )
    completed = statuses.count(GoalStatus.COMPLETED.value)
    return {
        "goals": [serialize_goal(db, goal) for goal in goals],
        "stats": {
            "active": statuses.count(GoalStatus.ACTIVE.value),
            "completed": completed,
            "overdue": statuses.count(GoalStatus.OVERDUE.value),
            "successRate": percentage(completed, len(statuses)),
        },
    }


def create_goal(db: DbSession, user: User, data: GoalCreate) -> Goal:
    """Create an active goal.

    A category goal targets every exam currently in the category; an exams
    goal needs at least one existing exam id.
    """
    _check_dates(data.startDate, data.endDate)

    if data.targetType == GoalTargetType.CATEGORY:
        if not data.categoryId:
            raise BadRequest("categoryId is required when targetType is 'category'")
        exam_ids = exam_ids_in_category(db, data.categoryId)
        if not exam_ids:
            raise BadRequest("No exams found in selected category")
    else:
        exam_ids = list(dict.fromkeys(data.examIds))
        if not exam_ids:
            raise BadRequest("examIds are required when targetType is 'exams'")
        missing = sorted(set(exam_ids) - set(exam_titles(db, exam_ids)))
        if missing:
            raise BadRequest(f"Unknown exam ids: {', '.join(missing)}")

    goal = Goal(
        user_id=user.id,
        name=data.name.strip(),
        description=data.description,
        target_type=data.targetType.value,
        category_id=data.categoryId,
        passing_score=data.passingScore if data.passingScore is not None else DEFAULT_PASSING_SCORE,
        start_date=data.startDate,
        end_date=data.endDate,
        status=GoalStatus.ACTIVE.value,
        priority=data.priority.value,
    )
    goal.exam_ids = exam_ids
    db.add(goal)
    db.commit()
    db.refresh(goal)
    logger.info(f"User {user.id} created goal {goal.id} over {len(exam_ids)} exams")
    return goal


def update_goal(db: DbSession, user: User, goal_id: str, data: GoalUpdate) -> Goal:
    goal = get_goal(db, user, goal_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    _check_dates(changes.get("startDate", goal.start_date), changes.get("endDate", goal.end_date))

    if "name" in changes:
        goal.name = changes["name"].strip()
    if "description" in changes:
        goal.description = changes["description"]
    if "passingScore" in changes:
        goal.passing_score = changes["passingScore"]
    if "startDate" in changes:
        goal.start_date = changes["startDate"]
    if "endDate" in changes:
        goal.end_date = changes["endDate"]
    if "priority" in changes:
        goal.priority = changes["priority"].value
    if "status" in changes:
        goal.status = changes["status"].value
    db.commit()
    db.refresh(goal)
    return goal


def delete_goal(db: DbSession, user: User, goal_id: str) -> None:
    """Soft-delete a goal."""
    goal = get_goal(db, user, goal_id)
    goal.deleted_at = utc_now()
    db.commit()
    logger.info(f"User {user.id} deleted goal {goal.id}")
