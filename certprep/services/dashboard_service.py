"""Dashboard read model: stats, recent activity, heatmap and streaks."""
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from certprep.config import HEATMAP_DAYS
from certprep.models.db.attempt import Attempt
from certprep.models.db.exam import Exam
from certprep.services.analytics import (
    active_dates,
    build_heatmap,
    current_streak,
    format_total_time,
    streak_summary,
)
from certprep.utils import ensure_utc, isoformat, local_today, round_half_up


def _completion_times(db: DbSession, user_id: int) -> list[datetime]:
    return [
        ensure_utc(ts)
        for ts in db.execute(
            select(Attempt.completed_at).where(Attempt.user_id == user_id)
        ).scalars()
    ]


def get_dashboard_stats(
    db: DbSession,
    user_id: int,
    tz: timezone,
    now: datetime | None = None,
) -> dict[str, object]:
    """Totals across every completed attempt of the user."""
    attempts = list(
        db.execute(select(Attempt).where(Attempt.user_id == user_id)).scalars()
    )
    tests_completed = len(attempts)
    average_score = (
        round_half_up(sum(a.score for a in attempts) / tests_completed)
        if tests_completed
        else 0
    )
    total_minutes = sum(a.duration_minutes for a in attempts)
    dates = active_dates((a.completed_at for a in attempts), tz)

    return {
        "testsCompleted": tests_completed,
        "averageScore": average_score,
        "totalTime": format_total_time(total_minutes),
        "streak": current_streak(dates, local_today(tz, now)),
    }


def get_recent_activity(db: DbSession, user_id: int, limit: int) -> list[dict[str, object]]:
    rows = db.execute(
        select(Attempt.id, Exam.title, Attempt.score, Attempt.completed_at)
        .join(Exam, Exam.id == Attempt.exam_id)
        .where(Attempt.user_id == user_id)
        .order_by(Attempt.completed_at.desc())
        .limit(limit)
    ).all()
    return [
        {"id": attempt_id, "test": title, "score": score, "date": isoformat(completed_at)}
        for attempt_id, title, score, completed_at in rows
    ]


def get_heatmap(
    db: DbSession,
    user_id: int,
    tz: timezone,
    now: datetime | None = None,
) -> list[dict[str, object]]:
    return build_heatmap(
        _completion_times(db, user_id),
        tz,
        local_today(tz, now),
        days=HEATMAP_DAYS,
    )


def get_streak(
    db: DbSession,
    user_id: int,
    tz: timezone,
    now: datetime | None = None,
) -> dict[str, int]:
    summary = streak_summary(_completion_times(db, user_id), tz, local_today(tz, now))
    return summary.as_dict()
