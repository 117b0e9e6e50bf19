"""Progress analytics over completed attempts.

Everything here is a pure function of its arguments; the dashboard and goal
services load rows and hand plain timestamps/scores in. Calendar days are
always taken in the caller's UTC offset.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Mapping

from certprep.utils import local_date, percentage, round_half_up


class AwardTier(str, enum.Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    DIAMOND = "diamond"
    PERFECT = "perfect"


# Highest threshold first
AWARD_TIER_THRESHOLDS: tuple[tuple[int, AwardTier], ...] = (
    (100, AwardTier.PERFECT),
    (95, AwardTier.DIAMOND),
    (90, AwardTier.GOLD),
    (80, AwardTier.SILVER),
)

# Upper bounds of heatmap intensity levels 1..3; anything above is level 4
INTENSITY_BOUNDS = (5, 15, 30)


def award_tier(average_score: int | float) -> AwardTier:
    for threshold, tier in AWARD_TIER_THRESHOLDS:
        if average_score >= threshold:
            return tier
    return AwardTier.BRONZE


def intensity_level(count: int) -> int:
    """Heatmap colour bucket: 0 empty, 1 for 1-5, 2 for 6-15, 3 for 16-30, 4 above."""
    if count <= 0:
        return 0
    for level, bound in enumerate(INTENSITY_BOUNDS, start=1):
        if count <= bound:
            return level
    return len(INTENSITY_BOUNDS) + 1


def format_total_time(total_minutes: int) -> str:
    """``"<H>h <M>m"`` when at least an hour, else ``"<M>m"``."""
    hours, minutes = divmod(max(0, total_minutes), 60)
    return f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"


def active_dates(completed_at: Iterable[datetime], tz: timezone) -> list[date]:
    """Distinct local dates with at least one completion, newest first."""
    return sorted({local_date(ts, tz) for ts in completed_at}, reverse=True)


def current_streak(dates_desc: list[date], today: date) -> int:
    """Consecutive active days ending today or yesterday.

    ``dates_desc`` must be distinct and sorted newest first. Dates after
    ``today`` are ignored.
    """
    dates = [d for d in dates_desc if d <= today]
    if not dates or dates[0] < today - timedelta(days=1):
        return 0
    streak = 1
    for newer, older in zip(dates, dates[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


def longest_streak(dates: Iterable[date]) -> int:
    """Longest run of consecutive active days anywhere in the history."""
    ordered = sorted(set(dates))
    if not ordered:
        return 0
    longest = run = 1
    for prev, curr in zip(ordered, ordered[1:]):
        run = run + 1 if (curr - prev).days == 1 else 1
        longest = max(longest, run)
    return longest


@dataclass(frozen=True)
class StreakSummary:
    current_streak: int
    longest_streak: int
    total_active_days: int
    total_activities: int

    def as_dict(self) -> dict[str, int]:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalActiveDays": self.total_active_days,
            "totalActivities": self.total_activities,
        }


def streak_summary(completed_at: list[datetime], tz: timezone, today: date) -> StreakSummary:
    dates = active_dates(completed_at, tz)
    return StreakSummary(
        current_streak=current_streak(dates, today),
        longest_streak=longest_streak(dates),
        total_active_days=len(dates),
        total_activities=len(completed_at),
    )


def build_heatmap(
    completed_at: Iterable[datetime],
    tz: timezone,
    today: date,
    days: int = 365,
) -> list[dict[str, object]]:
    """One ``{date, count, level}`` per day of the ``days``-long window ending today."""
    start = today - timedelta(days=days - 1)
    counts: dict[date, int] = {}
    for ts in completed_at:
        day = local_date(ts, tz)
        if start <= day <= today:
            counts[day] = counts.get(day, 0) + 1
    entries = []
    for offset in range(days):
        day = start + timedelta(days=offset)
        count = counts.get(day, 0)
        entries.append({"date": day.isoformat(), "count": count, "level": intensity_level(count)})
    return entries


@dataclass(frozen=True)
class GoalExamScore:
    """Best score a user recorded on one of a goal's exams."""

    exam_id: str
    score: int
    completed_at: datetime
    exam_title: str | None = None


@dataclass(frozen=True)
class GoalProgress:
    completed: int
    total: int
    percentage: int
    average_score: int

    @property
    def award_tier(self) -> AwardTier:
        return award_tier(self.average_score)

    def as_dict(self) -> dict[str, int]:
        return {
            "completed": self.completed,
            "total": self.total,
            "percentage": self.percentage,
            "averageScore": self.average_score,
        }


def best_exam_scores(
    results: Iterable[tuple[str, int, datetime]],
    exam_ids: Iterable[str],
) -> dict[str, GoalExamScore]:
    """Keep the highest ``(exam_id, score, completed_at)`` per goal exam.

    Ties keep the earliest completion.
    """
    wanted = set(exam_ids)
    best: dict[str, GoalExamScore] = {}
    for exam_id, score, completed_at in results:
        if exam_id not in wanted:
            continue
        current = best.get(exam_id)
        if (
            current is None
            or score > current.score
            or (score == current.score and completed_at < current.completed_at)
        ):
            best[exam_id] = GoalExamScore(exam_id, score, completed_at)
    return best


def goal_progress(
    exam_ids: list[str],
    passing_score: int,
    best_scores: Mapping[str, int],
) -> GoalProgress:
    """Progress of a goal from the best score per target exam."""
    scores = [best_scores[exam_id] for exam_id in dict.fromkeys(exam_ids) if exam_id in best_scores]
    completed = sum(1 for score in scores if score >= passing_score)
    total = max(len(set(exam_ids)), 1)
    average = round_half_up(sum(scores) / len(scores)) if scores else 0
    return GoalProgress(
        completed=completed,
        total=total,
        percentage=percentage(completed, total),
        average_score=average,
    )
