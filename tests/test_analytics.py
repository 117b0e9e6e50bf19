from datetime import date, datetime, timedelta, timezone

import pytest

from certprep.services import analytics
from certprep.services.analytics import AwardTier
from certprep.utils import parse_utc_offset

TODAY = date(2026, 3, 15)


def _days_ago(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=n) for n in offsets]


def test_streak_consecutive_days() -> None:
    assert analytics.current_streak(_days_ago(0, 1, 2), TODAY) == 3


def test_streak_stops_at_gap() -> None:
    assert analytics.current_streak(_days_ago(0, 2), TODAY) == 1


def test_streak_may_end_yesterday() -> None:
    assert analytics.current_streak(_days_ago(1, 2, 3, 5), TODAY) == 3


def test_streak_broken_when_last_activity_is_old() -> None:
    assert analytics.current_streak(_days_ago(2, 3, 4), TODAY) == 0
    assert analytics.current_streak([], TODAY) == 0


def test_streak_ignores_future_dates() -> None:
    dates = [TODAY + timedelta(days=1)] + _days_ago(0, 1)
    assert analytics.current_streak(dates, TODAY) == 2


def test_longest_streak_scans_whole_history() -> None:
    dates = _days_ago(0, 10, 11, 12, 13, 20, 21)
    assert analytics.current_streak(sorted(dates, reverse=True), TODAY) == 1
    assert analytics.longest_streak(dates) == 4
    assert analytics.longest_streak([]) == 0


def test_active_dates_use_local_offset() -> None:
    # 23:30 UTC on the 14th is already the 15th in +05:30
    ts = datetime(2026, 3, 14, 23, 30, tzinfo=timezone.utc)
    assert analytics.active_dates([ts], timezone.utc) == [date(2026, 3, 14)]
    assert analytics.active_dates([ts], parse_utc_offset("+05:30")) == [date(2026, 3, 15)]


def test_streak_summary_counts() -> None:
    stamps = [
        datetime(2026, 3, 15, 9, tzinfo=timezone.utc),
        datetime(2026, 3, 15, 18, tzinfo=timezone.utc),
        datetime(2026, 3, 14, 9, tzinfo=timezone.utc),
        datetime(2026, 3, 1, 9, tzinfo=timezone.utc),
    ]
    summary = analytics.streak_summary(stamps, timezone.utc, TODAY)
    assert summary.as_dict() == {
        "currentStreak": 2,
        "longestStreak": 2,
        "totalActiveDays": 3,
        "totalActivities": 4,
    }


def test_heatmap_has_full_window_with_zero_days() -> None:
    stamps = [
        datetime(2026, 3, 15, 1, tzinfo=timezone.utc),
        datetime(2026, 3, 15, 2, tzinfo=timezone.utc),
        datetime(2026, 1, 1, 12, tzinfo=timezone.utc),
        datetime(2024, 1, 1, 12, tzinfo=timezone.utc),  # outside the window
    ]
    heatmap = analytics.build_heatmap(stamps, timezone.utc, TODAY)

    assert len(heatmap) == 365
    assert heatmap[0]["date"] == (TODAY - timedelta(days=364)).isoformat()
    assert heatmap[-1] == {"date": "2026-03-15", "count": 2, "level": 1}
    by_date = {entry["date"]: entry["count"] for entry in heatmap}
    assert by_date["2026-01-01"] == 1
    assert sum(by_date.values()) == 3


def test_heatmap_buckets_by_offset() -> None:
    ts = datetime(2026, 3, 15, 2, tzinfo=timezone.utc)
    heatmap = analytics.build_heatmap([ts], parse_utc_offset("-05:00"), TODAY)
    by_date = {entry["date"]: entry["count"] for entry in heatmap}
    assert by_date["2026-03-14"] == 1
    assert by_date["2026-03-15"] == 0


@pytest.mark.parametrize(
    ("count", "level"),
    [(0, 0), (1, 1), (5, 1), (6, 2), (15, 2), (16, 3), (30, 3), (31, 4)],
)
def test_intensity_levels(count: int, level: int) -> None:
    assert analytics.intensity_level(count) == level


@pytest.mark.parametrize(
    ("average", "tier"),
    [
        (100, AwardTier.PERFECT),
        (95, AwardTier.DIAMOND),
        (90, AwardTier.GOLD),
        (82, AwardTier.SILVER),
        (79, AwardTier.BRONZE),
        (0, AwardTier.BRONZE),
    ],
)
def test_award_tiers(average: int, tier: AwardTier) -> None:
    assert analytics.award_tier(average) == tier


def test_goal_progress_example() -> None:
    progress = analytics.goal_progress(
        ["e1", "e2", "e3"], 70, {"e1": 92, "e2": 88, "e3": 65}
    )
    assert progress.as_dict() == {
        "completed": 2,
        "total": 3,
        "percentage": 67,
        "averageScore": 82,
    }
    assert progress.award_tier == AwardTier.SILVER


def test_goal_progress_without_scores() -> None:
    progress = analytics.goal_progress(["e1", "e2"], 70, {})
    assert progress.completed == 0
    assert progress.total == 2
    assert progress.average_score == 0
    assert progress.award_tier == AwardTier.BRONZE


def test_goal_progress_with_no_exams_has_total_one() -> None:
    progress = analytics.goal_progress([], 70, {})
    assert progress.total == 1
    assert progress.percentage == 0


def test_best_exam_scores_keeps_highest() -> None:
    t0 = datetime(2026, 3, 1, tzinfo=timezone.utc)
    results = [
        ("e1", 60, t0),
        ("e1", 90, t0 + timedelta(days=1)),
        ("e1", 90, t0 + timedelta(days=2)),
        ("e2", 40, t0),
        ("other", 100, t0),
    ]
    best = analytics.best_exam_scores(results, ["e1", "e2"])

    assert set(best) == {"e1", "e2"}
    assert best["e1"].score == 90
    assert best["e1"].completed_at == t0 + timedelta(days=1)
    assert best["e2"].score == 40


@pytest.mark.parametrize(
    ("minutes", "text"),
    [(0, "0m"), (45, "45m"), (60, "1h 0m"), (135, "2h 15m")],
)
def test_format_total_time(minutes: int, text: str) -> None:
    assert analytics.format_total_time(minutes) == text
