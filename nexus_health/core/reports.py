"""Report Generation - Pure functions for multi-day views.

All functions are pure: same input always produces same output, no side effects.
Dates are passed in explicitly; nothing here reads the clock.
"""

from datetime import date, timedelta
from typing import Optional, Sequence

from .hydration import WATER_TARGET_ML
from .logs import empty_log
from .metrics import round_half_away
from .models import DatedLog, DaySnapshot, HeatmapCell, WeeklyReport
from .scoring import calculate_day_score, score_day_breakdown


STABLE_DAY_SCORE = 70
SPARKLINE_DAYS = 7
STABILITY_DAYS = 30
REPORT_DAYS = 14


def build_date_range(end: date, day_count: int) -> list[date]:
    """List `day_count` calendar days ending at `end`, newest first."""
    return [end - timedelta(days=i) for i in range(day_count)]


def pad_by_date(logs: Sequence[DatedLog], dates: Sequence[date]) -> list[DatedLog]:
    """Line logs up with the requested dates.

    Dates without a stored log get an all-zero log so that they score low
    rather than disappearing from averages.

    Args:
        logs: Stored logs, in any order (dates outside `dates` are ignored)
        dates: The calendar days wanted, in output order

    Returns:
        One DatedLog per requested date
    """
    by_date = {entry.log_date: entry.log for entry in logs}
    return [DatedLog(log_date=d, log=by_date.get(d, empty_log())) for d in dates]


def is_empty_day(day: DaySnapshot) -> bool:
    """True when nothing was logged for the day.

    Scoring treats such a day exactly like any other zero day; this only
    lets views show "no data" instead of a score.
    """
    return (
        day.calories_in == 0
        and day.exercise_minutes == 0
        and day.sleep_hours == 0
        and day.water_ml == 0
    )


def weekly_sparkline(
    logs: Sequence[DatedLog],
    target_calories: int,
    water_target: int = WATER_TARGET_ML,
) -> list[tuple[date, int]]:
    """Day scores for a sparkline, oldest first.

    Args:
        logs: Padded logs for the window
        target_calories: The user's daily calorie target
        water_target: Hydration target in ml applied to every day

    Returns:
        List of (date, score) pairs sorted by date
    """
    ordered = sorted(logs, key=lambda x: x.log_date)
    return [
        (entry.log_date, calculate_day_score(entry.log, target_calories, water_target))
        for entry in ordered
    ]


def calculate_stability_index(
    days: Sequence[DaySnapshot],
    target_calories: int,
    water_target: int = WATER_TARGET_ML,
) -> int:
    """Percentage of days that scored at least 70.

    Args:
        days: Padded snapshots for the window
        target_calories: The user's daily calorie target
        water_target: Hydration target in ml applied to every day

    Returns:
        Rounded percentage in [0, 100]; 0 when there are no days
    """
    if not days:
        return 0

    good_days = sum(
        1 for d in days
        if calculate_day_score(d, target_calories, water_target) >= STABLE_DAY_SCORE
    )
    return round_half_away(good_days / len(days) * 100)


def build_heatmap(logs: Sequence[DatedLog], target_calories: int) -> list[HeatmapCell]:
    """Archive heatmap cells, oldest first.

    Args:
        logs: Padded logs for the window
        target_calories: The user's daily calorie target

    Returns:
        One HeatmapCell per day; empty days carry no score
    """
    cells = []
    for entry in sorted(logs, key=lambda x: x.log_date):
        if is_empty_day(entry.log):
            cells.append(HeatmapCell(log_date=entry.log_date, score=None, has_data=False))
        else:
            cells.append(
                HeatmapCell(
                    log_date=entry.log_date,
                    score=calculate_day_score(entry.log, target_calories),
                    has_data=True,
                )
            )
    return cells


def monday_of(day: date) -> date:
    """The Monday starting the ISO week that contains `day`."""
    return day - timedelta(days=day.weekday())


def _average(values: list[int]) -> int:
    if not values:
        return 0
    return round_half_away(sum(values) / len(values))


def generate_weekly_report(
    logs: Sequence[DatedLog],
    target_calories: int,
    today: date,
) -> Optional[WeeklyReport]:
    """Compare this week with last week.

    Logs dated on or after this week's Monday count as this week, older
    ones as last week. Hydration averages floor each day at zero so the
    bar reads as 0-20.

    Args:
        logs: Padded logs for the last two weeks
        target_calories: The user's daily calorie target
        today: The reporting day

    Returns:
        WeeklyReport, or None when there are no logs
    """
    if not logs:
        return None

    week_start = monday_of(today)
    this_week = [score_day_breakdown(e.log, target_calories) for e in logs if e.log_date >= week_start]
    last_week = [score_day_breakdown(e.log, target_calories) for e in logs if e.log_date < week_start]

    return WeeklyReport(
        week_start=week_start,
        this_week_avg=_average([b.total for b in this_week]),
        last_week_avg=_average([b.total for b in last_week]),
        this_week_calories=_average([b.calories for b in this_week]),
        last_week_calories=_average([b.calories for b in last_week]),
        this_week_hydration=_average([max(0, b.hydration) for b in this_week]),
        last_week_hydration=_average([max(0, b.hydration) for b in last_week]),
        this_week_sleep=_average([b.sleep for b in this_week]),
        last_week_sleep=_average([b.sleep for b in last_week]),
        days_this_week=len(this_week),
        days_last_week=len(last_week),
    )
