"""Unit tests for report generation - pure functions, no mocks needed."""

from datetime import date

from nexus_health.core.models import DailyLog, DatedLog, DaySnapshot
from nexus_health.core.reports import (
    build_date_range,
    pad_by_date,
    is_empty_day,
    weekly_sparkline,
    calculate_stability_index,
    build_heatmap,
    monday_of,
    generate_weekly_report,
)


TARGET = 2149


def good_log() -> DailyLog:
    # 15 + 20 + 20 + 20 = 75 against TARGET
    return DailyLog(
        calories_in=2000,
        calories_out=300,
        exercise_minutes=30,
        sleep_hours=8,
        water_ml=2000,
    )


def perfect_log() -> DailyLog:
    return DailyLog(
        calories_in=2149,
        exercise_minutes=30,
        sleep_hours=8,
        water_ml=2000,
    )


class TestBuildDateRange:
    """Tests for build_date_range."""

    def test_newest_first(self):
        assert build_date_range(date(2026, 10, 19), 3) == [
            date(2026, 10, 19),
            date(2026, 10, 18),
            date(2026, 10, 17),
        ]

    def test_crosses_month_boundary(self):
        assert build_date_range(date(2026, 3, 1), 2) == [date(2026, 3, 1), date(2026, 2, 28)]

    def test_zero_days(self):
        assert build_date_range(date(2026, 10, 19), 0) == []


class TestPadByDate:
    """Tests for pad_by_date."""

    def test_missing_dates_get_empty_logs(self):
        """Gaps are filled with zero logs, in requested order."""
        dates = build_date_range(date(2026, 10, 19), 3)
        found = [DatedLog(log_date=date(2026, 10, 18), log=good_log())]
        padded = pad_by_date(found, dates)

        assert [e.log_date for e in padded] == dates
        assert padded[0].log == DailyLog()
        assert padded[1].log == good_log()
        assert padded[2].log == DailyLog()

    def test_logs_outside_window_ignored(self):
        dates = [date(2026, 10, 19)]
        found = [DatedLog(log_date=date(2026, 9, 1), log=good_log())]
        assert pad_by_date(found, dates)[0].log == DailyLog()


class TestIsEmptyDay:
    """Tests for is_empty_day."""

    def test_zero_day_is_empty(self):
        assert is_empty_day(DaySnapshot()) is True

    def test_any_activity_is_not_empty(self):
        assert is_empty_day(DaySnapshot(water_ml=250)) is False
        assert is_empty_day(DaySnapshot(sleep_hours=7)) is False

    def test_calories_out_alone_counts_as_empty(self):
        """Only intake, exercise, sleep and water mark a day as logged."""
        assert is_empty_day(DaySnapshot(calories_out=200)) is True


class TestWeeklySparkline:
    """Tests for weekly_sparkline."""

    def test_oldest_first_with_scores(self):
        logs = pad_by_date(
            [DatedLog(log_date=date(2026, 10, 19), log=good_log())],
            build_date_range(date(2026, 10, 19), 3),
        )
        assert weekly_sparkline(logs, TARGET) == [
            (date(2026, 10, 17), 0),
            (date(2026, 10, 18), 0),
            (date(2026, 10, 19), 75),
        ]


class TestCalculateStabilityIndex:
    """Tests for calculate_stability_index."""

    def test_empty_is_zero(self):
        assert calculate_stability_index([], TARGET) == 0

    def test_share_of_days_at_70_or_more(self):
        """Two of three days score at least 70: 67%."""
        days = [good_log(), perfect_log(), DaySnapshot()]
        assert calculate_stability_index(days, TARGET) == 67

    def test_all_good(self):
        assert calculate_stability_index([perfect_log()] * 30, TARGET) == 100


class TestBuildHeatmap:
    """Tests for build_heatmap."""

    def test_empty_days_have_no_score(self):
        logs = [
            DatedLog(log_date=date(2026, 10, 19), log=good_log()),
            DatedLog(log_date=date(2026, 10, 18), log=DailyLog()),
        ]
        cells = build_heatmap(logs, TARGET)

        assert [c.log_date for c in cells] == [date(2026, 10, 18), date(2026, 10, 19)]
        assert cells[0].has_data is False
        assert cells[0].score is None
        assert cells[1].has_data is True
        assert cells[1].score == 75


class TestMondayOf:
    """Tests for monday_of."""

    def test_monday_is_itself(self):
        assert monday_of(date(2026, 10, 19)) == date(2026, 10, 19)

    def test_sunday_belongs_to_previous_monday(self):
        assert monday_of(date(2026, 10, 25)) == date(2026, 10, 19)


class TestGenerateWeeklyReport:
    """Tests for generate_weekly_report."""

    def test_no_logs(self):
        assert generate_weekly_report([], TARGET, date(2026, 10, 21)) is None

    def test_splits_at_monday(self):
        """Wednesday: Mon-Wed are this week, the 11 days before are last week."""
        today = date(2026, 10, 21)
        logs = pad_by_date(
            [
                DatedLog(log_date=date(2026, 10, 20), log=good_log()),
                DatedLog(log_date=date(2026, 10, 21), log=good_log()),
            ],
            build_date_range(today, 14),
        )
        report = generate_weekly_report(logs, TARGET, today)

        assert report.week_start == date(2026, 10, 19)
        assert report.days_this_week == 3
        assert report.days_last_week == 11
        # scores 75, 75, 0
        assert report.this_week_avg == 50
        assert report.this_week_calories == 10
        assert report.this_week_sleep == 13
        assert report.last_week_avg == 0

    def test_hydration_floored_at_zero(self):
        """Dehydrated days count as 0, not -5, in the hydration average."""
        today = date(2026, 10, 21)
        logs = pad_by_date([], build_date_range(today, 14))
        report = generate_weekly_report(logs, TARGET, today)

        assert report.this_week_hydration == 0
        assert report.last_week_hydration == 0

    def test_hydration_average(self):
        """20, 20 and a floored 0 average to 13."""
        today = date(2026, 10, 21)
        logs = pad_by_date(
            [
                DatedLog(log_date=date(2026, 10, 20), log=good_log()),
                DatedLog(log_date=date(2026, 10, 21), log=good_log()),
            ],
            build_date_range(today, 3),
        )
        report = generate_weekly_report(logs, TARGET, today)
        assert report.this_week_hydration == 13
        assert report.days_last_week == 0
        assert report.last_week_avg == 0
