"""Tests for MCP tools with a mocked store, frozen clock and fixed temperature."""

import pytest
from datetime import date, datetime
from unittest.mock import MagicMock

from nexus_health.core.logs import to_snapshot
from nexus_health.core.metrics import calculate_health_metrics
from nexus_health.core.models import DailyLog, DatedLog, DaySnapshot, LogPatch, StoredProfile, UserProfile
from nexus_health.core.reports import build_date_range, pad_by_date
from nexus_health.shell import mcp_server


USER_ID = "0f1e2d3c-4b5a-6978-8796-a5b4c3d2e1f0"
TODAY = date(2026, 10, 21)


def stored_profile(goal: str = "loss") -> StoredProfile:
    profile = UserProfile(
        height_cm=175,
        weight_kg=75,
        age=28,
        gender="male",
        goal=goal,
        activity_level="moderate",
    )
    return StoredProfile(profile=profile, metrics=calculate_health_metrics(profile))


def good_log() -> DailyLog:
    return DailyLog(
        calories_in=2000,
        calories_out=300,
        exercise_minutes=30,
        sleep_hours=8,
        water_ml=2000,
    )


@pytest.fixture
def store(monkeypatch):
    """Mocked store returned by get_store()."""
    mock_store = MagicMock()
    mock_store.get_profile.return_value = stored_profile()
    monkeypatch.setattr(mcp_server, "get_store", lambda: mock_store)
    return mock_store


@pytest.fixture
def temperature(monkeypatch):
    """Temperature source fixed at 32 C."""
    source = MagicMock()
    source.current_temp.return_value = 32
    monkeypatch.setattr(mcp_server, "get_temperature_source", lambda: source)
    return source


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch):
    """Local time frozen at 15:00 on TODAY."""
    monkeypatch.setattr(mcp_server, "clock", lambda: datetime(2026, 10, 21, 15, 0))


@pytest.fixture
def user():
    """Bind the current user for the duration of a test."""
    token = mcp_server.current_user_id.set(USER_ID)
    yield USER_ID
    mcp_server.current_user_id.reset(token)


class TestUserContext:
    """Tests for get_user_id."""

    def test_missing_user_raises(self):
        with pytest.raises(RuntimeError):
            mcp_server.get_user_id()

    def test_user_bound(self, user):
        assert mcp_server.get_user_id() == USER_ID


class TestProfileTools:
    """Tests for setup_profile and get_profile."""

    def test_setup_profile(self, user, store):
        """Metrics are computed and returned with the profile."""
        store.save_profile.side_effect = lambda uid, p: StoredProfile(
            profile=p, metrics=calculate_health_metrics(p)
        )
        result = mcp_server.setup_profile(175, 75, 28, "male", "loss", "moderate")

        assert result["metrics"] == {"bmr": 1709, "tdee": 2649, "target_calories": 2149}
        assert store.save_profile.call_args[0][0] == USER_ID

    def test_setup_profile_invalid(self, user, store):
        """Invalid values are reported without touching the store."""
        result = mcp_server.setup_profile(175, 75, 28, "other", "loss", "moderate")

        assert "error" in result
        store.save_profile.assert_not_called()

    def test_setup_profile_save_failure(self, user, store):
        store.save_profile.return_value = None
        assert "error" in mcp_server.setup_profile(175, 75, 28, "male", "loss", "moderate")

    def test_get_profile_missing(self, user, store):
        store.get_profile.return_value = None
        assert "error" in mcp_server.get_profile()

    def test_get_profile(self, user, store):
        result = mcp_server.get_profile()
        assert result["profile"]["goal"] == "loss"
        assert result["metrics"]["target_calories"] == 2149


class TestLoggingTools:
    """Tests for log_activity and reset_today."""

    def test_log_activity_patches_today(self, user, store):
        store.patch_log.return_value = DailyLog(water_ml=250)
        result = mcp_server.log_activity(water_ml=250)

        store.patch_log.assert_called_once_with(USER_ID, LogPatch(water_ml=250), TODAY)
        assert result["date"] == "2026-10-21"
        assert result["log"]["water_ml"] == 250

    def test_log_activity_flush(self, user, store):
        store.patch_log.return_value = DailyLog(flush_done=True)
        mcp_server.log_activity(flush_done=True)
        assert store.patch_log.call_args[0][1].flush_done is True

    def test_log_activity_failure(self, user, store):
        store.patch_log.return_value = None
        assert "error" in mcp_server.log_activity(calories_in=300)

    def test_log_food_adds_catalogue_kcal(self, user, store):
        """A catalogue food adds its calories and counts one more use."""
        store.patch_log.return_value = DailyLog(calories_in=265)
        mcp_server.log_activity(calories_in=100, food_id="chicken_breast")

        assert store.patch_log.call_args[0][1] == LogPatch(calories_in=265)
        store.bump_food_frequency.assert_called_once_with(USER_ID, "chicken_breast")

    def test_log_unknown_food(self, user, store):
        result = mcp_server.log_activity(food_id="pizza")

        assert "error" in result
        store.patch_log.assert_not_called()
        store.bump_food_frequency.assert_not_called()

    def test_failed_food_log_not_counted(self, user, store):
        store.patch_log.return_value = None
        assert "error" in mcp_server.log_activity(food_id="latte")
        store.bump_food_frequency.assert_not_called()

    def test_reset_today(self, user, store):
        store.reset_log.return_value = DailyLog()
        result = mcp_server.reset_today()
        assert result["log"]["calories_in"] == 0
        store.reset_log.assert_called_once_with(USER_ID, TODAY)


class TestGetToday:
    """Tests for get_today."""

    def test_dashboard_at_current_hour(self, user, store, temperature):
        """Uses the clock hour and the hot-weather water target."""
        store.get_log.return_value = DailyLog(calories_in=1000, water_ml=500)
        result = mcp_server.get_today()

        assert result["hour"] == 15
        assert result["temperature_c"] == 32
        assert result["weather"] == "sun"
        assert result["water_target"] == 2500
        assert result["mission"] == {"state": "fat_burn", "critical": False}
        assert result["has_alert"] is True
        rule_ids = [i["rule_id"] for i in result["insights"]]
        assert "high_dehydration" in rule_ids
        assert "critical_refuel" not in rule_ids

    def test_simulated_hour(self, user, store, temperature):
        """An explicit hour re-evaluates the rules at that time."""
        store.get_log.return_value = DailyLog(calories_in=1000)
        result = mcp_server.get_today(hour=17)

        assert result["mission"] == {"state": "critical_refuel", "critical": True}
        assert "critical_refuel" in [i["rule_id"] for i in result["insights"]]

    def test_no_log_yet_is_fresh_day(self, user, store, temperature):
        store.get_log.return_value = None
        result = mcp_server.get_today()

        assert result["log"]["calories_in"] == 0
        assert result["mission"]["state"] == "standby"
        assert result["day_score"] == 0

    def test_invalid_hour(self, user, store, temperature):
        store.get_log.return_value = None
        assert "error" in mcp_server.get_today(hour=24)

    def test_no_profile(self, user, store, temperature):
        store.get_profile.return_value = None
        assert "error" in mcp_server.get_today()


class TestGetDay:
    """Tests for get_day."""

    def test_invalid_date(self, user, store):
        assert "error" in mcp_server.get_day("21/10/2026")

    def test_missing_day(self, user, store):
        store.get_log.return_value = None
        assert mcp_server.get_day("2026-10-01") == {"date": "2026-10-01", "log": None, "has_data": False}

    def test_scored_day(self, user, store):
        store.get_log.return_value = good_log()
        result = mcp_server.get_day("2026-10-01")

        assert result["day_score"] == 75
        assert result["score_breakdown"]["calories"] == 15


class TestScoreTools:
    """Tests for the multi-day score tools."""

    def test_execution_score(self, user, store):
        """One good day in a 3-day window scores 25."""
        store.get_recent_snapshots.return_value = [to_snapshot(good_log()), DaySnapshot(), DaySnapshot()]
        result = mcp_server.get_execution_score()

        assert result == {"score": 25, "window_days": 3}
        store.get_recent_snapshots.assert_called_once_with(USER_ID, 3, TODAY)

    def test_weekly_trend(self, user, store):
        logs = pad_by_date(
            [DatedLog(log_date=TODAY, log=good_log())],
            build_date_range(TODAY, 30),
        )
        store.get_recent_logs.return_value = logs
        result = mcp_server.get_weekly_trend()

        assert len(result["daily_scores"]) == 7
        assert result["daily_scores"][-1] == {"date": "2026-10-21", "score": 75}
        assert result["average"] == 11
        # 1 of 30 days at 70+
        assert result["stability_index"] == 3

    def test_weekly_report(self, user, store):
        store.get_recent_logs.return_value = pad_by_date(
            [DatedLog(log_date=TODAY, log=good_log())],
            build_date_range(TODAY, 14),
        )
        result = mcp_server.get_weekly_report()

        assert result["week_start"] == "2026-10-19"
        assert result["this_week_avg"] == 25
        assert result["last_week_avg"] == 0
        assert result["trend"] == "up"

    def test_heatmap_clamps_days(self, user, store):
        store.get_recent_logs.return_value = pad_by_date([], build_date_range(TODAY, 90))
        cells = mcp_server.get_heatmap(days=365)

        store.get_recent_logs.assert_called_once_with(USER_ID, 90, TODAY)
        assert all(c["has_data"] is False for c in cells)

    def test_heatmap_without_profile(self, user, store):
        """No profile is a plain error, not a list of cells."""
        store.get_profile.return_value = None
        result = mcp_server.get_heatmap()

        assert isinstance(result, dict)
        assert "error" in result
        store.get_recent_logs.assert_not_called()


class TestLeaderboardTool:
    """Tests for get_leaderboard."""

    def test_ranked_and_truncated_ids(self, store):
        store.load_leaderboard_inputs.return_value = (
            {
                "aaaaaaaa-1111": [to_snapshot(good_log())] * 3,
                "bbbbbbbb-2222": [to_snapshot(good_log())],
                "cccccccc-3333": [to_snapshot(good_log())],
            },
            {"aaaaaaaa-1111": stored_profile(), "bbbbbbbb-2222": stored_profile("gain")},
        )
        result = mcp_server.get_leaderboard()

        assert result == [
            {"rank": 1, "user_id": "aaaaaaaa", "score": 75, "goal": "loss"},
            {"rank": 2, "user_id": "bbbbbbbb", "score": 20, "goal": "gain"},
        ]
        store.load_leaderboard_inputs.assert_called_once_with(3, TODAY)


class TestSearchFoodTool:
    """Tests for search_food."""

    def test_results_and_favorites(self, user, store):
        store.get_food_frequency.return_value = {"latte": 3, "egg": 7}
        result = mcp_server.search_food("rice")

        assert [f["id"] for f in result["results"]] == ["brown_rice", "white_rice", "fried_rice"]
        assert [f["id"] for f in result["favorites"]] == ["egg", "latte"]
        store.get_food_frequency.assert_called_once_with(USER_ID)

    def test_empty_query_lists_catalogue(self, user, store):
        store.get_food_frequency.return_value = {}
        result = mcp_server.search_food()

        assert len(result["results"]) == 25
        assert result["favorites"] == []
