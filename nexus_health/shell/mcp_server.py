"""MCP Server - Tool definitions for Claude integration.

Defines all MCP tools for profile setup, daily logging, and the scoring
views. Users are identified by an opaque id sent in the X-User-Id header;
there are no credentials.
"""

import logging
from contextvars import ContextVar
from datetime import date, datetime
from typing import Callable

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings
from pydantic import ValidationError

from ..core.foods import find_food, search_food as search_food_catalogue, top_foods
from ..core.hydration import calculate_water_target, weather_condition
from ..core.insights import evaluate_mission, has_alert, run_insight_engine
from ..core.leaderboard import LEADERBOARD_WINDOW_DAYS, rank_leaderboard
from ..core.logs import empty_log, to_snapshot
from ..core.models import DailyLog, LogPatch, StoredProfile, UserProfile
from ..core.reports import (
    REPORT_DAYS,
    SPARKLINE_DAYS,
    STABILITY_DAYS,
    build_heatmap,
    calculate_stability_index,
    generate_weekly_report,
    weekly_sparkline,
)
from ..core.scoring import calculate_execution_score, score_day_breakdown
from .config import AppConfig
from .firestore_client import FirestoreConfig, HealthFirestoreClient
from .weather import MockTemperatureSource


logger = logging.getLogger(__name__)

EXECUTION_WINDOW_DAYS = 3

# Context variable to store current user_id per request
current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)

# Local wall clock; replaced in tests to freeze time
clock: Callable[[], datetime] = datetime.now

transport_security = TransportSecuritySettings(
    enable_dns_rebinding_protection=True,
    allowed_hosts=[
        "localhost:*",
        "127.0.0.1:*",
        "*.run.app:*",
        "*.run.app",
    ],
)

mcp = FastMCP(
    "nexus-health",
    instructions="""Nexus Health - Personal health tracking assistant.

Use these tools to record body metrics, log daily food, exercise, water,
sleep and bowel movements, and read back scores and insights.

On first use, call setup_profile with the user's body metrics.
Logging is additive: pass the amount to add (negative to correct a mistake).
For common foods, call search_food and log its id with log_activity(food_id=...).
After logging, call get_today to show the refreshed insights and mission.""",
    stateless_http=True,
    transport_security=transport_security,
)

# Lazy-initialized collaborators
_store: HealthFirestoreClient | None = None
_temperature: MockTemperatureSource | None = None


def get_store() -> HealthFirestoreClient:
    """Get or create the Firestore store."""
    global _store
    if _store is None:
        config = AppConfig.from_env()
        _store = HealthFirestoreClient(
            FirestoreConfig(
                project_id=config.firestore_project,
                database=config.firestore_database,
            )
        )
    return _store


def get_temperature_source() -> MockTemperatureSource:
    """Get or create the temperature source."""
    global _temperature
    if _temperature is None:
        _temperature = MockTemperatureSource()
    return _temperature


def get_user_id() -> str:
    """Get current user ID.

    Raises:
        RuntimeError: If the request did not identify a user
    """
    user_id = current_user_id.get()
    if user_id is None:
        raise RuntimeError("No user id. Send the X-User-Id header.")
    return user_id


def _today() -> date:
    return clock().date()


def _resolve_hour(hour: int | None) -> int:
    """Use the simulated hour when given, otherwise the local clock."""
    return clock().hour if hour is None else hour


def _profile_payload(stored: StoredProfile) -> dict:
    return {
        "profile": stored.profile.model_dump(),
        "metrics": stored.metrics.model_dump(),
    }


def _no_profile() -> dict:
    return {"error": "No profile found. Please use setup_profile first."}


def _day_summary(log: DailyLog, stored: StoredProfile, hour: int, temp_c: float | None) -> dict:
    """Score, insights and mission for one log."""
    metrics = stored.metrics
    water_target = calculate_water_target(log.exercise_minutes, temp_c)
    insights = run_insight_engine(log, metrics.target_calories, metrics.bmr, hour, water_target)
    mission = evaluate_mission(log, metrics.target_calories, hour, water_target)
    breakdown = score_day_breakdown(to_snapshot(log), metrics.target_calories, water_target)

    return {
        "hour": hour,
        "water_target": water_target,
        "day_score": breakdown.total,
        "score_breakdown": breakdown.model_dump(),
        "insights": [i.model_dump() for i in insights],
        "has_alert": has_alert(insights),
        "mission": mission.model_dump(),
    }


# ==================== Profile Tools ====================


@mcp.tool()
def setup_profile(
    height_cm: float,
    weight_kg: float,
    age: int,
    gender: str,
    goal: str,
    activity_level: str,
) -> dict:
    """Record the user's body metrics and compute their targets.

    Call this on first use or when the user re-onboards; it replaces the
    previous profile entirely.

    Args:
        height_cm: Height in centimetres (e.g., 175)
        weight_kg: Weight in kilograms (e.g., 75)
        age: Age in years
        gender: "male" or "female"
        goal: "loss", "gain" or "maintain"
        activity_level: "sedentary", "light", "moderate", "active" or "very_active"

    Returns:
        The stored profile with BMR, TDEE and target calories
    """
    user_id = get_user_id()
    db = get_store()

    try:
        profile = UserProfile(
            height_cm=height_cm,
            weight_kg=weight_kg,
            age=age,
            gender=gender,
            goal=goal,
            activity_level=activity_level,
        )
    except ValidationError as e:
        return {"error": f"Invalid profile: {e.errors()[0]['msg']}"}

    stored = db.save_profile(user_id, profile)
    if stored is None:
        return {"error": "Failed to save profile. Please try again."}

    return _profile_payload(stored)


@mcp.tool()
def get_profile() -> dict:
    """Retrieve the user's body metrics and computed targets.

    Returns:
        Dictionary with profile and metrics, or error message if not set up
    """
    user_id = get_user_id()
    db = get_store()

    stored = db.get_profile(user_id)
    if stored is None:
        return _no_profile()

    return _profile_payload(stored)


# ==================== Logging Tools ====================


@mcp.tool()
def log_activity(
    calories_in: int = 0,
    calories_out: int = 0,
    exercise_minutes: int = 0,
    sleep_hours: float = 0,
    water_ml: int = 0,
    flush_done: bool | None = None,
    food_id: str | None = None,
) -> dict:
    """Add to today's log.

    Numbers are added to today's totals (never dropping below zero).
    flush_done is set directly when provided. A food_id from search_food
    adds that food's calories to calories_in.

    Args:
        calories_in: kcal eaten (e.g., 450)
        calories_out: kcal burned by exercise
        exercise_minutes: Minutes of exercise
        sleep_hours: Hours slept
        water_ml: Water drunk in ml (e.g., 250)
        flush_done: Whether today's bowel movement happened
        food_id: Catalogue food eaten (e.g., "latte")

    Returns:
        Today's updated log
    """
    user_id = get_user_id()
    db = get_store()

    food = None
    if food_id is not None:
        food = find_food(food_id)
        if food is None:
            return {"error": f"Unknown food: {food_id}. Use search_food to find one."}
        calories_in += food.kcal

    patch = LogPatch(
        calories_in=calories_in,
        calories_out=calories_out,
        exercise_minutes=exercise_minutes,
        sleep_hours=sleep_hours,
        water_ml=water_ml,
        flush_done=flush_done,
    )

    log = db.patch_log(user_id, patch, _today())
    if log is None:
        return {"error": "Failed to update log. Please try again."}

    if food is not None:
        db.bump_food_frequency(user_id, food.id)

    return {"date": _today().isoformat(), "log": log.model_dump()}


@mcp.tool()
def search_food(query: str = "") -> dict:
    """Search the food catalogue for quick calorie logging.

    Matches English or Chinese names and ids, ignoring case. Pass a
    result's id to log_activity as food_id to log one serving.

    Args:
        query: Search text (e.g., "rice"); empty lists every food

    Returns:
        Dictionary with matching foods and the user's most logged favorites
    """
    user_id = get_user_id()
    db = get_store()

    favorites = top_foods(db.get_food_frequency(user_id))
    return {
        "results": [f.model_dump() for f in search_food_catalogue(query)],
        "favorites": [f.model_dump() for f in favorites],
    }


@mcp.tool()
def reset_today() -> dict:
    """Clear today's log back to a fresh day.

    Returns:
        The emptied log
    """
    user_id = get_user_id()
    db = get_store()

    log = db.reset_log(user_id, _today())
    if log is None:
        return {"error": "Failed to reset log. Please try again."}

    return {"date": _today().isoformat(), "log": log.model_dump()}


# ==================== Query Tools ====================


@mcp.tool()
def get_today(hour: int | None = None) -> dict:
    """Get today's log with score, insights and mission.

    Args:
        hour: Optional hour (0-23) to evaluate the rules at, for "what if"
            checks; defaults to the current local hour

    Returns:
        Dictionary with log, targets, score breakdown, insights and mission
    """
    user_id = get_user_id()
    db = get_store()

    stored = db.get_profile(user_id)
    if stored is None:
        return _no_profile()

    eval_hour = _resolve_hour(hour)
    if not 0 <= eval_hour <= 23:
        return {"error": "hour must be between 0 and 23."}

    log = db.get_log(user_id, _today()) or empty_log()
    temp_c = get_temperature_source().current_temp()

    return {
        "date": _today().isoformat(),
        "log": log.model_dump(),
        "metrics": stored.metrics.model_dump(),
        "temperature_c": temp_c,
        "weather": weather_condition(temp_c),
        **_day_summary(log, stored, eval_hour, temp_c),
    }


@mcp.tool()
def get_day(date_str: str) -> dict:
    """Get a past day's log and score (read-only).

    Args:
        date_str: Date in YYYY-MM-DD format

    Returns:
        Dictionary with log and score breakdown
    """
    user_id = get_user_id()
    db = get_store()

    try:
        log_date = date.fromisoformat(date_str)
    except ValueError:
        return {"error": "Invalid date format. Use YYYY-MM-DD."}

    stored = db.get_profile(user_id)
    if stored is None:
        return _no_profile()

    log = db.get_log(user_id, log_date)
    if log is None:
        return {"date": date_str, "log": None, "has_data": False}

    breakdown = score_day_breakdown(to_snapshot(log), stored.metrics.target_calories)
    return {
        "date": date_str,
        "log": log.model_dump(),
        "has_data": True,
        "day_score": breakdown.total,
        "score_breakdown": breakdown.model_dump(),
    }


@mcp.tool()
def get_execution_score() -> dict:
    """Get the 3-day execution score (days without logs count as zero).

    Returns:
        Dictionary with the score and the window length
    """
    user_id = get_user_id()
    db = get_store()

    stored = db.get_profile(user_id)
    if stored is None:
        return _no_profile()

    days = db.get_recent_snapshots(user_id, EXECUTION_WINDOW_DAYS, _today())
    return {
        "score": calculate_execution_score(days, stored.metrics.target_calories),
        "window_days": EXECUTION_WINDOW_DAYS,
    }


@mcp.tool()
def get_weekly_trend() -> dict:
    """Get the last 7 day scores for a sparkline, plus the 30-day stability index.

    Returns:
        Dictionary with daily scores (oldest first), their average and the
        share of the last 30 days scoring 70 or more
    """
    user_id = get_user_id()
    db = get_store()

    stored = db.get_profile(user_id)
    if stored is None:
        return _no_profile()

    target = stored.metrics.target_calories
    # Newest first, so the first 7 entries are the last week
    monthly = db.get_recent_logs(user_id, STABILITY_DAYS, _today())
    weekly = monthly[:SPARKLINE_DAYS]

    return {
        "daily_scores": [
            {"date": d.isoformat(), "score": s} for d, s in weekly_sparkline(weekly, target)
        ],
        "average": calculate_execution_score([to_snapshot(e.log) for e in weekly], target),
        "stability_index": calculate_stability_index([to_snapshot(e.log) for e in monthly], target),
    }


@mcp.tool()
def get_weekly_report() -> dict:
    """Compare this week (from Monday) with last week.

    Returns:
        Dictionary with average day score and calorie, hydration and sleep
        points for both weeks
    """
    user_id = get_user_id()
    db = get_store()

    stored = db.get_profile(user_id)
    if stored is None:
        return _no_profile()

    logs = db.get_recent_logs(user_id, REPORT_DAYS, _today())
    report = generate_weekly_report(logs, stored.metrics.target_calories, _today())
    if report is None:
        return {"error": "No logs yet."}

    data = report.model_dump()
    data["week_start"] = report.week_start.isoformat()
    data["trend"] = (
        "up" if report.this_week_avg > report.last_week_avg
        else "down" if report.this_week_avg < report.last_week_avg
        else "flat"
    )
    return data


@mcp.tool()
def get_heatmap(days: int = 30) -> list[dict] | dict:
    """Get per-day scores for the archive heatmap.

    Args:
        days: Number of days to include, ending today (1-90)

    Returns:
        List of cells (oldest first), where days with nothing logged have no
        score; or an error dictionary when no profile is set up
    """
    user_id = get_user_id()
    db = get_store()

    stored = db.get_profile(user_id)
    if stored is None:
        return _no_profile()

    days = max(1, min(90, days))
    logs = db.get_recent_logs(user_id, days, _today())
    return [
        {"date": c.log_date.isoformat(), "score": c.score, "has_data": c.has_data}
        for c in build_heatmap(logs, stored.metrics.target_calories)
    ]


@mcp.tool()
def get_leaderboard() -> list[dict]:
    """Get the top 10 users by 3-day execution score.

    Returns:
        Ranked entries with user id prefix, score and goal
    """
    db = get_store()

    user_days, profiles = db.load_leaderboard_inputs(LEADERBOARD_WINDOW_DAYS, _today())
    entries = rank_leaderboard(user_days, profiles)

    return [
        {
            "rank": i + 1,
            "user_id": e.user_id[:8],
            "score": e.score,
            "goal": e.goal,
        }
        for i, e in enumerate(entries)
    ]
