"""Insight Rules - Pure rule battery and mission evaluation.

run_insight_engine evaluates every rule group in a fixed order and
concatenates what each group emits. Groups are independent: several
insights about the same underlying condition may appear together (for
example "awaiting input" and "no fuel" on an empty day) and are never
deduplicated.

evaluate_mission is a priority-ordered decision list: the first matching
branch wins.

The current hour is always passed in; nothing here reads the clock.
"""

import math
from typing import Sequence

from .hydration import WATER_TARGET_ML
from .metrics import round_half_away
from .models import DailyLog, Insight, Mission


# Rule ids, one per message kind. The presentation layer maps them to text.
AWAITING_INPUT = "awaiting_input"
DEFICIT_HIGH = "deficit_high"
SURPLUS_DETECTED = "surplus_detected"
CALORIE_BALANCE_OK = "calorie_balance_ok"
CRITICAL_REFUEL = "critical_refuel"
CRASH_IMMINENT = "crash_imminent"
LOW_FUEL = "low_fuel"
FUEL_PREDICTION = "fuel_prediction"
NO_FUEL = "no_fuel"
FUELING_CLOSED = "fueling_closed"
EXERCISE_DEFICIT = "exercise_deficit"
HIGH_OUTPUT = "high_output"
EXERCISE_GOAL_MET = "exercise_goal_met"
EXERCISE_IN_PROGRESS = "exercise_in_progress"
SLEEP_MISSING = "sleep_missing"
SLEEP_CRITICAL = "sleep_critical"
SLEEP_SUBOPTIMAL = "sleep_suboptimal"
SLEEP_OPTIMAL = "sleep_optimal"
HIGH_DEHYDRATION = "high_dehydration"
HYDRATION_OPTIMAL = "hydration_optimal"
HYDRATION = "hydration"
METABOLIC_SLUGGISHNESS = "metabolic_sluggishness"

DEFICIT_HIGH_KCAL = 700
SURPLUS_KCAL = -300
CRITICAL_REFUEL_KCAL = 800
CRITICAL_REFUEL_HOUR = 16
LATE_NIGHT_HOUR = 21
DEHYDRATION_CHECK_HOUR = 14
DEHYDRATION_FLOOR_ML = 1000
FLUSH_CHECK_HOUR = 18
EXERCISE_GOAL_MINUTES = 30
HIGH_OUTPUT_MINUTES = 60


def _check_hour(hour: int) -> None:
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be between 0 and 23, got {hour}")


def _balance(log: DailyLog, target_calories: int) -> tuple[int, int]:
    """Return (net intake, remaining balance to target)."""
    net = log.calories_in - log.calories_out
    return net, target_calories - net


def format_clock(hours: float) -> str:
    """Format fractional hours as a 24h HH:MM clock time.

    Args:
        hours: Hours since midnight; wraps past 24

    Returns:
        Time string such as "07:30"
    """
    clock = hours % 24
    hh = math.floor(clock)
    mm = round_half_away((clock % 1) * 60)
    if mm == 60:
        hh, mm = (hh + 1) % 24, 0
    return f"{hh:02d}:{mm:02d}"


def needs_critical_refuel(log: DailyLog, target_calories: int, hour: int) -> bool:
    """True when it is late in the day and the user is far below target.

    The UI uses this to trigger its distinct alarm.
    """
    _check_hour(hour)
    _, bal = _balance(log, target_calories)
    return hour >= CRITICAL_REFUEL_HOUR and bal > CRITICAL_REFUEL_KCAL and log.calories_in > 0


# ==================== Rule Groups ====================


def _calorie_balance_rules(log: DailyLog, target_calories: int) -> list[Insight]:
    _, bal = _balance(log, target_calories)

    if log.calories_in == 0:
        return [Insight(level="info", rule_id=AWAITING_INPUT)]
    if bal > DEFICIT_HIGH_KCAL:
        return [Insight(level="warn", rule_id=DEFICIT_HIGH, params={"balance": bal})]
    if bal < SURPLUS_KCAL:
        return [Insight(level="alert", rule_id=SURPLUS_DETECTED, params={"amount": abs(bal)})]
    return [
        Insight(
            level="ok",
            rule_id=CALORIE_BALANCE_OK,
            params={"remaining": max(bal, 0), "target_reached": bal <= 0},
        )
    ]


def _critical_refuel_rules(log: DailyLog, target_calories: int, hour: int) -> list[Insight]:
    if not needs_critical_refuel(log, target_calories, hour):
        return []
    _, bal = _balance(log, target_calories)
    return [Insight(level="alert", rule_id=CRITICAL_REFUEL, params={"kcal": bal})]


def _burn_out_rules(log: DailyLog, bmr: int, hour: int) -> list[Insight]:
    net = log.calories_in - log.calories_out

    if log.calories_in == 0:
        return [Insight(level="alert", rule_id=NO_FUEL)]
    # No burn rate to project against.
    if net <= 0 or bmr <= 0:
        return []

    fuel_hours_left = net / (bmr / 24)
    params = {
        "time": format_clock(hour + fuel_hours_left),
        "hours_left": round(fuel_hours_left, 2),
    }

    if fuel_hours_left < 1.5:
        return [Insight(level="alert", rule_id=CRASH_IMMINENT, params=params)]
    if fuel_hours_left < 3:
        return [Insight(level="warn", rule_id=LOW_FUEL, params=params)]
    return [Insight(level="info", rule_id=FUEL_PREDICTION, params=params)]


def _late_night_rules(log: DailyLog, target_calories: int, hour: int) -> list[Insight]:
    net, _ = _balance(log, target_calories)
    if hour >= LATE_NIGHT_HOUR and net > target_calories * 0.9:
        return [Insight(level="alert", rule_id=FUELING_CLOSED)]
    return []


def _exercise_rules(log: DailyLog) -> list[Insight]:
    minutes = log.exercise_minutes

    if minutes == 0:
        return [Insight(level="warn", rule_id=EXERCISE_DEFICIT)]
    if minutes >= HIGH_OUTPUT_MINUTES:
        return [Insight(level="ok", rule_id=HIGH_OUTPUT, params={"minutes": minutes})]
    if minutes >= EXERCISE_GOAL_MINUTES:
        return [Insight(level="ok", rule_id=EXERCISE_GOAL_MET, params={"minutes": minutes})]
    return [
        Insight(
            level="info",
            rule_id=EXERCISE_IN_PROGRESS,
            params={"minutes": minutes, "remaining": EXERCISE_GOAL_MINUTES - minutes},
        )
    ]


def _sleep_rules(log: DailyLog) -> list[Insight]:
    hours = log.sleep_hours

    if hours == 0:
        return [Insight(level="info", rule_id=SLEEP_MISSING)]
    if hours < 6:
        return [Insight(level="alert", rule_id=SLEEP_CRITICAL, params={"hours": hours})]
    if hours < 7:
        return [Insight(level="warn", rule_id=SLEEP_SUBOPTIMAL, params={"hours": hours})]
    return [Insight(level="ok", rule_id=SLEEP_OPTIMAL, params={"hours": hours})]


def _hydration_rules(log: DailyLog, water_target: int, hour: int) -> list[Insight]:
    if hour >= DEHYDRATION_CHECK_HOUR and log.water_ml < DEHYDRATION_FLOOR_ML:
        return [Insight(level="alert", rule_id=HIGH_DEHYDRATION, params={"ml": log.water_ml})]
    if log.water_ml >= water_target:
        return [Insight(level="ok", rule_id=HYDRATION_OPTIMAL, params={"ml": log.water_ml})]
    return [
        Insight(
            level="info",
            rule_id=HYDRATION,
            params={
                "ml": log.water_ml,
                "target": water_target,
                "remaining": water_target - log.water_ml,
            },
        )
    ]


def _flush_rules(log: DailyLog, hour: int) -> list[Insight]:
    if hour >= FLUSH_CHECK_HOUR and not log.flush_done:
        return [Insight(level="warn", rule_id=METABOLIC_SLUGGISHNESS)]
    return []


# ==================== Public API ====================


def run_insight_engine(
    log: DailyLog,
    target_calories: int,
    bmr: int,
    hour: int,
    water_target: int = WATER_TARGET_ML,
) -> list[Insight]:
    """Evaluate every rule group against today's log.

    Args:
        log: Today's log
        target_calories: The user's daily calorie target
        bmr: The user's basal metabolic rate, used for the burn-out projection
        hour: Current local hour, 0-23
        water_target: Today's hydration target in ml

    Returns:
        Insights in display-priority order

    Raises:
        ValueError: If hour is outside 0-23
    """
    _check_hour(hour)

    return [
        *_calorie_balance_rules(log, target_calories),
        *_critical_refuel_rules(log, target_calories, hour),
        *_burn_out_rules(log, bmr, hour),
        *_late_night_rules(log, target_calories, hour),
        *_exercise_rules(log),
        *_sleep_rules(log),
        *_hydration_rules(log, water_target, hour),
        *_flush_rules(log, hour),
    ]


def has_alert(insights: Sequence[Insight]) -> bool:
    return any(i.level == "alert" for i in insights)


def evaluate_mission(
    log: DailyLog,
    target_calories: int,
    hour: int,
    water_target: int = WATER_TARGET_ML,
) -> Mission:
    """Pick the single mission state for the day. First match wins.

    Args:
        log: Today's log
        target_calories: The user's daily calorie target
        hour: Current local hour, 0-23
        water_target: Today's hydration target in ml

    Returns:
        Mission; only critical_refuel carries critical=True

    Raises:
        ValueError: If hour is outside 0-23
    """
    _check_hour(hour)
    _, bal = _balance(log, target_calories)

    if log.calories_in == 0:
        return Mission(state="standby")
    if hour >= LATE_NIGHT_HOUR:
        return Mission(state="sleep")
    if hour >= CRITICAL_REFUEL_HOUR and bal > CRITICAL_REFUEL_KCAL:
        return Mission(state="critical_refuel", critical=True)
    if bal > DEFICIT_HIGH_KCAL:
        return Mission(state="fat_burn")
    if bal < SURPLUS_KCAL:
        return Mission(state="refuel")
    if log.exercise_minutes == 0:
        return Mission(state="recovery")

    all_good = (
        log.exercise_minutes >= EXERCISE_GOAL_MINUTES
        and log.sleep_hours >= 7
        and log.water_ml >= water_target
        and 0 <= bal <= 500
    )
    return Mission(state="complete" if all_good else "optimal")
