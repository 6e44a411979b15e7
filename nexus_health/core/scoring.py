"""Scoring - Pure functions for day and execution scores.

All functions are pure: same input always produces same output, no side effects.

A day is scored with an additive point model:

    calories   up to 40  (distance of net intake from target)
    hydration  up to 20  (-5 when below half the water target)
    exercise   up to 20
    sleep      up to 20

The sum is clamped to [0, 100].
"""

from typing import Sequence

from .hydration import WATER_TARGET_ML
from .metrics import round_half_away
from .models import DaySnapshot, DayScoreBreakdown


def calorie_points(day: DaySnapshot, target_calories: int) -> int:
    """Points for how close net intake (in - out) landed to the target."""
    diff = abs(target_calories - (day.calories_in - day.calories_out))
    if diff <= 100:
        return 40
    if diff <= 300:
        return 30
    if diff <= 500:
        return 15
    return 0


def hydration_points(day: DaySnapshot, water_target: int = WATER_TARGET_ML) -> int:
    """Points for water intake. The only category that can subtract."""
    if day.water_ml >= water_target:
        return 20
    if day.water_ml >= 0.75 * water_target:
        return 12
    if day.water_ml >= 0.5 * water_target:
        return 5
    return -5


def exercise_points(day: DaySnapshot) -> int:
    if day.exercise_minutes >= 30:
        return 20
    if day.exercise_minutes >= 15:
        return 10
    return 0


def sleep_points(day: DaySnapshot) -> int:
    if 7 <= day.sleep_hours <= 9:
        return 20
    if day.sleep_hours >= 6:
        return 10
    if day.sleep_hours > 0:
        return 3
    return 0


def score_day_breakdown(
    day: DaySnapshot,
    target_calories: int,
    water_target: int = WATER_TARGET_ML,
) -> DayScoreBreakdown:
    """Score a single day and keep the per-category points.

    Args:
        day: The day's snapshot
        target_calories: The user's daily calorie target
        water_target: Hydration target in ml for that day

    Returns:
        DayScoreBreakdown whose total is clamped to [0, 100]
    """
    calories = calorie_points(day, target_calories)
    hydration = hydration_points(day, water_target)
    exercise = exercise_points(day)
    sleep = sleep_points(day)

    total = calories + hydration + exercise + sleep

    return DayScoreBreakdown(
        calories=calories,
        hydration=hydration,
        exercise=exercise,
        sleep=sleep,
        total=max(0, min(100, total)),
    )


def calculate_day_score(
    day: DaySnapshot,
    target_calories: int,
    water_target: int = WATER_TARGET_ML,
) -> int:
    """Score a single day from 0 to 100.

    Args:
        day: The day's snapshot
        target_calories: The user's daily calorie target
        water_target: Hydration target in ml for that day

    Returns:
        Day score in [0, 100]
    """
    return score_day_breakdown(day, target_calories, water_target).total


def pad_window(days: Sequence[DaySnapshot], length: int) -> list[DaySnapshot]:
    """Fit a list of snapshots to exactly `length` days.

    Missing days are appended as all-zero snapshots so they score low
    instead of being left out of the average. Extra days are dropped.

    Args:
        days: Snapshots, newest first
        length: Window length in days

    Returns:
        List of exactly `length` snapshots
    """
    padded = list(days[:length])
    padded.extend(DaySnapshot() for _ in range(length - len(padded)))
    return padded


def calculate_execution_score(
    days: Sequence[DaySnapshot],
    target_calories: int,
    water_target: int = WATER_TARGET_ML,
) -> int:
    """Average day score over a window of days.

    Callers pad missing calendar days (see pad_window) before calling.

    Args:
        days: Snapshots in the window
        target_calories: The user's daily calorie target
        water_target: Hydration target in ml applied to every day

    Returns:
        Rounded mean day score, or 0 when there are no days
    """
    if not days:
        return 0

    total = sum(calculate_day_score(d, target_calories, water_target) for d in days)
    return max(0, min(100, round_half_away(total / len(days))))
