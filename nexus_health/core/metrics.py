"""Metrics Calculations - Pure functions for energy expenditure math.

All functions are pure: same input always produces same output, no side effects.
Physical inputs are not validated here; nonsensical values produce
nonsensical but finite numbers.
"""

import math

from .models import ActivityLevel, Gender, Goal, HealthMetrics, UserProfile


ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    "sedentary": 1.2,  # desk job, no exercise
    "light": 1.375,  # 1-3 days/week light exercise
    "moderate": 1.55,  # 3-5 days/week moderate exercise
    "active": 1.725,  # 6-7 days/week hard exercise
    "very_active": 1.9,  # physical job + training
}

GOAL_CALORIE_DELTA: dict[Goal, int] = {
    "loss": -500,
    "gain": 500,
    "maintain": 0,
}


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    Python's built-in round() uses banker's rounding (2.5 -> 2), which would
    shift kcal values at exact halves.

    Args:
        value: Number to round

    Returns:
        Nearest integer, with .5 rounded away from zero
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def calculate_bmr(weight_kg: float, height_cm: float, age: int, gender: Gender) -> int:
    """Calculate Basal Metabolic Rate with the Mifflin-St Jeor equation.

    Male:   10w + 6.25h - 5a + 5
    Female: 10w + 6.25h - 5a - 161

    Args:
        weight_kg: Body weight in kilograms
        height_cm: Height in centimetres
        age: Age in years
        gender: "male" or "female"

    Returns:
        BMR in kcal/day
    """
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    if gender == "male":
        return round_half_away(base + 5)
    return round_half_away(base - 161)


def calculate_tdee(profile: UserProfile) -> int:
    """Calculate Total Daily Energy Expenditure (BMR x activity multiplier).

    Args:
        profile: The user's body metrics

    Returns:
        TDEE in kcal/day
    """
    bmr = calculate_bmr(profile.weight_kg, profile.height_cm, profile.age, profile.gender)
    return round_half_away(bmr * ACTIVITY_MULTIPLIERS[profile.activity_level])


def calculate_health_metrics(profile: UserProfile) -> HealthMetrics:
    """Calculate BMR, TDEE and goal-adjusted target calories.

    Args:
        profile: The user's body metrics

    Returns:
        HealthMetrics for the profile
    """
    bmr = calculate_bmr(profile.weight_kg, profile.height_cm, profile.age, profile.gender)
    tdee = round_half_away(bmr * ACTIVITY_MULTIPLIERS[profile.activity_level])

    return HealthMetrics(
        bmr=bmr,
        tdee=tdee,
        target_calories=tdee + GOAL_CALORIE_DELTA[profile.goal],
    )
