"""Hydration Targets - Pure functions for the dynamic water target.

The ambient temperature is supplied by the caller; nothing here reads a
sensor or a weather service.
"""

from typing import Literal, Optional

from .metrics import round_half_away


WATER_TARGET_ML = 2000  # baseline daily hydration target
EXERCISE_WATER_ML_PER_30_MIN = 250
HOT_WEATHER_THRESHOLD_C = 30
HOT_WEATHER_BONUS_ML = 500


def calculate_water_target(exercise_minutes: int, temp_c: Optional[float] = None) -> int:
    """Calculate today's hydration target.

    Adds 250 ml per 30 minutes of exercise to the 2000 ml baseline, plus a
    flat 500 ml when it is hotter than 30 C. There is no upper bound.

    Args:
        exercise_minutes: Minutes of exercise logged today
        temp_c: Ambient temperature in Celsius, if known

    Returns:
        Water target in ml
    """
    target = WATER_TARGET_ML + round_half_away((exercise_minutes / 30) * EXERCISE_WATER_ML_PER_30_MIN)
    if temp_c is not None and temp_c > HOT_WEATHER_THRESHOLD_C:
        target += HOT_WEATHER_BONUS_ML
    return target


def weather_condition(temp_c: float) -> Literal["sun", "cloud"]:
    """Classify a temperature for the weather badge."""
    return "sun" if temp_c >= HOT_WEATHER_THRESHOLD_C else "cloud"
