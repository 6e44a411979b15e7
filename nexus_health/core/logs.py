"""Daily Log Arithmetic - Pure functions for applying delta patches.

All functions are pure: same input always produces same output, no side effects.
"""

from .models import DailyLog, DaySnapshot, LogPatch


def empty_log() -> DailyLog:
    """A fresh day: every numeric field zero, flush not done."""
    return DailyLog()


def apply_patch(current: DailyLog, patch: LogPatch) -> DailyLog:
    """Apply a delta patch to a log.

    Numeric fields are added to the current value and clamped at zero.
    flush_done is overwritten when the patch provides it, otherwise kept.

    Args:
        current: The log as currently stored
        patch: Deltas to apply

    Returns:
        New DailyLog with the patch applied
    """
    return DailyLog(
        calories_in=max(0, current.calories_in + patch.calories_in),
        calories_out=max(0, current.calories_out + patch.calories_out),
        exercise_minutes=max(0, current.exercise_minutes + patch.exercise_minutes),
        sleep_hours=max(0, current.sleep_hours + patch.sleep_hours),
        water_ml=max(0, current.water_ml + patch.water_ml),
        flush_done=patch.flush_done if patch.flush_done is not None else current.flush_done,
    )


def to_snapshot(log: DailyLog) -> DaySnapshot:
    """Project a DailyLog onto the fields used for scoring."""
    return DaySnapshot(**log.model_dump(exclude={"flush_done"}))
