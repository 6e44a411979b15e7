"""Core Data Models - Pydantic models for type safety.

All models are immutable value objects with no behavior beyond validation.
"""

from datetime import datetime, timezone
from datetime import date as DateType
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


Gender = Literal["male", "female"]
Goal = Literal["loss", "gain", "maintain"]
ActivityLevel = Literal["sedentary", "light", "moderate", "active", "very_active"]
InsightLevel = Literal["ok", "warn", "alert", "info"]
MissionState = Literal[
    "standby",
    "sleep",
    "critical_refuel",
    "fat_burn",
    "refuel",
    "recovery",
    "complete",
    "optimal",
]


class UserProfile(BaseModel):
    """Body metrics entered at onboarding. Re-onboarding replaces it wholesale."""

    model_config = ConfigDict(frozen=True)

    height_cm: float = Field(gt=0, description="Height in centimetres")
    weight_kg: float = Field(gt=0, description="Weight in kilograms")
    age: int = Field(gt=0, description="Age in years")
    gender: Gender
    goal: Goal
    activity_level: ActivityLevel


class HealthMetrics(BaseModel):
    """Targets derived from a UserProfile."""

    model_config = ConfigDict(frozen=True)

    bmr: int = Field(description="Basal metabolic rate, kcal/day")
    tdee: int = Field(description="Total daily energy expenditure, kcal/day")
    target_calories: int = Field(description="TDEE adjusted for goal, kcal/day")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredProfile(BaseModel):
    """Profile record as kept by the profile store."""

    profile: UserProfile
    metrics: HealthMetrics
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class DaySnapshot(BaseModel):
    """Read-only projection of a DailyLog used for scoring."""

    model_config = ConfigDict(frozen=True)

    calories_in: int = Field(default=0, ge=0, description="kcal consumed")
    calories_out: int = Field(default=0, ge=0, description="kcal burned via exercise")
    exercise_minutes: int = Field(default=0, ge=0)
    sleep_hours: float = Field(default=0, ge=0)
    water_ml: int = Field(default=0, ge=0)


class DailyLog(DaySnapshot):
    """One user's log for one calendar day. A fresh day is all zeros."""

    flush_done: bool = Field(default=False, description="Daily bowel movement completed")


class LogPatch(BaseModel):
    """Delta patch for today's log.

    Numeric fields are added to the current value (and may be negative);
    flush_done overwrites the current value only when provided.
    """

    calories_in: int = 0
    calories_out: int = 0
    exercise_minutes: int = 0
    sleep_hours: float = 0
    water_ml: int = 0
    flush_done: Optional[bool] = None


class DatedLog(BaseModel):
    """A DailyLog paired with the date it belongs to."""

    log_date: DateType
    log: DailyLog


class DayScoreBreakdown(BaseModel):
    """Points earned per scoring category for a single day."""

    calories: int = Field(ge=0, le=40)
    hydration: int = Field(ge=-5, le=20, description="Negative when dehydrated")
    exercise: int = Field(ge=0, le=20)
    sleep: int = Field(ge=0, le=20)
    total: int = Field(ge=0, le=100, description="Clamped sum of all categories")


class Insight(BaseModel):
    """One leveled message from the rule engine.

    Display text is owned by the presentation layer; the engine only
    emits the rule id and the values to substitute.
    """

    model_config = ConfigDict(frozen=True)

    level: InsightLevel
    rule_id: str
    params: dict[str, Any] = Field(default_factory=dict)


class Mission(BaseModel):
    """Single-value summary of the user's current day."""

    model_config = ConfigDict(frozen=True)

    state: MissionState
    critical: bool = False


class LeaderboardEntry(BaseModel):
    """One ranked user, recomputed on every leaderboard request."""

    user_id: str
    score: int = Field(ge=0, le=100)
    goal: Goal


class HeatmapCell(BaseModel):
    """One day in the archive heatmap."""

    log_date: DateType
    score: Optional[int] = Field(default=None, description="None when nothing was logged")
    has_data: bool


class WeeklyReport(BaseModel):
    """This week vs last week, split at Monday."""

    week_start: DateType
    this_week_avg: int
    last_week_avg: int
    this_week_calories: int = Field(description="Average calorie points, max 40")
    last_week_calories: int
    this_week_hydration: int = Field(description="Average hydration points, max 20")
    last_week_hydration: int
    this_week_sleep: int = Field(description="Average sleep points, max 20")
    last_week_sleep: int
    days_this_week: int
    days_last_week: int


class FoodItem(BaseModel):
    """A catalogue food with calories for one standard serving."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    name_cn: str
    kcal: int = Field(ge=0, description="kcal per serving")
    serving: str
