"""Domain models for goals and summaries."""

from dataclasses import dataclass
from datetime import date

from nutrition_diary.domain.diary import DiaryEntry
from nutrition_diary.domain.nutrition import NutrientProfile


@dataclass(frozen=True)
class NutritionGoal:
    """Daily nutrient targets for an owner."""

    id: int
    owner_id: int
    target: NutrientProfile
    start_date: date
    end_date: date | None = None
    is_active: bool = True


@dataclass(frozen=True)
class TagBreakdown:
    """Calorie split between routine and contextual foods."""

    routine_calories: float
    contextual_calories: float
    routine_percent: float
    contextual_percent: float


@dataclass(frozen=True)
class DailySummary:
    """Totals, goals and adherence for one day."""

    day: date
    totals: NutrientProfile
    goal: NutrientProfile
    adherence: NutrientProfile
    breakdown: TagBreakdown
    entries: list[DiaryEntry]


@dataclass(frozen=True)
class WeeklySummary:
    """Seven daily summaries with averages."""

    start_date: date
    end_date: date
    days: list[DailySummary]
    averages: NutrientProfile
    avg_routine_percent: float
    avg_contextual_percent: float
