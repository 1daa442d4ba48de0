"""Daily and weekly nutrition summaries."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from nutrition_diary.domain.diary import DiaryEntry
from nutrition_diary.domain.nutrition import CategoryTag, NutrientProfile
from nutrition_diary.domain.summaries import (
    DailySummary,
    NutritionGoal,
    TagBreakdown,
    WeeklySummary,
)
from nutrition_diary.services.diary import DiaryRepository
from nutrition_diary.services.goals import GoalRepository

DAYS_PER_WEEK = 7
# Product policy: a day counts as routine only above this share, never at it.
ROUTINE_DAY_THRESHOLD_PERCENT = 75.0


def daily_totals(entries: list[DiaryEntry]) -> NutrientProfile:
    """Pointwise sum of the entries' cached snapshots."""
    total = NutrientProfile.zero()
    for entry in entries:
        total = total + entry.snapshot.nutrients
    return total


def adherence(actual: float, goal_target: float) -> float:
    """Percent of the target reached; 0 when the target is 0."""
    if goal_target == 0:
        return 0.0
    return actual / goal_target * 100


def adherence_profile(actual: NutrientProfile, goal: NutrientProfile) -> NutrientProfile:
    return NutrientProfile(
        calories=adherence(actual.calories, goal.calories),
        protein=adherence(actual.protein, goal.protein),
        carbs=adherence(actual.carbs, goal.carbs),
        fat=adherence(actual.fat, goal.fat),
        fiber=adherence(actual.fiber, goal.fiber),
    )


def tag_breakdown(entries: list[DiaryEntry]) -> TagBreakdown:
    """Split calories by each entry's resolved tag."""
    total_calories = 0.0
    routine = 0.0
    contextual = 0.0
    for entry in entries:
        calories = entry.snapshot.nutrients.calories
        total_calories += calories
        tag = entry.snapshot.resolved_tag
        if tag == CategoryTag.ROUTINE:
            routine += calories
        elif tag == CategoryTag.CONTEXTUAL:
            contextual += calories
    if total_calories == 0:
        return TagBreakdown(routine, contextual, 0.0, 0.0)
    return TagBreakdown(
        routine_calories=routine,
        contextual_calories=contextual,
        routine_percent=routine / total_calories * 100,
        contextual_percent=contextual / total_calories * 100,
    )


def routine_day_signal(entries: list[DiaryEntry]) -> bool | None:
    """True above the routine threshold, None for a day without calories."""
    if daily_totals(entries).calories == 0:
        return None
    return tag_breakdown(entries).routine_percent > ROUTINE_DAY_THRESHOLD_PERCENT


def weekly_rollup(
    start_date: date, entries: list[DiaryEntry]
) -> list[tuple[date, TagBreakdown, bool | None]]:
    """Per-day breakdown and routine signal for the 7 days from start_date."""
    by_day = _group_by_day(entries)
    rollup = []
    for offset in range(DAYS_PER_WEEK):
        day = start_date + timedelta(days=offset)
        day_entries = by_day.get(day, [])
        rollup.append((day, tag_breakdown(day_entries), routine_day_signal(day_entries)))
    return rollup


def build_daily_summary(
    day: date, entries: list[DiaryEntry], goal: NutritionGoal | None
) -> DailySummary:
    totals = daily_totals(entries)
    target = goal.target if goal else NutrientProfile.zero()
    return DailySummary(
        day=day,
        totals=totals,
        goal=target,
        adherence=adherence_profile(totals, target),
        breakdown=tag_breakdown(entries),
        entries=entries,
    )


def week_start(today: date) -> date:
    """Monday of the week containing today."""
    return today - timedelta(days=today.weekday())


@dataclass
class SummaryService:
    """Builds summaries from stored diary snapshots."""

    diary_repository: DiaryRepository
    goal_repository: GoalRepository

    def daily_summary(self, owner_id: int, day: date) -> DailySummary:
        """Return totals, goals and adherence for one day."""
        entries = self.diary_repository.list_entries(
            owner_id, day, day + timedelta(days=1)
        )
        goal = self.goal_repository.get_active(owner_id)
        return build_daily_summary(day, entries, goal)

    def weekly_summary(
        self, owner_id: int, start_date: date | None = None
    ) -> WeeklySummary:
        """Return seven daily summaries with averages."""
        start = start_date or week_start(datetime.now(tz=UTC).date())
        end = start + timedelta(days=DAYS_PER_WEEK)
        by_day = _group_by_day(self.diary_repository.list_entries(owner_id, start, end))
        goal = self.goal_repository.get_active(owner_id)

        days = [
            build_daily_summary(day, by_day.get(day, []), goal)
            for day in (start + timedelta(days=i) for i in range(DAYS_PER_WEEK))
        ]
        week_total = NutrientProfile.zero()
        routine_percent = 0.0
        contextual_percent = 0.0
        for summary in days:
            week_total = week_total + summary.totals
            routine_percent += summary.breakdown.routine_percent
            contextual_percent += summary.breakdown.contextual_percent
        return WeeklySummary(
            start_date=start,
            end_date=start + timedelta(days=DAYS_PER_WEEK - 1),
            days=days,
            averages=week_total.multiply(1 / DAYS_PER_WEEK),
            avg_routine_percent=routine_percent / DAYS_PER_WEEK,
            avg_contextual_percent=contextual_percent / DAYS_PER_WEEK,
        )

    def weekly_routine(
        self, owner_id: int, start_date: date | None = None
    ) -> list[bool | None]:
        """Return the 7 routine-day signals, Monday first by default."""
        start = start_date or week_start(datetime.now(tz=UTC).date())
        entries = self.diary_repository.list_entries(
            owner_id, start, start + timedelta(days=DAYS_PER_WEEK)
        )
        return [signal for _, _, signal in weekly_rollup(start, entries)]


def _group_by_day(entries: list[DiaryEntry]) -> dict[date, list[DiaryEntry]]:
    grouped: dict[date, list[DiaryEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.entry_date, []).append(entry)
    return grouped
