"""Tests for goal management."""

import math
from datetime import date

import pytest

from nutrition_diary.domain.errors import (
    GoalNotFoundError,
    InvalidInputError,
    NotFoundError,
)
from nutrition_diary.domain.nutrition import NutrientProfile
from tests.conftest import build_engine

MONDAY = date(2024, 3, 4)


def test_create_goal_deactivates_previous_goal() -> None:
    engine = build_engine()

    first = engine.goal_service.create_goal(
        1, {"calories": 2000, "protein": 120, "start_date": "2024-01-01"}
    )
    second = engine.goal_service.create_goal(
        1, {"calories": 1800, "protein": 140, "start_date": "2024-03-01"}
    )

    assert engine.goal_service.get_active(1) == second
    assert engine.goals.goals[first.id].is_active is False
    assert [goal.id for goal in engine.goal_service.list_goals(1)] == [
        second.id,
        first.id,
    ]
    assert second.target == NutrientProfile(1800, 140, 0, 0, 0)


def test_goals_are_scoped_to_their_owner() -> None:
    engine = build_engine()
    mine = engine.goal_service.create_goal(1, {"calories": 2000})
    theirs = engine.goal_service.create_goal(2, {"calories": 2500})

    assert engine.goal_service.get_active(1) == mine
    assert engine.goal_service.get_active(2) == theirs
    with pytest.raises(GoalNotFoundError):
        engine.goal_service.update_goal(1, theirs.id, {"calories": 100})
    with pytest.raises(GoalNotFoundError):
        engine.goal_service.delete_goal(1, theirs.id)
    assert engine.goal_service.list_goals(1) == [mine]


def test_create_goal_validates_targets_and_period() -> None:
    engine = build_engine()

    with pytest.raises(InvalidInputError, match="calories must not be negative"):
        engine.goal_service.create_goal(1, {"calories": -1})
    with pytest.raises(InvalidInputError, match="protein must be a finite number"):
        engine.goal_service.create_goal(1, {"protein": math.inf})
    with pytest.raises(InvalidInputError, match="end_date"):
        engine.goal_service.create_goal(
            1, {"start_date": "2024-03-04", "end_date": "2024-03-01"}
        )
    with pytest.raises(InvalidInputError, match="YYYY-MM-DD"):
        engine.goal_service.create_goal(1, {"start_date": "March 4"})
    assert engine.goals.goals == {}


def test_create_goal_defaults_start_date_to_today() -> None:
    engine = build_engine()

    goal = engine.goal_service.create_goal(1, {"calories": 2000})

    assert goal.start_date is not None
    assert goal.end_date is None
    assert goal.is_active is True


def test_update_goal_changes_targets_and_end_date() -> None:
    engine = build_engine()
    goal = engine.goal_service.create_goal(
        1, {"calories": 2000, "fat": 70, "start_date": "2024-01-01"}
    )

    updated = engine.goal_service.update_goal(
        1, goal.id, {"calories": 2200, "fat": None, "end_date": "2024-06-30"}
    )

    assert updated.target.calories == 2200
    assert updated.target.fat == 70
    assert updated.end_date == date(2024, 6, 30)
    with pytest.raises(InvalidInputError, match="end_date"):
        engine.goal_service.update_goal(1, goal.id, {"end_date": "2023-12-31"})
    with pytest.raises(InvalidInputError, match="nothing to update"):
        engine.goal_service.update_goal(1, goal.id, {})
    with pytest.raises(InvalidInputError, match="finite"):
        engine.goal_service.update_goal(1, goal.id, {"carbs": math.nan})


def test_delete_goal_and_missing_active_goal() -> None:
    engine = build_engine()
    goal = engine.goal_service.create_goal(1, {"calories": 2000})

    engine.goal_service.delete_goal(1, goal.id)

    with pytest.raises(NotFoundError, match="no active goal"):
        engine.goal_service.get_active(1)
    with pytest.raises(GoalNotFoundError):
        engine.goal_service.delete_goal(1, goal.id)


def test_daily_summary_uses_goal_set_through_service() -> None:
    engine = build_engine()
    engine.goal_service.create_goal(1, {"calories": 1000, "start_date": "2024-01-01"})
    engine.goal_service.create_goal(1, {"calories": 2000, "start_date": "2024-02-01"})

    summary = engine.summary_service.daily_summary(1, MONDAY)

    assert summary.goal.calories == 2000
    assert summary.adherence.calories == 0
