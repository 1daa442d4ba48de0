"""Nutrition goal management."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from nutrition_diary.domain.errors import (
    GoalNotFoundError,
    InvalidInputError,
    NotFoundError,
)
from nutrition_diary.domain.nutrition import NutrientProfile
from nutrition_diary.domain.summaries import NutritionGoal
from nutrition_diary.services.diary import parse_date
from nutrition_diary.services.scaling import validate_nutrient

_logger = logging.getLogger(__name__)

_NUTRIENT_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")


class GoalRepository(Protocol):
    """Persistence interface for nutrition goals."""

    def get_active(self, owner_id: int) -> NutritionGoal | None:
        """Return the owner's active goal, if any."""

    def get_goal(self, goal_id: int, owner_id: int) -> NutritionGoal | None:
        """Return a goal owned by owner_id, if present."""

    def list_goals(self, owner_id: int) -> list[NutritionGoal]:
        """Return all goals of the owner, newest start date first."""

    def create_goal(
        self,
        owner_id: int,
        target: NutrientProfile,
        start_date: date,
        end_date: date | None,
    ) -> NutritionGoal:
        """Insert an active goal and deactivate the owner's other goals."""

    def update_goal(self, goal_id: int, changes: dict[str, object]) -> NutritionGoal:
        """Apply target or end date changes and return the goal."""

    def delete_goal(self, goal_id: int, owner_id: int) -> bool:
        """Delete a goal; return False when nothing matched."""


@dataclass
class GoalService:
    """Application service for daily nutrition goals."""

    repository: GoalRepository

    def create_goal(self, owner_id: int, payload: dict[str, object]) -> NutritionGoal:
        """Create the owner's active goal; earlier goals are deactivated.

        The start date defaults to today and the end date is optional.
        """
        target = NutrientProfile(
            **{
                field: validate_nutrient(payload.get(field), field=field)
                for field in _NUTRIENT_FIELDS
            }
        )
        start_date = parse_date(payload.get("start_date"))
        end_date = _optional_date(payload.get("end_date"))
        _check_period(start_date, end_date)
        goal = self.repository.create_goal(owner_id, target, start_date, end_date)
        _logger.info("Created goal %s for user %s", goal.id, owner_id)
        return goal

    def get_active(self, owner_id: int) -> NutritionGoal:
        goal = self.repository.get_active(owner_id)
        if goal is None:
            raise NotFoundError("no active goal found")
        return goal

    def list_goals(self, owner_id: int) -> list[NutritionGoal]:
        return self.repository.list_goals(owner_id)

    def update_goal(
        self, owner_id: int, goal_id: int, payload: dict[str, object]
    ) -> NutritionGoal:
        """Change targets or the end date of an owned goal."""
        goal = self._get_goal(owner_id, goal_id)
        changes: dict[str, object] = {
            field: validate_nutrient(payload[field], field=field)
            for field in _NUTRIENT_FIELDS
            if payload.get(field) is not None
        }
        if "end_date" in payload:
            end_date = _optional_date(payload["end_date"])
            _check_period(goal.start_date, end_date)
            changes["end_date"] = end_date
        if not changes:
            raise InvalidInputError("nothing to update")
        return self.repository.update_goal(goal_id, changes)

    def delete_goal(self, owner_id: int, goal_id: int) -> None:
        if not self.repository.delete_goal(goal_id, owner_id):
            raise GoalNotFoundError(goal_id)

    def _get_goal(self, owner_id: int, goal_id: int) -> NutritionGoal:
        goal = self.repository.get_goal(goal_id, owner_id)
        if goal is None:
            raise GoalNotFoundError(goal_id)
        return goal


def _optional_date(value: object) -> date | None:
    if value is None or value == "":
        return None
    return parse_date(value)


def _check_period(start_date: date, end_date: date | None) -> None:
    if end_date is not None and end_date < start_date:
        raise InvalidInputError("end_date must not be before start_date")
