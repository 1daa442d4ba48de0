"""Nutrition domain models."""

from dataclasses import dataclass
from enum import Enum


class CategoryTag(str, Enum):
    """Classification of planned versus ad hoc eating."""

    ROUTINE = "routine"
    CONTEXTUAL = "contextual"
    GENERAL = "general"


class MealType(str, Enum):
    """Meal slot of a diary entry."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class NutrientProfile:
    """Nutrient vector, per 100 g unless stated otherwise."""

    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float

    @classmethod
    def zero(cls) -> "NutrientProfile":
        """Return an all-zero vector."""
        return cls(0.0, 0.0, 0.0, 0.0, 0.0)

    def __add__(self, other: "NutrientProfile") -> "NutrientProfile":
        return NutrientProfile(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
            fiber=self.fiber + other.fiber,
        )

    def multiply(self, factor: float) -> "NutrientProfile":
        """Return the vector with every field multiplied by factor."""
        return NutrientProfile(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
            fiber=self.fiber * factor,
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "fiber": self.fiber,
        }


@dataclass(frozen=True)
class Food:
    """Catalog food with a per-100 g profile."""

    id: int
    name: str
    profile: NutrientProfile
    tag: CategoryTag = CategoryTag.ROUTINE
    description: str | None = None
