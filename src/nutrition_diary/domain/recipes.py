"""Domain models for recipes."""

from dataclasses import dataclass, field
from datetime import datetime

from nutrition_diary.domain.nutrition import CategoryTag, NutrientProfile


@dataclass(frozen=True)
class RecipeIngredient:
    """Food reference with a quantity in grams."""

    food_id: int
    quantity_grams: float
    id: int | None = None
    recipe_id: int | None = None


@dataclass(frozen=True)
class Recipe:
    """User-composed food; owner None means a shared recipe."""

    id: int
    name: str
    owner_id: int | None
    tag: CategoryTag | None = None
    ingredients: list[RecipeIngredient] = field(default_factory=list)
    created_at: datetime | None = None

    def is_accessible_by(self, owner_id: int) -> bool:
        """Return True for shared recipes and the owner's own recipes."""
        return self.owner_id is None or self.owner_id == owner_id


@dataclass(frozen=True)
class IngredientNutrition:
    """Nutrition contributed by one ingredient."""

    ingredient_id: int | None
    food_id: int
    food_name: str
    quantity_grams: float
    nutrients: NutrientProfile


@dataclass(frozen=True)
class RecipeNutrition:
    """Derived nutrition for a recipe."""

    recipe: Recipe
    total_weight: float
    total: NutrientProfile
    per_100g: NutrientProfile
    ingredients: list[IngredientNutrition]
