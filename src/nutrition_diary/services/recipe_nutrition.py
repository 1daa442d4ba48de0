"""Recipe nutrition aggregation."""

from dataclasses import dataclass

from nutrition_diary.domain.nutrition import Food, NutrientProfile
from nutrition_diary.domain.recipes import (
    IngredientNutrition,
    Recipe,
    RecipeIngredient,
    RecipeNutrition,
)
from nutrition_diary.services.catalog import BatchFoodLookup
from nutrition_diary.services.scaling import scale


@dataclass
class RecipeNutritionAggregator:
    """Derives totals and per-100 g profiles for recipes."""

    lookup: BatchFoodLookup

    async def compute(self, recipe: Recipe) -> RecipeNutrition:
        """Return the nutrition of a single recipe."""
        foods = await self.lookup.fetch(ing.food_id for ing in recipe.ingredients)
        return summarize_recipe(recipe, foods)

    async def enrich_many(self, recipes: list[Recipe]) -> list[RecipeNutrition]:
        """Return nutrition for every recipe using one lookup for all foods."""
        food_ids = {
            ingredient.food_id
            for recipe in recipes
            for ingredient in recipe.ingredients
        }
        foods = await self.lookup.fetch(food_ids)
        return [summarize_recipe(recipe, foods) for recipe in recipes]


def summarize_recipe(recipe: Recipe, foods: dict[int, Food]) -> RecipeNutrition:
    """Sum scaled ingredients and normalize to 100 g.

    ``foods`` must contain every ingredient's food; callers obtain it from
    ``BatchFoodLookup.fetch``, which fails loudly on missing ids.
    """
    total = NutrientProfile.zero()
    total_weight = 0.0
    details: list[IngredientNutrition] = []
    for ingredient in recipe.ingredients:
        food = foods[ingredient.food_id]
        nutrients = scale(food.profile, ingredient.quantity_grams)
        details.append(_ingredient_detail(ingredient, food, nutrients))
        total = total + nutrients
        total_weight += ingredient.quantity_grams
    return RecipeNutrition(
        recipe=recipe,
        total_weight=total_weight,
        total=total,
        per_100g=per_100g(total, total_weight),
        ingredients=details,
    )


def per_100g(total: NutrientProfile, total_weight: float) -> NutrientProfile:
    """Normalize totals to 100 g; zero weight yields zeros."""
    if total_weight <= 0:
        return NutrientProfile.zero()
    return total.multiply(100.0 / total_weight)


def _ingredient_detail(
    ingredient: RecipeIngredient, food: Food, nutrients: NutrientProfile
) -> IngredientNutrition:
    return IngredientNutrition(
        ingredient_id=ingredient.id,
        food_id=food.id,
        food_name=food.name,
        quantity_grams=ingredient.quantity_grams,
        nutrients=nutrients,
    )
