"""Recipe management and nutrition reads."""

import logging
from dataclasses import dataclass
from typing import Protocol

from nutrition_diary.domain.errors import (
    ForbiddenError,
    IngredientNotFoundError,
    InvalidInputError,
    RecipeNotFoundError,
)
from nutrition_diary.domain.nutrition import CategoryTag
from nutrition_diary.domain.recipes import Recipe, RecipeIngredient, RecipeNutrition
from nutrition_diary.services.catalog import BatchFoodLookup, RecipeCatalog
from nutrition_diary.services.consumption import MAX_NAME_LENGTH, parse_tag
from nutrition_diary.services.recipe_nutrition import RecipeNutritionAggregator
from nutrition_diary.services.scaling import MAX_QUANTITY_GRAMS, validate_quantity

_logger = logging.getLogger(__name__)


class RecipeRepository(RecipeCatalog, Protocol):
    """Persistence interface for recipes and their ingredients."""

    def create_recipe(
        self,
        owner_id: int,
        name: str,
        tag: CategoryTag | None,
        ingredients: list[RecipeIngredient],
    ) -> Recipe:
        """Insert a recipe and all its ingredients atomically."""

    def list_recipes(
        self, owner_id: int, user_only: bool, tag: CategoryTag | None = None
    ) -> list[Recipe]:
        """Return the owner's recipes, plus shared ones unless user_only."""

    def update_recipe(self, recipe_id: int, payload: dict[str, object]) -> Recipe:
        """Update recipe fields and return the recipe."""

    def delete_recipe(self, recipe_id: int) -> None:
        """Delete a recipe with its ingredients."""

    def add_ingredient(
        self, recipe_id: int, food_id: int, quantity_grams: float
    ) -> RecipeIngredient:
        """Add an ingredient row."""

    def get_ingredient(self, ingredient_id: int) -> RecipeIngredient | None:
        """Return an ingredient row by id."""

    def update_ingredient(
        self, ingredient_id: int, quantity_grams: float
    ) -> RecipeIngredient:
        """Change an ingredient's grams."""

    def delete_ingredient(self, ingredient_id: int) -> None:
        """Remove an ingredient row."""


@dataclass
class RecipeService:
    """Application service for recipes."""

    repository: RecipeRepository
    lookup: BatchFoodLookup
    aggregator: RecipeNutritionAggregator
    max_quantity_grams: float = MAX_QUANTITY_GRAMS

    async def create_recipe(
        self,
        owner_id: int,
        name: str,
        ingredients: list[dict[str, object]],
        tag: str | None = None,
    ) -> RecipeNutrition:
        """Validate, verify foods, then create recipe and ingredients together."""
        cleaned_name = _validate_name(name)
        parsed_tag = parse_tag(tag)
        rows: list[RecipeIngredient] = []
        seen: set[int] = set()
        for index, item in enumerate(ingredients):
            food_id = item.get("food_id")
            if isinstance(food_id, bool) or not isinstance(food_id, int):
                raise InvalidInputError(f"ingredients[{index}].food_id is required")
            if food_id in seen:
                raise InvalidInputError(f"duplicate food ID {food_id} in ingredients")
            seen.add(food_id)
            grams = validate_quantity(
                item.get("quantity_grams"),  # type: ignore[arg-type]
                field=f"ingredients[{index}].quantity_grams",
                limit=self.max_quantity_grams,
            )
            rows.append(RecipeIngredient(food_id=food_id, quantity_grams=grams))

        await self.lookup.fetch(seen)
        recipe = self.repository.create_recipe(owner_id, cleaned_name, parsed_tag, rows)
        _logger.info(
            "Created recipe %s with %s ingredients", recipe.id, len(recipe.ingredients)
        )
        return await self.aggregator.compute(recipe)

    async def get_recipe(self, owner_id: int, recipe_id: int) -> RecipeNutrition:
        """Return a recipe the caller may read, with its nutrition."""
        recipe = self._get_readable(owner_id, recipe_id)
        return await self.aggregator.compute(recipe)

    async def list_recipes(
        self, owner_id: int, user_only: bool = False, tag: str | None = None
    ) -> list[RecipeNutrition]:
        """Return recipes with nutrition using a single food lookup."""
        recipes = self.repository.list_recipes(owner_id, user_only, parse_tag(tag))
        return await self.aggregator.enrich_many(recipes)

    def update_recipe(
        self, owner_id: int, recipe_id: int, payload: dict[str, object]
    ) -> Recipe:
        """Rename or retag an owned recipe."""
        self._get_owned(owner_id, recipe_id)
        changes: dict[str, object] = {}
        if payload.get("name"):
            changes["name"] = _validate_name(str(payload["name"]))
        if "tag" in payload:
            tag = parse_tag(payload.get("tag"))
            changes["tag"] = tag.value if tag else None
        if not changes:
            raise InvalidInputError("nothing to update")
        return self.repository.update_recipe(recipe_id, changes)

    def delete_recipe(self, owner_id: int, recipe_id: int) -> None:
        """Delete an owned recipe."""
        self._get_owned(owner_id, recipe_id)
        self.repository.delete_recipe(recipe_id)

    async def add_ingredient(
        self, owner_id: int, recipe_id: int, food_id: int, quantity_grams: float
    ) -> RecipeIngredient:
        """Add an ingredient to an owned recipe."""
        recipe = self._get_owned(owner_id, recipe_id)
        grams = validate_quantity(quantity_grams, limit=self.max_quantity_grams)
        if any(item.food_id == food_id for item in recipe.ingredients):
            raise InvalidInputError(f"duplicate food ID {food_id} in ingredients")
        await self.lookup.fetch([food_id])
        return self.repository.add_ingredient(recipe_id, food_id, grams)

    def update_ingredient(
        self,
        owner_id: int,
        recipe_id: int,
        ingredient_id: int,
        quantity_grams: float,
    ) -> RecipeIngredient:
        """Change the grams of an ingredient in an owned recipe."""
        self._get_owned(owner_id, recipe_id)
        self._get_ingredient(recipe_id, ingredient_id)
        grams = validate_quantity(quantity_grams, limit=self.max_quantity_grams)
        return self.repository.update_ingredient(ingredient_id, grams)

    def delete_ingredient(
        self, owner_id: int, recipe_id: int, ingredient_id: int
    ) -> None:
        """Remove an ingredient from an owned recipe."""
        self._get_owned(owner_id, recipe_id)
        self._get_ingredient(recipe_id, ingredient_id)
        self.repository.delete_ingredient(ingredient_id)

    def _get_readable(self, owner_id: int, recipe_id: int) -> Recipe:
        recipe = self.repository.get_by_id(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        if not recipe.is_accessible_by(owner_id):
            raise ForbiddenError("you don't have permission to access this recipe")
        return recipe

    def _get_owned(self, owner_id: int, recipe_id: int) -> Recipe:
        recipe = self.repository.get_by_id(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        if recipe.owner_id != owner_id:
            raise ForbiddenError("you don't have permission to modify this recipe")
        return recipe

    def _get_ingredient(self, recipe_id: int, ingredient_id: int) -> RecipeIngredient:
        ingredient = self.repository.get_ingredient(ingredient_id)
        if ingredient is None:
            raise IngredientNotFoundError(ingredient_id)
        if ingredient.recipe_id != recipe_id:
            raise InvalidInputError("ingredient does not belong to this recipe")
        return ingredient


def _validate_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidInputError("name is required")
    if len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidInputError(f"name must be less than {MAX_NAME_LENGTH} characters")
    return cleaned
