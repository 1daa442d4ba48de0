"""Resolution of diary consumption sources into nutrition snapshots."""

import logging
from dataclasses import dataclass

from nutrition_diary.domain.diary import (
    ConsumptionSource,
    CustomIngredientQuantity,
    CustomIngredientSnapshot,
    FoodSource,
    InlineFood,
    InlineFoodSource,
    NutritionSnapshot,
    RecipeCustomSource,
    RecipePortionSource,
    ResolvedConsumption,
)
from nutrition_diary.domain.errors import (
    ForbiddenError,
    InvalidInputError,
    RecipeNotFoundError,
)
from nutrition_diary.domain.nutrition import CategoryTag, NutrientProfile
from nutrition_diary.domain.recipes import Recipe
from nutrition_diary.services.catalog import BatchFoodLookup, RecipeCatalog
from nutrition_diary.services.recipe_nutrition import RecipeNutritionAggregator
from nutrition_diary.services.scaling import (
    MAX_QUANTITY_GRAMS,
    scale,
    validate_nutrient,
    validate_quantity,
)

_logger = logging.getLogger(__name__)

_NUTRIENT_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")
MAX_NAME_LENGTH = 255


def build_consumption_source(  # noqa: PLR0913
    *,
    food_id: int | None = None,
    recipe_id: int | None = None,
    quantity_grams: float | None = None,
    custom_ingredients: list[dict[str, object]] | None = None,
    inline_food: dict[str, object] | None = None,
    max_quantity_grams: float = MAX_QUANTITY_GRAMS,
) -> ConsumptionSource:
    """Validate a log request and return exactly one consumption source."""
    provided = [
        name
        for name, value in (
            ("food_id", food_id),
            ("recipe_id", recipe_id),
            ("inline_food", inline_food),
        )
        if value is not None
    ]
    if not provided:
        raise InvalidInputError("one of food_id, recipe_id or inline_food is required")
    if len(provided) > 1:
        raise InvalidInputError(
            f"only one source may be given, got: {', '.join(provided)}"
        )
    if custom_ingredients and recipe_id is None:
        raise InvalidInputError("custom_ingredients require recipe_id")
    for name, value in (("food_id", food_id), ("recipe_id", recipe_id)):
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise InvalidInputError(f"{name} must be an integer")

    if food_id is not None:
        return FoodSource(
            food_id=food_id,
            quantity_grams=_require_quantity(quantity_grams, max_quantity_grams),
        )
    if recipe_id is not None:
        if custom_ingredients:
            return RecipeCustomSource(
                recipe_id=recipe_id,
                ingredients=parse_custom_ingredients(
                    custom_ingredients, max_quantity_grams
                ),
            )
        return RecipePortionSource(
            recipe_id=recipe_id,
            quantity_grams=_require_quantity(quantity_grams, max_quantity_grams),
        )
    return InlineFoodSource(
        food=parse_inline_food(inline_food or {}),
        quantity_grams=_require_quantity(quantity_grams, max_quantity_grams),
    )


def parse_custom_ingredients(
    items: list[dict[str, object]], max_quantity_grams: float = MAX_QUANTITY_GRAMS
) -> tuple[CustomIngredientQuantity, ...]:
    """Validate custom ingredient quantities."""
    parsed: list[CustomIngredientQuantity] = []
    seen: set[int] = set()
    for index, item in enumerate(items):
        food_id = item.get("food_id")
        if isinstance(food_id, bool) or not isinstance(food_id, int):
            raise InvalidInputError(f"custom_ingredients[{index}].food_id is required")
        if food_id in seen:
            raise InvalidInputError(
                f"duplicate food_id {food_id} in custom_ingredients"
            )
        seen.add(food_id)
        grams = validate_quantity(
            item.get("quantity_grams"),  # type: ignore[arg-type]
            field=f"custom_ingredients[{index}].quantity_grams",
            limit=max_quantity_grams,
        )
        parsed.append(CustomIngredientQuantity(food_id=food_id, quantity_grams=grams))
    return tuple(parsed)


def parse_inline_food(payload: dict[str, object]) -> InlineFood:
    """Validate an inline food definition."""
    name = str(payload.get("name") or "").strip()
    if not name:
        raise InvalidInputError("inline_food.name is required")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidInputError(
            f"inline_food.name must be at most {MAX_NAME_LENGTH} characters"
        )
    values = {
        field: validate_nutrient(payload.get(field), field=f"inline_food.{field}")
        for field in _NUTRIENT_FIELDS
    }
    description = payload.get("description")
    return InlineFood(
        name=name,
        profile=NutrientProfile(**values),
        tag=parse_tag(payload.get("tag"), default=CategoryTag.ROUTINE),
        description=str(description) if description else None,
    )


def parse_tag(value: object, default: CategoryTag | None = None) -> CategoryTag | None:
    """Return a category tag, falling back to default when unset."""
    if value is None or value == "":
        return default
    if isinstance(value, CategoryTag):
        return value
    try:
        return CategoryTag(str(value))
    except ValueError:
        valid = ", ".join(tag.value for tag in CategoryTag)
        raise InvalidInputError(f"tag must be one of: {valid}") from None


def _require_quantity(quantity_grams: float | None, limit: float) -> float:
    if quantity_grams is None:
        raise InvalidInputError("quantity_grams is required")
    return validate_quantity(quantity_grams, limit=limit)


@dataclass
class ConsumptionResolver:
    """Computes the nutrition snapshot for a consumption source."""

    lookup: BatchFoodLookup
    recipes: RecipeCatalog
    aggregator: RecipeNutritionAggregator

    async def resolve(
        self, owner_id: int, source: ConsumptionSource
    ) -> ResolvedConsumption:
        """Resolve one source; exactly one branch runs per call."""
        match source:
            case FoodSource():
                return await self._resolve_food(source)
            case RecipePortionSource():
                return await self._resolve_recipe_portion(owner_id, source)
            case RecipeCustomSource():
                return await self._resolve_recipe_custom(owner_id, source)
            case InlineFoodSource():
                return _resolve_inline(source)
        raise InvalidInputError("unsupported consumption source")

    async def _resolve_food(self, source: FoodSource) -> ResolvedConsumption:
        foods = await self.lookup.fetch([source.food_id])
        food = foods[source.food_id]
        _logger.debug("Resolved food %s at %sg", food.id, source.quantity_grams)
        return ResolvedConsumption(
            snapshot=NutritionSnapshot(
                nutrients=scale(food.profile, source.quantity_grams),
                food_tag=food.tag,
            ),
            total_weight=source.quantity_grams,
            food_name=food.name,
        )

    async def _resolve_recipe_portion(
        self, owner_id: int, source: RecipePortionSource
    ) -> ResolvedConsumption:
        recipe = self._load_recipe(owner_id, source.recipe_id)
        nutrition = await self.aggregator.compute(recipe)
        _logger.debug(
            "Resolved recipe %s proportionally at %sg",
            recipe.id,
            source.quantity_grams,
        )
        return ResolvedConsumption(
            snapshot=NutritionSnapshot(
                nutrients=scale(nutrition.per_100g, source.quantity_grams),
                recipe_tag=recipe.tag,
            ),
            total_weight=source.quantity_grams,
            recipe_name=recipe.name,
        )

    async def _resolve_recipe_custom(
        self, owner_id: int, source: RecipeCustomSource
    ) -> ResolvedConsumption:
        recipe = self._load_recipe(owner_id, source.recipe_id)
        _check_custom_coverage(recipe, source.ingredients)
        foods = await self.lookup.fetch(item.food_id for item in source.ingredients)

        total = NutrientProfile.zero()
        total_weight = 0.0
        snapshots: list[CustomIngredientSnapshot] = []
        for item in source.ingredients:
            food = foods[item.food_id]
            nutrients = scale(food.profile, item.quantity_grams)
            snapshots.append(
                CustomIngredientSnapshot(
                    food_id=food.id,
                    food_name=food.name,
                    quantity_grams=item.quantity_grams,
                    nutrients=nutrients,
                )
            )
            total = total + nutrients
            total_weight += item.quantity_grams
        _logger.debug(
            "Resolved recipe %s with %s custom ingredients",
            recipe.id,
            len(snapshots),
        )
        return ResolvedConsumption(
            snapshot=NutritionSnapshot(nutrients=total, recipe_tag=recipe.tag),
            total_weight=total_weight,
            recipe_name=recipe.name,
            custom_ingredients=snapshots,
        )

    def _load_recipe(self, owner_id: int, recipe_id: int) -> Recipe:
        recipe = self.recipes.get_by_id(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        if not recipe.is_accessible_by(owner_id):
            raise ForbiddenError("you don't have permission to use this recipe")
        return recipe


def _check_custom_coverage(
    recipe: Recipe, items: tuple[CustomIngredientQuantity, ...]
) -> None:
    """Custom quantities must replace every recipe ingredient and nothing else."""
    recipe_food_ids = {ingredient.food_id for ingredient in recipe.ingredients}
    custom_food_ids = {item.food_id for item in items}
    foreign = custom_food_ids - recipe_food_ids
    if foreign:
        joined = ", ".join(str(food_id) for food_id in sorted(foreign))
        raise InvalidInputError(f"food {joined} is not an ingredient of this recipe")
    uncovered = recipe_food_ids - custom_food_ids
    if uncovered:
        joined = ", ".join(str(food_id) for food_id in sorted(uncovered))
        raise InvalidInputError(
            f"custom_ingredients must cover every ingredient, missing food {joined}"
        )


def _resolve_inline(source: InlineFoodSource) -> ResolvedConsumption:
    return ResolvedConsumption(
        snapshot=NutritionSnapshot(
            nutrients=scale(source.food.profile, source.quantity_grams),
            food_tag=source.food.tag,
        ),
        total_weight=source.quantity_grams,
        food_name=source.food.name,
    )
