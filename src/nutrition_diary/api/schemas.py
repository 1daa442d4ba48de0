"""Request models and response serializers for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field

from nutrition_diary.domain.diary import DiaryEntry
from nutrition_diary.domain.nutrition import Food, NutrientProfile
from nutrition_diary.domain.recipes import Recipe, RecipeIngredient, RecipeNutrition
from nutrition_diary.domain.summaries import DailySummary, NutritionGoal, WeeklySummary
from nutrition_diary.services.scaling import round_nutrient, round_profile


class RequestModel(BaseModel):
    """Base for request bodies; NaN and infinity are rejected."""

    model_config = ConfigDict(allow_inf_nan=False)


class FoodCreate(RequestModel):
    """Payload for creating a catalog food."""

    name: str
    description: str | None = None
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    tag: str | None = None


class FoodUpdate(RequestModel):
    """Partial food update."""

    name: str | None = None
    description: str | None = None
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    tag: str | None = None


class IngredientIn(RequestModel):
    food_id: int
    quantity_grams: float


class RecipeCreate(RequestModel):
    """Payload for creating a recipe with its ingredients."""

    name: str
    tag: str | None = None
    ingredients: list[IngredientIn] = Field(default_factory=list)


class RecipeUpdate(RequestModel):
    name: str | None = None
    tag: str | None = None


class IngredientQuantity(RequestModel):
    quantity_grams: float


class InlineFoodIn(RequestModel):
    """Ad hoc food definition logged without a catalog record."""

    name: str
    description: str | None = None
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    tag: str | None = None


class DiaryEntryCreate(RequestModel):
    """Payload for logging consumption."""

    food_id: int | None = None
    recipe_id: int | None = None
    date: str | None = None
    meal_type: str
    quantity_grams: float | None = None
    custom_ingredients: list[IngredientIn] | None = None
    inline_food: InlineFoodIn | None = None
    notes: str | None = None


class DiaryEntryUpdate(RequestModel):
    """Partial diary entry update."""

    date: str | None = None
    meal_type: str | None = None
    quantity_grams: float | None = None
    custom_ingredients: list[IngredientIn] | None = None
    inline_food: dict[str, object] | None = None
    notes: str | None = None


class GoalCreate(RequestModel):
    """Daily targets; start_date defaults to today."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    start_date: str | None = None
    end_date: str | None = None


class GoalUpdate(RequestModel):
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    end_date: str | None = None


def serialize_food(food: Food) -> dict[str, object]:
    return {
        "id": food.id,
        "name": food.name,
        "description": food.description,
        "tag": food.tag.value,
        **round_profile(food.profile),
    }


def serialize_ingredient(ingredient: RecipeIngredient) -> dict[str, object]:
    return {
        "id": ingredient.id,
        "recipe_id": ingredient.recipe_id,
        "food_id": ingredient.food_id,
        "quantity_grams": ingredient.quantity_grams,
    }


def serialize_recipe(recipe: Recipe) -> dict[str, object]:
    return {
        "id": recipe.id,
        "name": recipe.name,
        "user_id": recipe.owner_id,
        "tag": recipe.tag.value if recipe.tag else None,
        "created_at": recipe.created_at.isoformat() if recipe.created_at else None,
    }


def serialize_recipe_nutrition(nutrition: RecipeNutrition) -> dict[str, object]:
    """Recipe with totals, per-100 g values and ingredient breakdown."""
    return {
        **serialize_recipe(nutrition.recipe),
        "total_weight": round_nutrient(nutrition.total_weight),
        "total": round_profile(nutrition.total),
        "per_100g": round_profile(nutrition.per_100g),
        "ingredients": [
            {
                "id": item.ingredient_id,
                "food_id": item.food_id,
                "food_name": item.food_name,
                "quantity_grams": item.quantity_grams,
                **round_profile(item.nutrients),
            }
            for item in nutrition.ingredients
        ],
    }


def serialize_entry(entry: DiaryEntry) -> dict[str, object]:
    """Diary entry with its cached nutrition rounded for display."""
    inline = entry.inline_food
    return {
        "id": entry.id,
        "date": entry.entry_date.isoformat(),
        "meal_type": entry.meal_type.value,
        "quantity_grams": round_nutrient(entry.quantity_grams),
        "food_id": entry.food_id,
        "recipe_id": entry.recipe_id,
        "name": entry.display_name,
        **round_profile(entry.snapshot.nutrients),
        "food_tag": entry.snapshot.food_tag.value if entry.snapshot.food_tag else None,
        "recipe_tag": (
            entry.snapshot.recipe_tag.value if entry.snapshot.recipe_tag else None
        ),
        "notes": entry.notes,
        "inline_food": (
            {
                "name": inline.name,
                "description": inline.description,
                "tag": inline.tag.value,
                **round_profile(inline.profile),
            }
            if inline
            else None
        ),
        "custom_ingredients": [
            {
                "food_id": item.food_id,
                "food_name": item.food_name,
                "quantity_grams": item.quantity_grams,
                **round_profile(item.nutrients),
            }
            for item in entry.custom_ingredients
        ]
        or None,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


def serialize_goal(goal: NutritionGoal) -> dict[str, object]:
    return {
        "id": goal.id,
        **round_profile(goal.target),
        "start_date": goal.start_date.isoformat(),
        "end_date": goal.end_date.isoformat() if goal.end_date else None,
        "is_active": goal.is_active,
    }


def serialize_daily_summary(summary: DailySummary) -> dict[str, object]:
    return {
        "date": summary.day.isoformat(),
        **_prefixed("total", summary.totals),
        **_prefixed("goal", summary.goal),
        "adherence": round_profile(summary.adherence),
        "routine_calories": round_nutrient(summary.breakdown.routine_calories),
        "contextual_calories": round_nutrient(summary.breakdown.contextual_calories),
        "routine_percent": round_nutrient(summary.breakdown.routine_percent),
        "contextual_percent": round_nutrient(summary.breakdown.contextual_percent),
        "entries": [serialize_entry(entry) for entry in summary.entries],
    }


def serialize_weekly_summary(summary: WeeklySummary) -> dict[str, object]:
    return {
        "start_date": summary.start_date.isoformat(),
        "end_date": summary.end_date.isoformat(),
        "days": [serialize_daily_summary(day) for day in summary.days],
        **_prefixed("avg", summary.averages),
        "avg_routine_percent": round_nutrient(summary.avg_routine_percent),
        "avg_contextual_percent": round_nutrient(summary.avg_contextual_percent),
    }


def _prefixed(prefix: str, profile: NutrientProfile) -> dict[str, float]:
    return {f"{prefix}_{key}": value for key, value in round_profile(profile).items()}
