"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrition_diary.adapters.supabase_diary_repository import SupabaseDiaryRepository
from nutrition_diary.adapters.supabase_food_repository import SupabaseFoodRepository
from nutrition_diary.adapters.supabase_goal_repository import SupabaseGoalRepository
from nutrition_diary.adapters.supabase_recipe_repository import (
    SupabaseRecipeRepository,
)
from nutrition_diary.config import Settings
from nutrition_diary.services.catalog import BatchFoodLookup
from nutrition_diary.services.consumption import ConsumptionResolver
from nutrition_diary.services.diary import DiaryService
from nutrition_diary.services.foods import FoodService
from nutrition_diary.services.goals import GoalService
from nutrition_diary.services.recipe_nutrition import RecipeNutritionAggregator
from nutrition_diary.services.recipes import RecipeService
from nutrition_diary.services.summary import SummaryService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    food_service: FoodService
    recipe_service: RecipeService
    diary_service: DiaryService
    summary_service: SummaryService
    goal_service: GoalService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    food_repository = SupabaseFoodRepository(supabase_client)
    recipe_repository = SupabaseRecipeRepository(supabase_client)
    diary_repository = SupabaseDiaryRepository(supabase_client)
    goal_repository = SupabaseGoalRepository(supabase_client)

    lookup = BatchFoodLookup(
        catalog=food_repository,
        timeout_seconds=resolved_settings.catalog_timeout_seconds,
    )
    aggregator = RecipeNutritionAggregator(lookup)
    resolver = ConsumptionResolver(
        lookup=lookup, recipes=recipe_repository, aggregator=aggregator
    )
    food_service = FoodService(food_repository)
    recipe_service = RecipeService(
        repository=recipe_repository,
        lookup=lookup,
        aggregator=aggregator,
        max_quantity_grams=resolved_settings.max_quantity_grams,
    )
    diary_service = DiaryService(
        repository=diary_repository,
        resolver=resolver,
        foods=food_repository,
        max_quantity_grams=resolved_settings.max_quantity_grams,
    )
    summary_service = SummaryService(
        diary_repository=diary_repository, goal_repository=goal_repository
    )
    goal_service = GoalService(goal_repository)

    async def close_resources() -> None:
        # The Supabase client keeps no pooled connections that need closing.
        return None

    return AppContainer(
        settings=resolved_settings,
        food_service=food_service,
        recipe_service=recipe_service,
        diary_service=diary_service,
        summary_service=summary_service,
        goal_service=goal_service,
        close_resources=close_resources,
    )
