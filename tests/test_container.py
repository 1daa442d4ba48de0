"""Tests for container wiring."""

import asyncio

from nutrition_diary.adapters.supabase_food_repository import SupabaseFoodRepository
from nutrition_diary.adapters.supabase_goal_repository import SupabaseGoalRepository
from nutrition_diary.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.diary_service is not None
    assert container.summary_service is not None
    assert isinstance(container.goal_service.repository, SupabaseGoalRepository)
    lookup = container.recipe_service.lookup
    assert isinstance(lookup.catalog, SupabaseFoodRepository)
    assert lookup.timeout_seconds == settings.catalog_timeout_seconds
    assert container.diary_service.max_quantity_grams == 100_000
    asyncio.run(container.close_resources())
