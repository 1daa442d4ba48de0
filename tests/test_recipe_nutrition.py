"""Tests for recipe nutrition aggregation."""

import asyncio

import pytest

from nutrition_diary.domain.errors import FoodNotFoundError
from nutrition_diary.domain.nutrition import NutrientProfile
from nutrition_diary.services.recipe_nutrition import per_100g
from tests.conftest import build_engine


def test_compute_sums_ingredients_and_normalizes_to_100g() -> None:
    engine = build_engine()
    recipe = engine.recipes.add_recipe("Chicken rice", 1, [(1, 200), (2, 150)])

    nutrition = asyncio.run(engine.aggregator.compute(recipe))

    assert nutrition.total.calories == pytest.approx(525)
    assert nutrition.total.protein == pytest.approx(66.05)
    assert nutrition.total_weight == pytest.approx(350)
    assert nutrition.per_100g.calories == pytest.approx(150)
    assert [item.food_name for item in nutrition.ingredients] == [
        "Chicken breast",
        "White rice",
    ]
    assert nutrition.ingredients[1].nutrients.calories == pytest.approx(195)


def test_compute_empty_recipe_yields_zeros() -> None:
    engine = build_engine()
    recipe = engine.recipes.add_recipe("Nothing", 1, [])

    nutrition = asyncio.run(engine.aggregator.compute(recipe))

    assert nutrition.total == NutrientProfile.zero()
    assert nutrition.per_100g == NutrientProfile.zero()
    assert nutrition.total_weight == 0
    assert engine.foods.batch_calls == []


def test_per_100g_guards_zero_weight() -> None:
    total = NutrientProfile(10, 1, 1, 1, 1)

    assert per_100g(total, 0) == NutrientProfile.zero()


def test_compute_fails_on_missing_ingredient_food() -> None:
    engine = build_engine()
    recipe = engine.recipes.add_recipe("Broken", 1, [(1, 100), (77, 50)])

    with pytest.raises(FoodNotFoundError):
        asyncio.run(engine.aggregator.compute(recipe))


def test_enrich_many_uses_a_single_lookup() -> None:
    engine = build_engine()
    recipes = [
        engine.recipes.add_recipe("A", 1, [(1, 100), (2, 100)]),
        engine.recipes.add_recipe("B", 1, [(2, 50), (3, 80)]),
        engine.recipes.add_recipe("C", None, [(1, 30), (3, 20), (4, 10)]),
    ]

    results = asyncio.run(engine.aggregator.enrich_many(recipes))

    assert len(engine.foods.batch_calls) == 1
    assert sorted(engine.foods.batch_calls[0]) == [1, 2, 3, 4]
    assert [result.recipe.name for result in results] == ["A", "B", "C"]
    assert results[0].total.calories == pytest.approx(295)
