"""Shared test fixtures and in-memory repositories."""

import time
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime

import pytest

from nutrition_diary.config import Settings
from nutrition_diary.containers import AppContainer
from nutrition_diary.domain.diary import DiaryEntry, NewDiaryEntry
from nutrition_diary.domain.errors import InternalError
from nutrition_diary.domain.nutrition import CategoryTag, Food, NutrientProfile
from nutrition_diary.domain.recipes import Recipe, RecipeIngredient
from nutrition_diary.domain.summaries import NutritionGoal
from nutrition_diary.services.catalog import BatchFoodLookup
from nutrition_diary.services.consumption import ConsumptionResolver
from nutrition_diary.services.diary import DiaryRepository, DiaryService
from nutrition_diary.services.foods import FoodRepository, FoodService
from nutrition_diary.services.recipe_nutrition import RecipeNutritionAggregator
from nutrition_diary.services.recipes import RecipeRepository, RecipeService
from nutrition_diary.services.goals import GoalRepository, GoalService
from nutrition_diary.services.summary import SummaryService

CHICKEN = Food(
    id=1,
    name="Chicken breast",
    profile=NutrientProfile(calories=165, protein=31, carbs=0, fat=3.6, fiber=0),
    tag=CategoryTag.ROUTINE,
)
RICE = Food(
    id=2,
    name="White rice",
    profile=NutrientProfile(calories=130, protein=2.7, carbs=28, fat=0.3, fiber=0.4),
    tag=CategoryTag.ROUTINE,
)
CAKE = Food(
    id=3,
    name="Birthday cake",
    profile=NutrientProfile(calories=399, protein=4, carbs=55, fat=18, fiber=1),
    tag=CategoryTag.CONTEXTUAL,
)
BROCCOLI = Food(
    id=4,
    name="Broccoli",
    profile=NutrientProfile(calories=34, protein=2.8, carbs=7, fat=0.4, fiber=2.6),
    tag=CategoryTag.GENERAL,
)


@dataclass
class InMemoryFoodRepository(FoodRepository):
    foods: dict[int, Food] = field(default_factory=dict)
    batch_calls: list[list[int]] = field(default_factory=list)

    def get_by_id(self, food_id: int) -> Food | None:
        return self.foods.get(food_id)

    def get_by_ids(self, food_ids: list[int]) -> list[Food]:
        self.batch_calls.append(list(food_ids))
        return [self.foods[food_id] for food_id in food_ids if food_id in self.foods]

    def create_food(self, payload: dict[str, object]) -> Food:
        food_id = max(self.foods, default=0) + 1
        food = Food(
            id=food_id,
            name=str(payload["name"]),
            profile=NutrientProfile(
                calories=float(payload.get("calories", 0.0)),
                protein=float(payload.get("protein", 0.0)),
                carbs=float(payload.get("carbs", 0.0)),
                fat=float(payload.get("fat", 0.0)),
                fiber=float(payload.get("fiber", 0.0)),
            ),
            tag=CategoryTag(payload.get("tag") or "routine"),
            description=payload.get("description"),  # type: ignore[arg-type]
        )
        self.foods[food_id] = food
        return food

    def update_food(self, food_id: int, payload: dict[str, object]) -> Food:
        food = self.foods[food_id]
        values = {**food.profile.as_dict()}
        values.update(
            {key: float(value) for key, value in payload.items() if key in values}  # type: ignore[arg-type]
        )
        updated = replace(
            food,
            name=str(payload.get("name", food.name)),
            profile=NutrientProfile(**values),
            tag=CategoryTag(payload.get("tag", food.tag.value)),
        )
        self.foods[food_id] = updated
        return updated

    def list_foods(self, tag: CategoryTag | None, limit: int) -> list[Food]:
        foods = [food for food in self.foods.values() if tag is None or food.tag == tag]
        return sorted(foods, key=lambda food: food.name)[:limit]

    def delete_food(self, food_id: int) -> None:
        self.foods.pop(food_id, None)


@dataclass
class SlowFoodCatalog:
    delay_seconds: float

    def get_by_id(self, food_id: int) -> Food | None:
        return None

    def get_by_ids(self, food_ids: list[int]) -> list[Food]:
        time.sleep(self.delay_seconds)
        return []


@dataclass
class FailingFoodCatalog:
    def get_by_id(self, food_id: int) -> Food | None:
        return None

    def get_by_ids(self, food_ids: list[int]) -> list[Food]:
        raise ConnectionError("catalog unreachable")


@dataclass
class InMemoryRecipeRepository(RecipeRepository):
    recipes: dict[int, Recipe] = field(default_factory=dict)
    ingredients: dict[int, RecipeIngredient] = field(default_factory=dict)
    fail_ingredient_insert: bool = False
    ingredient_queries: int = 0

    def add_recipe(
        self,
        name: str,
        owner_id: int | None,
        items: list[tuple[int, float]],
        tag: CategoryTag | None = None,
    ) -> Recipe:
        recipe_id = max(self.recipes, default=0) + 1
        self.recipes[recipe_id] = Recipe(
            id=recipe_id, name=name, owner_id=owner_id, tag=tag
        )
        for food_id, grams in items:
            self.add_ingredient(recipe_id, food_id, grams)
        return self.get_by_id(recipe_id)  # type: ignore[return-value]

    def get_by_id(self, recipe_id: int) -> Recipe | None:
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            return None
        return replace(recipe, ingredients=self._ingredients_of(recipe_id))

    def get_ingredients(self, recipe_id: int) -> list[RecipeIngredient]:
        self.ingredient_queries += 1
        return self._ingredients_of(recipe_id)

    def _ingredients_of(self, recipe_id: int) -> list[RecipeIngredient]:
        return [
            ingredient
            for ingredient in self.ingredients.values()
            if ingredient.recipe_id == recipe_id
        ]

    def create_recipe(
        self,
        owner_id: int,
        name: str,
        tag: CategoryTag | None,
        ingredients: list[RecipeIngredient],
    ) -> Recipe:
        recipe_id = max(self.recipes, default=0) + 1
        staged: dict[int, RecipeIngredient] = {}
        next_id = max(self.ingredients, default=0) + 1
        for ingredient in ingredients:
            if self.fail_ingredient_insert:
                raise InternalError("failed to create recipe")
            staged[next_id] = replace(ingredient, id=next_id, recipe_id=recipe_id)
            next_id += 1
        self.recipes[recipe_id] = Recipe(
            id=recipe_id, name=name, owner_id=owner_id, tag=tag
        )
        self.ingredients.update(staged)
        return self.get_by_id(recipe_id)  # type: ignore[return-value]

    def list_recipes(
        self, owner_id: int, user_only: bool, tag: CategoryTag | None = None
    ) -> list[Recipe]:
        return [
            self.get_by_id(recipe.id)  # type: ignore[misc]
            for recipe in self.recipes.values()
            if (
                recipe.owner_id == owner_id
                or (not user_only and recipe.owner_id is None)
            )
            and (tag is None or recipe.tag == tag)
        ]

    def update_recipe(self, recipe_id: int, payload: dict[str, object]) -> Recipe:
        recipe = self.recipes[recipe_id]
        tag = payload.get("tag", recipe.tag.value if recipe.tag else None)
        self.recipes[recipe_id] = replace(
            recipe,
            name=str(payload.get("name", recipe.name)),
            tag=CategoryTag(tag) if tag else None,
        )
        return self.get_by_id(recipe_id)  # type: ignore[return-value]

    def delete_recipe(self, recipe_id: int) -> None:
        self.recipes.pop(recipe_id, None)
        for ingredient in self._ingredients_of(recipe_id):
            self.ingredients.pop(ingredient.id or 0, None)

    def add_ingredient(
        self, recipe_id: int, food_id: int, quantity_grams: float
    ) -> RecipeIngredient:
        ingredient_id = max(self.ingredients, default=0) + 1
        ingredient = RecipeIngredient(
            id=ingredient_id,
            recipe_id=recipe_id,
            food_id=food_id,
            quantity_grams=quantity_grams,
        )
        self.ingredients[ingredient_id] = ingredient
        return ingredient

    def get_ingredient(self, ingredient_id: int) -> RecipeIngredient | None:
        return self.ingredients.get(ingredient_id)

    def update_ingredient(
        self, ingredient_id: int, quantity_grams: float
    ) -> RecipeIngredient:
        updated = replace(self.ingredients[ingredient_id], quantity_grams=quantity_grams)
        self.ingredients[ingredient_id] = updated
        return updated

    def delete_ingredient(self, ingredient_id: int) -> None:
        self.ingredients.pop(ingredient_id, None)


@dataclass
class InMemoryDiaryRepository(DiaryRepository):
    entries: dict[int, DiaryEntry] = field(default_factory=dict)
    deleted: set[int] = field(default_factory=set)
    list_calls: int = 0

    def create_entry(self, entry: NewDiaryEntry) -> DiaryEntry:
        entry_id = max(self.entries, default=0) + 1
        stored = _to_entry(entry_id, entry, datetime.now(tz=UTC))
        self.entries[entry_id] = stored
        return stored

    def get_entry(self, entry_id: int, owner_id: int) -> DiaryEntry | None:
        entry = self.entries.get(entry_id)
        if entry is None or entry_id in self.deleted or entry.owner_id != owner_id:
            return None
        return entry

    def list_entries(self, owner_id: int, start: date, end: date) -> list[DiaryEntry]:
        self.list_calls += 1
        return [
            entry
            for entry in self.entries.values()
            if entry.owner_id == owner_id
            and entry.id not in self.deleted
            and start <= entry.entry_date < end
        ]

    def update_entry(self, entry_id: int, entry: NewDiaryEntry) -> DiaryEntry:
        stored = _to_entry(entry_id, entry, self.entries[entry_id].created_at)
        self.entries[entry_id] = stored
        return stored

    def soft_delete_entry(self, entry_id: int, owner_id: int) -> bool:
        if self.get_entry(entry_id, owner_id) is None:
            return False
        self.deleted.add(entry_id)
        return True


def _to_entry(entry_id: int, entry: NewDiaryEntry, created_at) -> DiaryEntry:  # type: ignore[no-untyped-def]
    return DiaryEntry(
        id=entry_id,
        owner_id=entry.owner_id,
        entry_date=entry.entry_date,
        meal_type=entry.meal_type,
        source=entry.source,
        quantity_grams=entry.quantity_grams,
        snapshot=entry.snapshot,
        notes=entry.notes,
        custom_ingredients=entry.custom_ingredients,
        created_at=created_at,
    )


@dataclass
class InMemoryGoalRepository(GoalRepository):
    goals: dict[int, NutritionGoal] = field(default_factory=dict)

    def get_active(self, owner_id: int) -> NutritionGoal | None:
        active = [
            goal
            for goal in self.goals.values()
            if goal.owner_id == owner_id and goal.is_active
        ]
        return max(active, key=lambda goal: goal.start_date, default=None)

    def get_goal(self, goal_id: int, owner_id: int) -> NutritionGoal | None:
        goal = self.goals.get(goal_id)
        if goal is None or goal.owner_id != owner_id:
            return None
        return goal

    def list_goals(self, owner_id: int) -> list[NutritionGoal]:
        owned = [goal for goal in self.goals.values() if goal.owner_id == owner_id]
        return sorted(owned, key=lambda goal: goal.start_date, reverse=True)

    def create_goal(
        self,
        owner_id: int,
        target: NutrientProfile,
        start_date: date,
        end_date: date | None,
    ) -> NutritionGoal:
        for goal_id, goal in self.goals.items():
            if goal.owner_id == owner_id and goal.is_active:
                self.goals[goal_id] = replace(goal, is_active=False)
        goal_id = max(self.goals, default=0) + 1
        goal = NutritionGoal(
            id=goal_id,
            owner_id=owner_id,
            target=target,
            start_date=start_date,
            end_date=end_date,
        )
        self.goals[goal_id] = goal
        return goal

    def update_goal(self, goal_id: int, changes: dict[str, object]) -> NutritionGoal:
        goal = self.goals[goal_id]
        values = goal.target.as_dict()
        values.update(
            {key: float(value) for key, value in changes.items() if key in values}  # type: ignore[arg-type]
        )
        updated = replace(
            goal,
            target=NutrientProfile(**values),
            end_date=changes.get("end_date", goal.end_date),  # type: ignore[arg-type]
        )
        self.goals[goal_id] = updated
        return updated

    def delete_goal(self, goal_id: int, owner_id: int) -> bool:
        if self.get_goal(goal_id, owner_id) is None:
            return False
        del self.goals[goal_id]
        return True


@dataclass
class Engine:
    """Services wired over in-memory repositories."""

    foods: InMemoryFoodRepository
    recipes: InMemoryRecipeRepository
    diary: InMemoryDiaryRepository
    goals: InMemoryGoalRepository
    lookup: BatchFoodLookup
    aggregator: RecipeNutritionAggregator
    resolver: ConsumptionResolver
    food_service: FoodService
    recipe_service: RecipeService
    diary_service: DiaryService
    summary_service: SummaryService
    goal_service: GoalService


def build_engine(foods: list[Food] | None = None) -> Engine:
    food_repository = InMemoryFoodRepository(
        {food.id: food for food in (foods or [CHICKEN, RICE, CAKE, BROCCOLI])}
    )
    recipe_repository = InMemoryRecipeRepository()
    diary_repository = InMemoryDiaryRepository()
    goal_repository = InMemoryGoalRepository()
    lookup = BatchFoodLookup(food_repository, timeout_seconds=1.0)
    aggregator = RecipeNutritionAggregator(lookup)
    resolver = ConsumptionResolver(
        lookup=lookup, recipes=recipe_repository, aggregator=aggregator
    )
    return Engine(
        foods=food_repository,
        recipes=recipe_repository,
        diary=diary_repository,
        goals=goal_repository,
        lookup=lookup,
        aggregator=aggregator,
        resolver=resolver,
        food_service=FoodService(food_repository),
        recipe_service=RecipeService(
            repository=recipe_repository, lookup=lookup, aggregator=aggregator
        ),
        diary_service=DiaryService(
            repository=diary_repository, resolver=resolver, foods=food_repository
        ),
        summary_service=SummaryService(
            diary_repository=diary_repository, goal_repository=goal_repository
        ),
        goal_service=GoalService(goal_repository),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=(
            "eyJhbGciOiJIUzI1NiJ9.eyJyb2xlIjoic2VydmljZV9yb2xlIn0.signature"
        ),
    )


@pytest.fixture
def engine() -> Engine:
    return build_engine()


@pytest.fixture
def container(settings: Settings, engine: Engine) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        food_service=engine.food_service,
        recipe_service=engine.recipe_service,
        diary_service=engine.diary_service,
        summary_service=engine.summary_service,
        goal_service=engine.goal_service,
        close_resources=close_resources,
    )
