"""Domain models for diary entries."""

from dataclasses import dataclass, field
from datetime import date, datetime

from nutrition_diary.domain.nutrition import CategoryTag, MealType, NutrientProfile


@dataclass(frozen=True)
class FoodSource:
    """Catalog food eaten in a given quantity."""

    food_id: int
    quantity_grams: float


@dataclass(frozen=True)
class RecipePortionSource:
    """Recipe portion scaled proportionally from its per-100 g profile."""

    recipe_id: int
    quantity_grams: float


@dataclass(frozen=True)
class CustomIngredientQuantity:
    """Explicit grams for one recipe ingredient."""

    food_id: int
    quantity_grams: float


@dataclass(frozen=True)
class RecipeCustomSource:
    """Recipe eaten with a complete per-ingredient gram override."""

    recipe_id: int
    ingredients: tuple[CustomIngredientQuantity, ...]


@dataclass(frozen=True)
class InlineFood:
    """Ad hoc food definition with no catalog record behind it."""

    name: str
    profile: NutrientProfile
    tag: CategoryTag = CategoryTag.ROUTINE
    description: str | None = None


@dataclass(frozen=True)
class InlineFoodSource:
    """Inline food eaten in a given quantity."""

    food: InlineFood
    quantity_grams: float


ConsumptionSource = (
    FoodSource | RecipePortionSource | RecipeCustomSource | InlineFoodSource
)


@dataclass(frozen=True)
class CustomIngredientSnapshot:
    """Nutrition computed for one custom ingredient at log time."""

    food_id: int
    food_name: str
    quantity_grams: float
    nutrients: NutrientProfile


@dataclass(frozen=True)
class NutritionSnapshot:
    """Consumed nutrition cached on a diary entry."""

    nutrients: NutrientProfile
    food_tag: CategoryTag | None = None
    recipe_tag: CategoryTag | None = None

    @property
    def resolved_tag(self) -> CategoryTag | None:
        """Food tag wins over the recipe tag."""
        return self.food_tag or self.recipe_tag


@dataclass(frozen=True)
class ResolvedConsumption:
    """Result of resolving a consumption source."""

    snapshot: NutritionSnapshot
    total_weight: float
    food_name: str | None = None
    recipe_name: str | None = None
    custom_ingredients: list[CustomIngredientSnapshot] = field(default_factory=list)


@dataclass(frozen=True)
class NewDiaryEntry:
    """Diary entry ready to be persisted."""

    owner_id: int
    entry_date: date
    meal_type: MealType
    source: ConsumptionSource
    quantity_grams: float
    snapshot: NutritionSnapshot
    notes: str = ""
    custom_ingredients: list[CustomIngredientSnapshot] = field(default_factory=list)


@dataclass(frozen=True)
class DiaryEntry:
    """Persisted diary entry with its nutrition snapshot."""

    id: int
    owner_id: int
    entry_date: date
    meal_type: MealType
    source: ConsumptionSource
    quantity_grams: float
    snapshot: NutritionSnapshot
    notes: str = ""
    custom_ingredients: list[CustomIngredientSnapshot] = field(default_factory=list)
    food_name: str | None = None
    recipe_name: str | None = None
    created_at: datetime | None = None

    @property
    def food_id(self) -> int | None:
        if isinstance(self.source, FoodSource):
            return self.source.food_id
        return None

    @property
    def recipe_id(self) -> int | None:
        if isinstance(self.source, RecipePortionSource | RecipeCustomSource):
            return self.source.recipe_id
        return None

    @property
    def inline_food(self) -> InlineFood | None:
        if isinstance(self.source, InlineFoodSource):
            return self.source.food
        return None

    @property
    def display_name(self) -> str | None:
        """Inline name wins over the catalog names."""
        if self.inline_food is not None:
            return self.inline_food.name
        return self.food_name or self.recipe_name
