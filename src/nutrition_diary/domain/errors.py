"""Error taxonomy for the nutrition engine."""


class NutritionEngineError(Exception):
    """Base class for errors raised by the engine."""

    code = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(NutritionEngineError):
    """Malformed, missing or out-of-range request data."""

    code = "invalid_input"


class NotFoundError(NutritionEngineError):
    """A referenced record does not exist."""

    code = "not_found"


class FoodNotFoundError(NotFoundError):
    """One or more foods are missing from the catalog."""

    def __init__(self, food_ids: list[int] | set[int]) -> None:
        self.food_ids = sorted(food_ids)
        joined = ", ".join(str(food_id) for food_id in self.food_ids)
        super().__init__(f"food not found: {joined}")


class RecipeNotFoundError(NotFoundError):
    """A recipe is missing."""

    def __init__(self, recipe_id: int) -> None:
        self.recipe_id = recipe_id
        super().__init__(f"recipe not found: {recipe_id}")


class IngredientNotFoundError(NotFoundError):
    """A recipe ingredient row is missing."""

    def __init__(self, ingredient_id: int) -> None:
        self.ingredient_id = ingredient_id
        super().__init__(f"ingredient not found: {ingredient_id}")


class DiaryEntryNotFoundError(NotFoundError):
    """A diary entry is missing or belongs to someone else."""

    def __init__(self, entry_id: int) -> None:
        self.entry_id = entry_id
        super().__init__(f"diary entry not found: {entry_id}")


class GoalNotFoundError(NotFoundError):
    """A nutrition goal is missing or belongs to someone else."""

    def __init__(self, goal_id: int) -> None:
        self.goal_id = goal_id
        super().__init__(f"goal not found: {goal_id}")


class ForbiddenError(NutritionEngineError):
    """The caller does not own the referenced record."""

    code = "forbidden"


class InternalError(NutritionEngineError):
    """Persistence or catalog failure not caused by the caller."""

    code = "internal"
