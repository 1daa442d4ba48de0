"""Read-only catalog interfaces and the batched food lookup."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from nutrition_diary.domain.errors import (
    FoodNotFoundError,
    InternalError,
    NutritionEngineError,
)
from nutrition_diary.domain.nutrition import Food
from nutrition_diary.domain.recipes import Recipe, RecipeIngredient

_logger = logging.getLogger(__name__)


class FoodCatalog(Protocol):
    """Food reads needed by the engine."""

    def get_by_id(self, food_id: int) -> Food | None:
        """Return a food by id, if present."""

    def get_by_ids(self, food_ids: list[int]) -> list[Food]:
        """Return every food found for the ids in one query."""


class RecipeCatalog(Protocol):
    """Recipe reads needed by the engine."""

    def get_by_id(self, recipe_id: int) -> Recipe | None:
        """Return a recipe with its ingredients, if present."""

    def get_ingredients(self, recipe_id: int) -> list[RecipeIngredient]:
        """Return the ingredients of a recipe."""


@dataclass
class BatchFoodLookup:
    """Fetches many foods in a single catalog round trip."""

    catalog: FoodCatalog
    timeout_seconds: float = 10.0

    async def fetch(self, food_ids: Iterable[int]) -> dict[int, Food]:
        """Return foods keyed by id, failing if any id is missing."""
        wanted = set(food_ids)
        if not wanted:
            return {}
        try:
            foods = await asyncio.wait_for(
                asyncio.to_thread(self.catalog.get_by_ids, sorted(wanted)),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            raise InternalError(
                f"food lookup timed out after {self.timeout_seconds:g}s"
            ) from exc
        except NutritionEngineError:
            raise
        except Exception as exc:
            _logger.exception("Food lookup failed", extra={"food_ids": len(wanted)})
            raise InternalError("food lookup failed") from exc

        found = {food.id: food for food in foods if food.id in wanted}
        missing = wanted - found.keys()
        if missing:
            raise FoodNotFoundError(missing)
        _logger.debug("Fetched %s foods in one lookup", len(found))
        return found
