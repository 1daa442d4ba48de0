"""Services for the food catalog."""

from dataclasses import dataclass
from typing import Protocol

from nutrition_diary.domain.errors import FoodNotFoundError, InvalidInputError
from nutrition_diary.domain.nutrition import CategoryTag, Food, NutrientProfile
from nutrition_diary.services.catalog import FoodCatalog
from nutrition_diary.services.consumption import MAX_NAME_LENGTH, parse_tag
from nutrition_diary.services.scaling import validate_nutrient

_NUTRIENT_FIELDS = ("calories", "protein", "carbs", "fat", "fiber")


class FoodRepository(FoodCatalog, Protocol):
    """Persistence interface for catalog foods."""

    def create_food(self, payload: dict[str, object]) -> Food:
        """Create a food and return it."""

    def update_food(self, food_id: int, payload: dict[str, object]) -> Food:
        """Update a food and return it."""

    def list_foods(self, tag: CategoryTag | None, limit: int) -> list[Food]:
        """Return foods, optionally filtered by tag."""

    def delete_food(self, food_id: int) -> None:
        """Remove a food from the catalog."""


@dataclass
class FoodService:
    """Application service for catalog foods."""

    repository: FoodRepository

    def create_food(self, payload: dict[str, object]) -> Food:
        """Validate and create a food."""
        return self.repository.create_food(_validated_payload(payload, partial=False))

    def update_food(self, food_id: int, payload: dict[str, object]) -> Food:
        """Update a food; diary snapshots logged earlier are left untouched."""
        if self.repository.get_by_id(food_id) is None:
            raise FoodNotFoundError([food_id])
        return self.repository.update_food(
            food_id, _validated_payload(payload, partial=True)
        )

    def get_food(self, food_id: int) -> Food:
        food = self.repository.get_by_id(food_id)
        if food is None:
            raise FoodNotFoundError([food_id])
        return food

    def list_foods(self, tag: str | None = None, limit: int = 50) -> list[Food]:
        return self.repository.list_foods(parse_tag(tag), limit)

    def delete_food(self, food_id: int) -> None:
        """Delete a catalog food; diary entries keep their cached nutrition."""
        self.get_food(food_id)
        self.repository.delete_food(food_id)


def food_payload(food: Food) -> dict[str, object]:
    """Return the persistence payload of a food."""
    return {
        "name": food.name,
        "description": food.description,
        "tag": food.tag.value,
        **food.profile.as_dict(),
    }


def profile_from_row(row: dict[str, object]) -> NutrientProfile:
    """Build a profile from a row holding the five nutrient columns."""
    return NutrientProfile(
        calories=float(row.get("calories") or 0.0),
        protein=float(row.get("protein") or 0.0),
        carbs=float(row.get("carbs") or 0.0),
        fat=float(row.get("fat") or 0.0),
        fiber=float(row.get("fiber") or 0.0),
    )


def _validated_payload(payload: dict[str, object], *, partial: bool) -> dict[str, object]:
    cleaned: dict[str, object] = {}
    if "name" in payload or not partial:
        name = str(payload.get("name") or "").strip()
        if not name:
            raise InvalidInputError("name is required")
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidInputError(
                f"name must be at most {MAX_NAME_LENGTH} characters"
            )
        cleaned["name"] = name
    if "description" in payload:
        cleaned["description"] = payload.get("description")
    for field in _NUTRIENT_FIELDS:
        if field not in payload and partial:
            continue
        cleaned[field] = validate_nutrient(payload.get(field), field=field)
    if "tag" in payload or not partial:
        tag = parse_tag(payload.get("tag"), default=CategoryTag.ROUTINE)
        cleaned["tag"] = tag.value if tag else CategoryTag.ROUTINE.value
    return cleaned
