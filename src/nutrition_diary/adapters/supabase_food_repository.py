"""Supabase implementation for the food catalog."""

from dataclasses import dataclass

from supabase import Client

from nutrition_diary.domain.errors import InternalError
from nutrition_diary.domain.nutrition import CategoryTag, Food
from nutrition_diary.services.foods import FoodRepository, profile_from_row

_FOOD_COLUMNS = "id, name, description, tag, calories, protein, carbs, fat, fiber"


@dataclass
class SupabaseFoodRepository(FoodRepository):
    """Supabase-backed repository for catalog foods."""

    client: Client

    def get_by_id(self, food_id: int) -> Food | None:
        """Return a food by id, if present."""
        response = (
            self.client.table("foods")
            .select(_FOOD_COLUMNS)
            .eq("id", food_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_food(response.data[0])

    def get_by_ids(self, food_ids: list[int]) -> list[Food]:
        """Return all foods matching the ids in one query."""
        if not food_ids:
            return []
        response = (
            self.client.table("foods")
            .select(_FOOD_COLUMNS)
            .in_("id", list(food_ids))
            .execute()
        )
        return [parse_food(row) for row in response.data or []]

    def create_food(self, payload: dict[str, object]) -> Food:
        """Create a food and return it."""
        response = self.client.table("foods").insert(payload).execute()
        if not response.data:
            raise InternalError("failed to create food")
        return parse_food(response.data[0])

    def update_food(self, food_id: int, payload: dict[str, object]) -> Food:
        """Update a food and return it."""
        response = (
            self.client.table("foods").update(payload).eq("id", food_id).execute()
        )
        if not response.data:
            raise InternalError(f"failed to update food {food_id}")
        return parse_food(response.data[0])

    def list_foods(self, tag: CategoryTag | None, limit: int) -> list[Food]:
        """Return foods ordered by name."""
        query = self.client.table("foods").select(_FOOD_COLUMNS)
        if tag is not None:
            query = query.eq("tag", tag.value)
        response = query.order("name", desc=False).limit(limit).execute()
        return [parse_food(row) for row in response.data or []]

    def delete_food(self, food_id: int) -> None:
        """Delete a food row."""
        self.client.table("foods").delete().eq("id", food_id).execute()


def parse_food(row: dict[str, object]) -> Food:
    """Parse a food row into a domain model."""
    return Food(
        id=int(row["id"]),
        name=str(row.get("name", "")),
        profile=profile_from_row(row),
        tag=CategoryTag(row.get("tag") or CategoryTag.ROUTINE.value),
        description=row.get("description"),  # type: ignore[arg-type]
    )
