"""Supabase repository for diary entries."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

from supabase import Client

from nutrition_diary.domain.diary import (
    ConsumptionSource,
    CustomIngredientQuantity,
    CustomIngredientSnapshot,
    DiaryEntry,
    FoodSource,
    InlineFood,
    InlineFoodSource,
    NewDiaryEntry,
    NutritionSnapshot,
    RecipeCustomSource,
    RecipePortionSource,
)
from nutrition_diary.domain.errors import InternalError
from nutrition_diary.domain.nutrition import CategoryTag, MealType, NutrientProfile
from nutrition_diary.services.diary import DiaryRepository
from nutrition_diary.services.foods import profile_from_row

_ENTRY_SELECT = "*, foods(name), recipes(name)"
_INLINE_PREFIX = "inline_food_"


@dataclass
class SupabaseDiaryRepository(DiaryRepository):
    """Supabase implementation for diary entries."""

    client: Client

    def create_entry(self, entry: NewDiaryEntry) -> DiaryEntry:
        """Insert an entry with its snapshot and return it."""
        response = (
            self.client.table("diary_entries")
            .insert({"user_id": entry.owner_id, **_entry_payload(entry)})
            .execute()
        )
        if not response.data:
            raise InternalError("failed to create diary entry")
        created = self.get_entry(int(response.data[0]["id"]), entry.owner_id)
        return created or _parse_entry(response.data[0])

    def get_entry(self, entry_id: int, owner_id: int) -> DiaryEntry | None:
        """Return a live entry owned by owner_id."""
        response = (
            self.client.table("diary_entries")
            .select(_ENTRY_SELECT)
            .eq("id", entry_id)
            .eq("user_id", owner_id)
            .is_("deleted_at", "null")
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_entry(response.data[0])

    def list_entries(self, owner_id: int, start: date, end: date) -> list[DiaryEntry]:
        """Return live entries in [start, end) in one query."""
        response = (
            self.client.table("diary_entries")
            .select(_ENTRY_SELECT)
            .eq("user_id", owner_id)
            .gte("date", start.isoformat())
            .lt("date", end.isoformat())
            .is_("deleted_at", "null")
            .order("date", desc=False)
            .order("created_at", desc=False)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]

    def update_entry(self, entry_id: int, entry: NewDiaryEntry) -> DiaryEntry:
        """Overwrite an entry's mutable columns."""
        response = (
            self.client.table("diary_entries")
            .update(
                {**_entry_payload(entry), "updated_at": datetime.now(tz=UTC).isoformat()}
            )
            .eq("id", entry_id)
            .eq("user_id", entry.owner_id)
            .execute()
        )
        if not response.data:
            raise InternalError(f"failed to update diary entry {entry_id}")
        updated = self.get_entry(entry_id, entry.owner_id)
        return updated or _parse_entry(response.data[0])

    def soft_delete_entry(self, entry_id: int, owner_id: int) -> bool:
        """Stamp deleted_at on a live entry."""
        response = (
            self.client.table("diary_entries")
            .update({"deleted_at": datetime.now(tz=UTC).isoformat()})
            .eq("id", entry_id)
            .eq("user_id", owner_id)
            .is_("deleted_at", "null")
            .execute()
        )
        return bool(response.data)


def _entry_payload(entry: NewDiaryEntry) -> dict[str, object]:
    """Columns written for an entry, snapshot included."""
    snapshot = entry.snapshot
    payload: dict[str, object] = {
        "date": entry.entry_date.isoformat(),
        "meal_type": entry.meal_type.value,
        "quantity_grams": entry.quantity_grams,
        "food_id": None,
        "recipe_id": None,
        "food_tag": snapshot.food_tag.value if snapshot.food_tag else None,
        "recipe_tag": snapshot.recipe_tag.value if snapshot.recipe_tag else None,
        "notes": entry.notes,
        "custom_ingredients": [
            {
                "food_id": item.food_id,
                "food_name": item.food_name,
                "quantity_grams": item.quantity_grams,
                **item.nutrients.as_dict(),
            }
            for item in entry.custom_ingredients
        ]
        or None,
        **snapshot.nutrients.as_dict(),
        **_inline_columns(None),
    }
    match entry.source:
        case FoodSource(food_id=food_id):
            payload["food_id"] = food_id
        case RecipePortionSource(recipe_id=recipe_id) | RecipeCustomSource(
            recipe_id=recipe_id
        ):
            payload["recipe_id"] = recipe_id
        case InlineFoodSource(food=inline):
            payload.update(_inline_columns(inline))
    return payload


def _inline_columns(inline: InlineFood | None) -> dict[str, object]:
    if inline is None:
        values: dict[str, object] = {"name": None, "description": None, "tag": None}
        values.update(dict.fromkeys(NutrientProfile.zero().as_dict()))
    else:
        values = {
            "name": inline.name,
            "description": inline.description,
            "tag": inline.tag.value,
            **inline.profile.as_dict(),
        }
    return {f"{_INLINE_PREFIX}{key}": value for key, value in values.items()}


def _parse_entry(row: dict[str, object]) -> DiaryEntry:
    """Parse a diary row into a domain model."""
    custom = [_parse_custom(item) for item in row.get("custom_ingredients") or []]  # type: ignore[attr-defined]
    food = row.get("foods")
    recipe = row.get("recipes")
    created_raw = row.get("created_at")
    return DiaryEntry(
        id=int(row["id"]),
        owner_id=int(row["user_id"]),
        entry_date=date.fromisoformat(str(row["date"])),
        meal_type=MealType(row["meal_type"]),
        source=_parse_source(row, custom),
        quantity_grams=float(row.get("quantity_grams", 0.0)),
        snapshot=NutritionSnapshot(
            nutrients=profile_from_row(row),
            food_tag=_optional_tag(row.get("food_tag")),
            recipe_tag=_optional_tag(row.get("recipe_tag")),
        ),
        notes=str(row.get("notes") or ""),
        custom_ingredients=custom,
        food_name=food.get("name") if isinstance(food, dict) else None,
        recipe_name=recipe.get("name") if isinstance(recipe, dict) else None,
        created_at=(
            datetime.fromisoformat(created_raw)
            if isinstance(created_raw, str) and created_raw
            else None
        ),
    )


def _parse_source(
    row: dict[str, object], custom: list[CustomIngredientSnapshot]
) -> ConsumptionSource:
    quantity = float(row.get("quantity_grams", 0.0))
    if row.get("food_id") is not None:
        return FoodSource(food_id=int(row["food_id"]), quantity_grams=quantity)
    if row.get("recipe_id") is not None:
        recipe_id = int(row["recipe_id"])
        if custom:
            return RecipeCustomSource(
                recipe_id=recipe_id,
                ingredients=tuple(
                    CustomIngredientQuantity(item.food_id, item.quantity_grams)
                    for item in custom
                ),
            )
        return RecipePortionSource(recipe_id=recipe_id, quantity_grams=quantity)
    inline_row = {
        key.removeprefix(_INLINE_PREFIX): value
        for key, value in row.items()
        if key.startswith(_INLINE_PREFIX)
    }
    if not inline_row.get("name"):
        raise InternalError(f"diary entry {row.get('id')} has no consumption source")
    description = inline_row.get("description")
    return InlineFoodSource(
        food=InlineFood(
            name=str(inline_row["name"]),
            profile=profile_from_row(inline_row),
            tag=_optional_tag(inline_row.get("tag")) or CategoryTag.ROUTINE,
            description=str(description) if description else None,
        ),
        quantity_grams=quantity,
    )


def _parse_custom(item: dict[str, object]) -> CustomIngredientSnapshot:
    return CustomIngredientSnapshot(
        food_id=int(item["food_id"]),
        food_name=str(item.get("food_name", "")),
        quantity_grams=float(item.get("quantity_grams", 0.0)),
        nutrients=profile_from_row(item),
    )


def _optional_tag(value: object) -> CategoryTag | None:
    return CategoryTag(value) if value else None
