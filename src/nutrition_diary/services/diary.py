"""Diary logging service."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, timedelta
from typing import Protocol

from nutrition_diary.domain.diary import (
    ConsumptionSource,
    DiaryEntry,
    FoodSource,
    InlineFoodSource,
    NewDiaryEntry,
    RecipeCustomSource,
    RecipePortionSource,
)
from nutrition_diary.domain.errors import DiaryEntryNotFoundError, InvalidInputError
from nutrition_diary.domain.nutrition import Food, MealType
from nutrition_diary.services.consumption import (
    ConsumptionResolver,
    build_consumption_source,
    parse_custom_ingredients,
    parse_inline_food,
)
from nutrition_diary.services.foods import FoodRepository, food_payload
from nutrition_diary.services.scaling import MAX_QUANTITY_GRAMS, validate_quantity

_logger = logging.getLogger(__name__)


class DiaryRepository(Protocol):
    """Persistence interface for diary entries."""

    def create_entry(self, entry: NewDiaryEntry) -> DiaryEntry:
        """Persist a new entry and return it."""

    def get_entry(self, entry_id: int, owner_id: int) -> DiaryEntry | None:
        """Return a live entry owned by owner_id, if present."""

    def list_entries(self, owner_id: int, start: date, end: date) -> list[DiaryEntry]:
        """Return live entries with start <= date < end."""

    def update_entry(self, entry_id: int, entry: NewDiaryEntry) -> DiaryEntry:
        """Overwrite an entry's mutable fields and return it."""

    def soft_delete_entry(self, entry_id: int, owner_id: int) -> bool:
        """Mark an entry deleted; return False when nothing matched."""


@dataclass
class DiaryService:
    """Logs consumption and keeps nutrition snapshots immutable."""

    repository: DiaryRepository
    resolver: ConsumptionResolver
    foods: FoodRepository
    max_quantity_grams: float = MAX_QUANTITY_GRAMS

    async def log_entry(self, owner_id: int, payload: dict[str, object]) -> DiaryEntry:
        """Resolve the payload's source once and persist the snapshot."""
        meal_type = parse_meal_type(payload.get("meal_type"))
        entry_date = parse_date(payload.get("date"))
        source = build_consumption_source(
            food_id=payload.get("food_id"),  # type: ignore[arg-type]
            recipe_id=payload.get("recipe_id"),  # type: ignore[arg-type]
            quantity_grams=payload.get("quantity_grams"),  # type: ignore[arg-type]
            custom_ingredients=payload.get("custom_ingredients"),  # type: ignore[arg-type]
            inline_food=payload.get("inline_food"),  # type: ignore[arg-type]
            max_quantity_grams=self.max_quantity_grams,
        )
        resolved = await self.resolver.resolve(owner_id, source)
        entry = self.repository.create_entry(
            NewDiaryEntry(
                owner_id=owner_id,
                entry_date=entry_date,
                meal_type=meal_type,
                source=source,
                quantity_grams=resolved.total_weight,
                snapshot=resolved.snapshot,
                notes=str(payload.get("notes") or ""),
                custom_ingredients=resolved.custom_ingredients,
            )
        )
        _logger.info(
            "Logged diary entry %s (%s) for owner %s",
            entry.id,
            type(source).__name__,
            owner_id,
        )
        return entry

    def list_entries(self, owner_id: int, day: date) -> list[DiaryEntry]:
        """Return the entries of one day."""
        return self.repository.list_entries(owner_id, day, _next_day(day))

    async def update_entry(
        self, owner_id: int, entry_id: int, payload: dict[str, object]
    ) -> DiaryEntry:
        """Apply edits; only quantity or ingredient changes recompute nutrition."""
        entry = self._get_entry(owner_id, entry_id)
        updated = _to_new_entry(entry)
        if payload.get("meal_type"):
            updated = replace(updated, meal_type=parse_meal_type(payload["meal_type"]))
        if payload.get("date"):
            updated = replace(updated, entry_date=parse_date(payload["date"]))
        if "notes" in payload and payload["notes"] is not None:
            updated = replace(updated, notes=str(payload["notes"]))

        source = self._changed_source(entry, payload)
        if source is not None:
            resolved = await self.resolver.resolve(owner_id, source)
            updated = replace(
                updated,
                source=source,
                quantity_grams=resolved.total_weight,
                snapshot=resolved.snapshot,
                custom_ingredients=resolved.custom_ingredients,
            )
            _logger.info("Recomputed nutrition for diary entry %s", entry_id)
        return self.repository.update_entry(entry_id, updated)

    def delete_entry(self, owner_id: int, entry_id: int) -> None:
        """Soft delete an entry."""
        if not self.repository.soft_delete_entry(entry_id, owner_id):
            raise DiaryEntryNotFoundError(entry_id)

    def save_inline_as_food(self, owner_id: int, entry_id: int) -> tuple[Food, DiaryEntry]:
        """Promote an inline food to the catalog and repoint the entry to it.

        The cached snapshot is carried over unchanged.
        """
        entry = self._get_entry(owner_id, entry_id)
        inline = entry.inline_food
        if inline is None:
            raise InvalidInputError("entry does not use an inline food")
        food = self.foods.create_food(
            food_payload(
                Food(
                    id=0,
                    name=inline.name,
                    profile=inline.profile,
                    tag=inline.tag,
                    description=inline.description,
                )
            )
        )
        updated = replace(
            _to_new_entry(entry),
            source=FoodSource(food_id=food.id, quantity_grams=entry.quantity_grams),
        )
        _logger.info("Saved inline food of entry %s as food %s", entry_id, food.id)
        return food, self.repository.update_entry(entry_id, updated)

    def _get_entry(self, owner_id: int, entry_id: int) -> DiaryEntry:
        entry = self.repository.get_entry(entry_id, owner_id)
        if entry is None:
            raise DiaryEntryNotFoundError(entry_id)
        return entry

    def _changed_source(
        self, entry: DiaryEntry, payload: dict[str, object]
    ) -> ConsumptionSource | None:
        """Return the new source when the edit touches quantity or ingredients."""
        raw_quantity = payload.get("quantity_grams")
        quantity = (
            validate_quantity(raw_quantity, limit=self.max_quantity_grams)  # type: ignore[arg-type]
            if raw_quantity is not None
            else None
        )
        quantity_changed = quantity is not None and quantity != entry.quantity_grams
        custom = payload.get("custom_ingredients")
        inline_changes = payload.get("inline_food")

        if custom and entry.recipe_id is None:
            raise InvalidInputError("custom_ingredients require a recipe entry")
        if inline_changes and entry.inline_food is None:
            raise InvalidInputError("inline_food can only change inline entries")

        match entry.source:
            case FoodSource(food_id=food_id):
                if quantity_changed:
                    return FoodSource(food_id=food_id, quantity_grams=quantity)
            case RecipePortionSource(recipe_id=recipe_id) | RecipeCustomSource(
                recipe_id=recipe_id
            ):
                if custom:
                    return RecipeCustomSource(
                        recipe_id=recipe_id,
                        ingredients=parse_custom_ingredients(
                            custom,  # type: ignore[arg-type]
                            self.max_quantity_grams,
                        ),
                    )
                if quantity_changed:
                    return RecipePortionSource(
                        recipe_id=recipe_id, quantity_grams=quantity
                    )
            case InlineFoodSource(food=inline):
                if inline_changes or quantity_changed:
                    merged = {
                        "name": inline.name,
                        "description": inline.description,
                        "tag": inline.tag.value,
                        **inline.profile.as_dict(),
                        **(inline_changes or {}),  # type: ignore[dict-item]
                    }
                    return InlineFoodSource(
                        food=parse_inline_food(merged),
                        quantity_grams=quantity or entry.quantity_grams,
                    )
        return None


def parse_meal_type(value: object) -> MealType:
    """Return a meal type or raise on unknown values."""
    if isinstance(value, MealType):
        return value
    try:
        return MealType(str(value))
    except ValueError:
        valid = ", ".join(meal.value for meal in MealType)
        raise InvalidInputError(f"meal_type must be one of: {valid}") from None


def parse_date(value: object) -> date:
    """Parse YYYY-MM-DD, defaulting to today in UTC."""
    if value is None or value == "":
        return datetime.now(tz=UTC).date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidInputError("invalid date format (use YYYY-MM-DD)") from None


def _next_day(day: date) -> date:
    return day + timedelta(days=1)


def _to_new_entry(entry: DiaryEntry) -> NewDiaryEntry:
    return NewDiaryEntry(
        owner_id=entry.owner_id,
        entry_date=entry.entry_date,
        meal_type=entry.meal_type,
        source=entry.source,
        quantity_grams=entry.quantity_grams,
        snapshot=entry.snapshot,
        notes=entry.notes,
        custom_ingredients=entry.custom_ingredients,
    )
