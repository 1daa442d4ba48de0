"""Supabase repository for recipes and their ingredients."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from nutrition_diary.domain.errors import InternalError
from nutrition_diary.domain.nutrition import CategoryTag
from nutrition_diary.domain.recipes import Recipe, RecipeIngredient
from nutrition_diary.services.recipes import RecipeRepository

_INGREDIENT_COLUMNS = "id, recipe_id, food_id, quantity_grams"


@dataclass
class SupabaseRecipeRepository(RecipeRepository):
    """Supabase implementation for recipes."""

    client: Client

    def get_by_id(self, recipe_id: int) -> Recipe | None:
        """Return a recipe with its ingredients, if present."""
        response = (
            self.client.table("recipes")
            .select("*")
            .eq("id", recipe_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_recipe(response.data[0], self.get_ingredients(recipe_id))

    def get_ingredients(self, recipe_id: int) -> list[RecipeIngredient]:
        """Return the ingredients of a recipe."""
        response = (
            self.client.table("recipe_ingredients")
            .select(_INGREDIENT_COLUMNS)
            .eq("recipe_id", recipe_id)
            .order("id", desc=False)
            .execute()
        )
        return [_parse_ingredient(row) for row in response.data or []]

    def create_recipe(
        self,
        owner_id: int,
        name: str,
        tag: CategoryTag | None,
        ingredients: list[RecipeIngredient],
    ) -> Recipe:
        """Insert recipe and ingredients in one database transaction."""
        response = self.client.rpc(
            "create_recipe_with_ingredients",
            {
                "p_user_id": owner_id,
                "p_name": name,
                "p_tag": tag.value if tag else None,
                "p_ingredients": [
                    {
                        "food_id": ingredient.food_id,
                        "quantity_grams": ingredient.quantity_grams,
                    }
                    for ingredient in ingredients
                ],
            },
        ).execute()
        if response.data is None:
            raise InternalError("failed to create recipe")
        recipe_id = _returned_id(response.data)
        recipe = self.get_by_id(recipe_id)
        if recipe is None:
            raise InternalError(f"created recipe {recipe_id} could not be read back")
        return recipe

    def list_recipes(
        self, owner_id: int, user_only: bool, tag: CategoryTag | None = None
    ) -> list[Recipe]:
        """Return recipes with all their ingredients using two queries."""
        query = self.client.table("recipes").select("*")
        if user_only:
            query = query.eq("user_id", owner_id)
        else:
            query = query.or_(f"user_id.eq.{owner_id},user_id.is.null")
        if tag is not None:
            query = query.eq("tag", tag.value)
        response = query.order("name", desc=False).execute()
        rows = response.data or []
        if not rows:
            return []

        ingredients_response = (
            self.client.table("recipe_ingredients")
            .select(_INGREDIENT_COLUMNS)
            .in_("recipe_id", [int(row["id"]) for row in rows])
            .order("id", desc=False)
            .execute()
        )
        by_recipe: dict[int, list[RecipeIngredient]] = {}
        for row in ingredients_response.data or []:
            ingredient = _parse_ingredient(row)
            by_recipe.setdefault(ingredient.recipe_id or 0, []).append(ingredient)
        return [
            _parse_recipe(row, by_recipe.get(int(row["id"]), [])) for row in rows
        ]

    def update_recipe(self, recipe_id: int, payload: dict[str, object]) -> Recipe:
        """Update recipe fields and return the recipe."""
        response = (
            self.client.table("recipes").update(payload).eq("id", recipe_id).execute()
        )
        if not response.data:
            raise InternalError(f"failed to update recipe {recipe_id}")
        return _parse_recipe(response.data[0], self.get_ingredients(recipe_id))

    def delete_recipe(self, recipe_id: int) -> None:
        """Delete a recipe; ingredient rows cascade."""
        self.client.table("recipes").delete().eq("id", recipe_id).execute()

    def add_ingredient(
        self, recipe_id: int, food_id: int, quantity_grams: float
    ) -> RecipeIngredient:
        """Insert an ingredient row."""
        response = (
            self.client.table("recipe_ingredients")
            .insert(
                {
                    "recipe_id": recipe_id,
                    "food_id": food_id,
                    "quantity_grams": quantity_grams,
                }
            )
            .execute()
        )
        if not response.data:
            raise InternalError("failed to add ingredient")
        return _parse_ingredient(response.data[0])

    def get_ingredient(self, ingredient_id: int) -> RecipeIngredient | None:
        """Return an ingredient row by id."""
        response = (
            self.client.table("recipe_ingredients")
            .select(_INGREDIENT_COLUMNS)
            .eq("id", ingredient_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_ingredient(response.data[0])

    def update_ingredient(
        self, ingredient_id: int, quantity_grams: float
    ) -> RecipeIngredient:
        """Change an ingredient's grams."""
        response = (
            self.client.table("recipe_ingredients")
            .update({"quantity_grams": quantity_grams})
            .eq("id", ingredient_id)
            .execute()
        )
        if not response.data:
            raise InternalError(f"failed to update ingredient {ingredient_id}")
        return _parse_ingredient(response.data[0])

    def delete_ingredient(self, ingredient_id: int) -> None:
        """Remove an ingredient row."""
        self.client.table("recipe_ingredients").delete().eq(
            "id", ingredient_id
        ).execute()


def _returned_id(data: object) -> int:
    """Read the recipe id returned by the creation function."""
    if isinstance(data, list):
        if not data:
            raise InternalError("failed to create recipe")
        data = data[0]
    if isinstance(data, dict):
        data = data.get("id") or data.get("create_recipe_with_ingredients")
    if isinstance(data, bool) or not isinstance(data, int | str):
        raise InternalError("failed to create recipe")
    return int(data)


def _parse_recipe(row: dict[str, object], ingredients: list[RecipeIngredient]) -> Recipe:
    """Parse a recipe row into a domain model."""
    owner_raw = row.get("user_id")
    tag_raw = row.get("tag")
    created_raw = row.get("created_at")
    return Recipe(
        id=int(row["id"]),
        name=str(row.get("name", "")),
        owner_id=int(owner_raw) if owner_raw is not None else None,
        tag=CategoryTag(tag_raw) if tag_raw else None,
        ingredients=ingredients,
        created_at=(
            datetime.fromisoformat(created_raw)
            if isinstance(created_raw, str) and created_raw
            else None
        ),
    )


def _parse_ingredient(row: dict[str, object]) -> RecipeIngredient:
    return RecipeIngredient(
        id=int(row["id"]),
        recipe_id=int(row["recipe_id"]),
        food_id=int(row["food_id"]),
        quantity_grams=float(row.get("quantity_grams", 0.0)),
    )
