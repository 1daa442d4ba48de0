"""Supabase repository for nutrition goals."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from nutrition_diary.domain.errors import InternalError
from nutrition_diary.domain.nutrition import NutrientProfile
from nutrition_diary.domain.summaries import NutritionGoal
from nutrition_diary.services.goals import GoalRepository


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Supabase implementation for nutrition goals."""

    client: Client

    def get_active(self, owner_id: int) -> NutritionGoal | None:
        """Return the most recent active goal of the owner."""
        response = (
            self.client.table("nutrition_goals")
            .select("*")
            .eq("user_id", owner_id)
            .eq("is_active", True)
            .order("start_date", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_goal(response.data[0])

    def get_goal(self, goal_id: int, owner_id: int) -> NutritionGoal | None:
        response = (
            self.client.table("nutrition_goals")
            .select("*")
            .eq("id", goal_id)
            .eq("user_id", owner_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_goal(response.data[0])

    def list_goals(self, owner_id: int) -> list[NutritionGoal]:
        response = (
            self.client.table("nutrition_goals")
            .select("*")
            .eq("user_id", owner_id)
            .order("start_date", desc=True)
            .execute()
        )
        return [_parse_goal(row) for row in response.data or []]

    def create_goal(
        self,
        owner_id: int,
        target: NutrientProfile,
        start_date: date,
        end_date: date | None,
    ) -> NutritionGoal:
        """Insert the new goal, then deactivate the owner's other active goals."""
        payload: dict[str, object] = {
            "user_id": owner_id,
            **_target_columns(target.as_dict()),
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat() if end_date else None,
            "is_active": True,
        }
        response = self.client.table("nutrition_goals").insert(payload).execute()
        if not response.data:
            raise InternalError("failed to create goal")
        goal = _parse_goal(response.data[0])
        (
            self.client.table("nutrition_goals")
            .update({"is_active": False})
            .eq("user_id", owner_id)
            .eq("is_active", True)
            .neq("id", goal.id)
            .execute()
        )
        return goal

    def update_goal(self, goal_id: int, changes: dict[str, object]) -> NutritionGoal:
        payload = _target_columns(changes)
        if "end_date" in changes:
            end_date = changes["end_date"]
            payload["end_date"] = (
                end_date.isoformat() if isinstance(end_date, date) else None
            )
        response = (
            self.client.table("nutrition_goals")
            .update(payload)
            .eq("id", goal_id)
            .execute()
        )
        if not response.data:
            raise InternalError(f"failed to update goal {goal_id}")
        return _parse_goal(response.data[0])

    def delete_goal(self, goal_id: int, owner_id: int) -> bool:
        response = (
            self.client.table("nutrition_goals")
            .delete()
            .eq("id", goal_id)
            .eq("user_id", owner_id)
            .execute()
        )
        return bool(response.data)


def _target_columns(values: dict[str, object]) -> dict[str, object]:
    """Map nutrient names to their *_target columns, skipping other keys."""
    return {
        f"{field}_target": values[field]
        for field in ("calories", "protein", "carbs", "fat", "fiber")
        if field in values
    }


def _parse_goal(row: dict[str, object]) -> NutritionGoal:
    end_raw = row.get("end_date")
    return NutritionGoal(
        id=int(row["id"]),
        owner_id=int(row["user_id"]),
        target=NutrientProfile(
            calories=float(row.get("calories_target") or 0.0),
            protein=float(row.get("protein_target") or 0.0),
            carbs=float(row.get("carbs_target") or 0.0),
            fat=float(row.get("fat_target") or 0.0),
            fiber=float(row.get("fiber_target") or 0.0),
        ),
        start_date=date.fromisoformat(str(row["start_date"])),
        end_date=date.fromisoformat(end_raw) if isinstance(end_raw, str) else None,
        is_active=bool(row.get("is_active", True)),
    )
