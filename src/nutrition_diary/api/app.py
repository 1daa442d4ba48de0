"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nutrition_diary.api.schemas import (
    DiaryEntryCreate,
    DiaryEntryUpdate,
    FoodCreate,
    FoodUpdate,
    GoalCreate,
    GoalUpdate,
    IngredientIn,
    IngredientQuantity,
    RecipeCreate,
    RecipeUpdate,
    serialize_daily_summary,
    serialize_entry,
    serialize_food,
    serialize_goal,
    serialize_ingredient,
    serialize_recipe,
    serialize_recipe_nutrition,
    serialize_weekly_summary,
)
from nutrition_diary.app_logging import configure_logging
from nutrition_diary.containers import AppContainer
from nutrition_diary.domain.errors import NutritionEngineError
from nutrition_diary.services.diary import parse_date

_STATUS_BY_CODE = {
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def require_user(x_user_id: str | None = Header(default=None)) -> int:
    """Return the caller id set by the upstream auth layer."""
    if not x_user_id or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return int(x_user_id)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.debug)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(NutritionEngineError)
    async def engine_error_handler(
        request: Request, exc: NutritionEngineError
    ) -> JSONResponse:
        status_code = _STATUS_BY_CODE.get(
            exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(
                "Request %s %s failed: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=exc,
            )
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.code, "detail": exc.message},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "internal", "detail": "internal error"},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}"
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "invalid_input", "detail": "; ".join(messages)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/foods", status_code=status.HTTP_201_CREATED)
    async def create_food(
        payload: FoodCreate,
        request: Request,
        _user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        """Create a catalog food."""
        food = _container(request).food_service.create_food(payload.model_dump())
        return serialize_food(food)

    @app.get("/foods")
    async def list_foods(
        request: Request,
        tag: str | None = None,
        limit: int = 50,
        _user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        foods = _container(request).food_service.list_foods(tag, limit)
        return {"foods": [serialize_food(food) for food in foods]}

    @app.get("/foods/{food_id}")
    async def get_food(
        food_id: int, request: Request, _user_id: int = Depends(require_user)
    ) -> dict[str, object]:
        return serialize_food(_container(request).food_service.get_food(food_id))

    @app.patch("/foods/{food_id}")
    async def update_food(
        food_id: int,
        payload: FoodUpdate,
        request: Request,
        _user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        """Update a food; logged entries keep their snapshots."""
        food = _container(request).food_service.update_food(
            food_id, payload.model_dump(exclude_unset=True)
        )
        return serialize_food(food)

    @app.delete("/foods/{food_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_food(
        food_id: int, request: Request, _user_id: int = Depends(require_user)
    ) -> Response:
        _container(request).food_service.delete_food(food_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/recipes", status_code=status.HTTP_201_CREATED)
    async def create_recipe(
        payload: RecipeCreate,
        request: Request,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        """Create a recipe and its ingredients atomically."""
        nutrition = await _container(request).recipe_service.create_recipe(
            user_id,
            payload.name,
            [item.model_dump() for item in payload.ingredients],
            payload.tag,
        )
        return serialize_recipe_nutrition(nutrition)

    @app.get("/recipes")
    async def list_recipes(
        request: Request,
        user_only: bool = False,
        tag: str | None = None,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        """List accessible recipes with nutrition."""
        recipes = await _container(request).recipe_service.list_recipes(
            user_id, user_only, tag
        )
        return {"recipes": [serialize_recipe_nutrition(item) for item in recipes]}

    @app.get("/recipes/{recipe_id}")
    async def get_recipe(
        recipe_id: int, request: Request, user_id: int = Depends(require_user)
    ) -> dict[str, object]:
        nutrition = await _container(request).recipe_service.get_recipe(
            user_id, recipe_id
        )
        return serialize_recipe_nutrition(nutrition)

    @app.patch("/recipes/{recipe_id}")
    async def update_recipe(
        recipe_id: int,
        payload: RecipeUpdate,
        request: Request,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        recipe = _container(request).recipe_service.update_recipe(
            user_id, recipe_id, payload.model_dump(exclude_unset=True)
        )
        return serialize_recipe(recipe)

    @app.delete("/recipes/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_recipe(
        recipe_id: int, request: Request, user_id: int = Depends(require_user)
    ) -> Response:
        _container(request).recipe_service.delete_recipe(user_id, recipe_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post(
        "/recipes/{recipe_id}/ingredients", status_code=status.HTTP_201_CREATED
    )
    async def add_ingredient(
        recipe_id: int,
        payload: IngredientIn,
        request: Request,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        ingredient = await _container(request).recipe_service.add_ingredient(
            user_id, recipe_id, payload.food_id, payload.quantity_grams
        )
        return serialize_ingredient(ingredient)

    @app.patch("/recipes/{recipe_id}/ingredients/{ingredient_id}")
    async def update_ingredient(  # noqa: PLR0913
        recipe_id: int,
        ingredient_id: int,
        payload: IngredientQuantity,
        request: Request,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        ingredient = _container(request).recipe_service.update_ingredient(
            user_id, recipe_id, ingredient_id, payload.quantity_grams
        )
        return serialize_ingredient(ingredient)

    @app.delete(
        "/recipes/{recipe_id}/ingredients/{ingredient_id}",
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def delete_ingredient(
        recipe_id: int,
        ingredient_id: int,
        request: Request,
        user_id: int = Depends(require_user),
    ) -> Response:
        _container(request).recipe_service.delete_ingredient(
            user_id, recipe_id, ingredient_id
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/diary/entries", status_code=status.HTTP_201_CREATED)
    async def log_entry(
        payload: DiaryEntryCreate,
        request: Request,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        """Log consumption and cache its nutrition snapshot."""
        entry = await _container(request).diary_service.log_entry(
            user_id, payload.model_dump(exclude_none=True)
        )
        return serialize_entry(entry)

    @app.get("/diary/entries")
    async def list_entries(
        request: Request,
        date: str | None = None,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        day = parse_date(date)
        entries = _container(request).diary_service.list_entries(user_id, day)
        return {
            "date": day.isoformat(),
            "entries": [serialize_entry(entry) for entry in entries],
        }

    @app.put("/diary/entries/{entry_id}")
    async def update_entry(
        entry_id: int,
        payload: DiaryEntryUpdate,
        request: Request,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        """Edit an entry; nutrition is recomputed only for quantity changes."""
        entry = await _container(request).diary_service.update_entry(
            user_id, entry_id, payload.model_dump(exclude_unset=True)
        )
        return serialize_entry(entry)

    @app.delete("/diary/entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_entry(
        entry_id: int, request: Request, user_id: int = Depends(require_user)
    ) -> Response:
        _container(request).diary_service.delete_entry(user_id, entry_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/diary/entries/{entry_id}/save-as-food")
    async def save_as_food(
        entry_id: int, request: Request, user_id: int = Depends(require_user)
    ) -> dict[str, object]:
        """Promote an inline food to the catalog."""
        food, entry = _container(request).diary_service.save_inline_as_food(
            user_id, entry_id
        )
        return {"food": serialize_food(food), "entry": serialize_entry(entry)}

    @app.get("/diary/summary/{day}")
    async def daily_summary(
        day: str, request: Request, user_id: int = Depends(require_user)
    ) -> dict[str, object]:
        summary = _container(request).summary_service.daily_summary(
            user_id, parse_date(day)
        )
        return serialize_daily_summary(summary)

    @app.get("/diary/weekly")
    async def weekly_routine(
        request: Request,
        start_date: str | None = None,
        user_id: int = Depends(require_user),
    ) -> list[bool | None]:
        """Routine-day signals for seven days, Monday first by default."""
        return _container(request).summary_service.weekly_routine(
            user_id, _optional_date(start_date)
        )

    @app.get("/diary/weekly/summary")
    async def weekly_summary(
        request: Request,
        start_date: str | None = None,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        summary = _container(request).summary_service.weekly_summary(
            user_id, _optional_date(start_date)
        )
        return serialize_weekly_summary(summary)

    @app.post("/goals", status_code=status.HTTP_201_CREATED)
    async def create_goal(
        payload: GoalCreate, request: Request, user_id: int = Depends(require_user)
    ) -> dict[str, object]:
        """Set a new active goal; the previous one is deactivated."""
        goal = _container(request).goal_service.create_goal(
            user_id, payload.model_dump()
        )
        return serialize_goal(goal)

    @app.get("/goals")
    async def list_goals(
        request: Request, user_id: int = Depends(require_user)
    ) -> dict[str, object]:
        goals = _container(request).goal_service.list_goals(user_id)
        return {"goals": [serialize_goal(goal) for goal in goals]}

    @app.get("/goals/active")
    async def active_goal(
        request: Request, user_id: int = Depends(require_user)
    ) -> dict[str, object]:
        return serialize_goal(_container(request).goal_service.get_active(user_id))

    @app.patch("/goals/{goal_id}")
    async def update_goal(
        goal_id: int,
        payload: GoalUpdate,
        request: Request,
        user_id: int = Depends(require_user),
    ) -> dict[str, object]:
        goal = _container(request).goal_service.update_goal(
            user_id, goal_id, payload.model_dump(exclude_unset=True)
        )
        return serialize_goal(goal)

    @app.delete("/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_goal(
        goal_id: int, request: Request, user_id: int = Depends(require_user)
    ) -> Response:
        _container(request).goal_service.delete_goal(user_id, goal_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


def _optional_date(value: str | None) -> date | None:
    return parse_date(value) if value else None
