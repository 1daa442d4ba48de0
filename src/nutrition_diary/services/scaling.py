"""Scaling of per-100 g nutrient profiles."""

import math
from decimal import ROUND_HALF_UP, Decimal

from nutrition_diary.domain.errors import InvalidInputError
from nutrition_diary.domain.nutrition import NutrientProfile

MAX_QUANTITY_GRAMS = 100_000.0


def validate_quantity(
    grams: float, *, field: str = "quantity_grams", limit: float = MAX_QUANTITY_GRAMS
) -> float:
    """Return grams as float or raise when it is not in (0, limit]."""
    if isinstance(grams, bool) or not isinstance(grams, int | float):
        raise InvalidInputError(f"{field} must be a number")
    value = float(grams)
    if not math.isfinite(value) or value <= 0:
        raise InvalidInputError(f"{field} must be greater than 0")
    if value > limit:
        raise InvalidInputError(f"{field} must be at most {limit:g} grams")
    return value


def validate_nutrient(value: object, *, field: str) -> float:
    """Return a per-100 g nutrient value; None counts as 0."""
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidInputError(f"{field} must be a number")
    number = float(value)
    if not math.isfinite(number):
        raise InvalidInputError(f"{field} must be a finite number")
    if number < 0:
        raise InvalidInputError(f"{field} must not be negative")
    return number


def scale(profile: NutrientProfile, grams: float) -> NutrientProfile:
    """Scale a per-100 g profile to the given quantity."""
    return profile.multiply(grams / 100.0)


def round_nutrient(value: float) -> float:
    """Round to two decimals for serialization."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def round_profile(profile: NutrientProfile) -> dict[str, float]:
    """Return the profile as a dict of rounded values."""
    return {key: round_nutrient(value) for key, value in profile.as_dict().items()}
