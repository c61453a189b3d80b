"""
Compares recipe ingredient requirements against a user's pantry.
"""
from typing import Iterable, List, Optional

from app.core.constants import LimitsConstants
from app.db.schema import MissingIngredient, PantryItem, RecipeIngredient
from app.utils.unit_conversion import units_compatible


def _find_pantry_item(
    name: str,
    unit: str,
    pantry: Iterable[PantryItem]
) -> Optional[PantryItem]:
    """First pantry item whose name matches case-insensitively and whose unit is compatible."""
    wanted = name.lower()
    return next(
        (
            item for item in pantry
            if item.name.lower() == wanted and units_compatible(item.unit, unit)
        ),
        None,
    )


def compute_missing(
    recipe_ingredients: List[RecipeIngredient],
    pantry: List[PantryItem]
) -> List[MissingIngredient]:
    """
    Ingredients of a recipe not sufficiently available in the pantry.

    Pantry items recorded in a unit other than the one the recipe asks for are
    ignored; no conversion between units is attempted.

    Args:
        recipe_ingredients: Requirements of one recipe
        pantry: The user's inventory

    Returns:
        One entry per short ingredient, quantity = required - available
        (rounded to 2 decimals), in the recipe's unit
    """
    missing = []

    for ingredient in recipe_ingredients:
        item = _find_pantry_item(ingredient.name, ingredient.unit, pantry)

        available = item.quantity if item is not None else 0.0
        if item is not None and available >= ingredient.amount:
            continue

        missing.append(MissingIngredient(
            name=ingredient.name,
            quantity=round(ingredient.amount - available, LimitsConstants.QUANTITY_DECIMALS),
            unit=ingredient.unit,
        ))

    return missing
