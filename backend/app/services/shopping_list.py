"""
Shopping list aggregation across the meals of a plan.
"""
from typing import List

from app.core.constants import LimitsConstants, ShoppingConstants
from app.db.schema import MissingIngredient, ShoppingListItem
from app.utils.text_cleaning import normalize_name


def categorize_ingredient(name: str) -> str:
    """Store section for an ingredient, by keyword substring match."""
    lower = name.lower()
    for category, keywords in ShoppingConstants.CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return ShoppingConstants.DEFAULT_CATEGORY


def add_items(shopping_list: List[ShoppingListItem], missing: List[MissingIngredient]) -> None:
    """
    Merge missing ingredients into a shopping list in place.

    Entries are unique per (trimmed lowercase name, unit); a repeated pair adds
    to the existing quantity and keeps the first spelling of the name.
    """
    for incoming in missing:
        key = normalize_name(incoming.name)
        existing = next(
            (
                item for item in shopping_list
                if normalize_name(item.name) == key and item.unit == incoming.unit
            ),
            None,
        )

        if existing is not None:
            existing.quantity = round(
                existing.quantity + incoming.quantity, LimitsConstants.QUANTITY_DECIMALS
            )
        else:
            shopping_list.append(ShoppingListItem(
                name=incoming.name,
                quantity=incoming.quantity,
                unit=incoming.unit,
                category=categorize_ingredient(incoming.name),
                purchased=False,
            ))


class ShoppingListAggregator:
    """Accumulates the shopping list of one plan while it is assembled."""

    def __init__(self):
        self.items: List[ShoppingListItem] = []

    def add(self, missing: List[MissingIngredient]) -> None:
        add_items(self.items, missing)

    def __len__(self) -> int:
        return len(self.items)
