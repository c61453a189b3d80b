"""
Application-wide constants.
Centralizes all hardcoded values to prevent duplication and improve maintainability.
"""
from enum import Enum
from typing import Dict, List, Tuple


class MealSlot(str, Enum):
    """Meal slots of a plan day, declared in the order they are filled."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"

    @classmethod
    def ordered(cls) -> List["MealSlot"]:
        return list(cls)


class PlanState(str, Enum):
    """Lifecycle of a weekly plan."""

    PENDING = "PENDING"
    FINALIZED = "FINALIZED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not PlanState.PENDING


class MenuConstants:
    """Constants related to menu planning and meal organization."""

    SLOTS_PER_DAY: int = len(MealSlot)

    # Slot hints used to request recipe batches from the catalog
    BREAKFAST_BATCH: str = "breakfast"
    MAIN_BATCH: str = "main"

    # Catalog "type" filter per batch
    CATALOG_MEAL_TYPES: Dict[str, str] = {
        "breakfast": "breakfast",
        "main": "main course",
    }


class ShoppingConstants:
    """Defaults for shopping list entries and pantry items created from them."""

    DEFAULT_CATEGORY: str = "otros"
    DEFAULT_STORAGE: str = "desconocido"

    # First matching keyword set wins
    CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
        ("lácteos", ("leche", "queso", "yogur")),
        ("carnes", ("carne", "pollo", "pescado", "res", "cerdo")),
        ("frutas", ("manzana", "banana", "naranja", "uva")),
        ("vegetales", ("cebolla", "zanahoria", "papa", "tomate")),
        ("granos", ("arroz", "pasta", "pan", "harina")),
    ]


class LimitsConstants:
    """Limits and thresholds used throughout the application."""

    DAY_SECONDS: int = 86400

    # Quantities are reported with two decimals
    QUANTITY_DECIMALS: int = 2

    NO_INSTRUCTIONS: str = "No hay instrucciones disponibles"


__all__ = [
    'MealSlot',
    'PlanState',
    'MenuConstants',
    'ShoppingConstants',
    'LimitsConstants'
]
