"""
Error taxonomy for plan generation.
Each error carries the HTTP status it maps to when surfaced to a caller.
"""
from typing import Optional


class MealPlanError(Exception):
    """Base class for domain errors."""

    status_code: int = 500

    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class BudgetExhausted(MealPlanError):
    """Daily point budget against the recipe catalog cannot cover a call."""

    status_code = 429


class InsufficientRecipes(MealPlanError):
    """Catalog plus fallback could not supply enough recipes for the plan."""

    status_code = 422

    def __init__(self, available: int, required: int):
        super().__init__(
            f"Not enough recipes to fill the plan ({available}/{required})",
            {"available": available, "required": required},
        )
        self.available = available
        self.required = required


class CatalogUnavailable(MealPlanError):
    """Network, timeout or HTTP failure while talking to the recipe catalog."""

    status_code = 503


class NotFoundError(MealPlanError):
    """Referenced user or plan does not exist."""

    status_code = 404


class ValidationError(MealPlanError):
    """Malformed identifier or request body."""

    status_code = 400
