"""
Plan and user serializers for converting between database models and schemas.
Centralizes all model-to-schema conversion logic to eliminate duplication.
"""
from typing import List, Optional
import json
import logging

from pydantic import ValidationError as PydanticValidationError

from app.core.constants import MealSlot, PlanState
from app.db.schema import (
    DietaryPreferences,
    MissingIngredient,
    PantryItem,
    PlanDay,
    PlannedMeal,
    PlanWeek,
    ShoppingListItem,
    UserProfile,
    WeeklyPlan,
)
from app.utils.json_parser import safe_json_parse

logger = logging.getLogger(__name__)


class PlanSerializer:
    """Serializes plan rows into plan documents."""

    @staticmethod
    def dump_missing(missing: List[MissingIngredient]) -> str:
        """Encode missing ingredients for the JSON text column."""
        return json.dumps([item.model_dump(by_alias=True) for item in missing], ensure_ascii=False)

    @staticmethod
    def load_missing(raw: Optional[str]) -> List[MissingIngredient]:
        """Decode missing ingredients, tolerating empty or corrupt columns."""
        entries = safe_json_parse(raw, fallback=[])
        if not isinstance(entries, list):
            return []
        return [MissingIngredient.model_validate(entry) for entry in entries]

    @classmethod
    def model_to_plan(cls, plan_model) -> WeeklyPlan:
        """
        Convert a WeeklyPlanModel (with days, meals and shopping items) to a WeeklyPlan.

        Args:
            plan_model: WeeklyPlanModel instance from database

        Returns:
            WeeklyPlan document
        """
        days = [
            PlanDay(
                day=day.day,
                meals=[
                    PlannedMeal(
                        slot=MealSlot(meal.slot),
                        recipe_id=meal.recipe_id,
                        recipe_name=meal.recipe_name,
                        missing_ingredients=cls.load_missing(meal.missing_ingredients),
                    )
                    for meal in day.meals
                ],
            )
            for day in plan_model.days
        ]

        return WeeklyPlan(
            id=plan_model.id,
            user_id=plan_model.user_id,
            week=PlanWeek(start=plan_model.start_date, end=plan_model.end_date),
            state=PlanState(plan_model.state),
            days=days,
            shopping_list=cls.shopping_list(plan_model),
            created_at=plan_model.created_at,
            updated_at=plan_model.updated_at,
        )

    @staticmethod
    def shopping_list(plan_model) -> List[ShoppingListItem]:
        return [
            ShoppingListItem(
                name=item.name,
                quantity=item.quantity,
                unit=item.unit or "",
                category=item.category,
                purchased=bool(item.purchased),
            )
            for item in plan_model.shopping_items
        ]


class UserSerializer:
    """Serializes user rows into the profile consumed by plan assembly."""

    @staticmethod
    def load_preferences(raw: Optional[str]) -> DietaryPreferences:
        data = safe_json_parse(raw, fallback={})
        if not isinstance(data, dict):
            return DietaryPreferences()
        try:
            return DietaryPreferences.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(f"Ignoring malformed dietary preferences: {e}")
            return DietaryPreferences()

    @staticmethod
    def pantry_item(item_model) -> PantryItem:
        return PantryItem(
            ingredient_id=item_model.ingredient_id,
            name=item_model.name,
            category=item_model.category,
            quantity=item_model.quantity or 0.0,
            unit=item_model.unit or "",
            storage_location=item_model.storage_location,
            last_updated=item_model.last_updated,
        )

    @classmethod
    def model_to_profile(cls, user_model) -> UserProfile:
        return UserProfile(
            id=user_model.id,
            name=user_model.name,
            preferences=cls.load_preferences(user_model.preferences),
            pantry=[cls.pantry_item(item) for item in user_model.pantry_items],
        )
