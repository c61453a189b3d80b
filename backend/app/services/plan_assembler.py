"""
Weekly plan assembly.

Requests one breakfast batch and one lunch+dinner batch from the catalog,
fetches recipe details, walks the calendar filling slots in MealSlot order,
and builds the consolidated shopping list as it goes.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterator, List, Set

from app.core.catalog_client import RecipeCatalogClient
from app.core.constants import MealSlot, MenuConstants
from app.core.exceptions import BudgetExhausted, InsufficientRecipes, ValidationError
from app.core.logging import get_logger
from app.db.schema import (
    PlanDay,
    PlannedMeal,
    RecipeDetail,
    RecipeSummary,
    ShoppingListItem,
    UserProfile,
)
from app.services.ingredient_reconciler import compute_missing
from app.services.shopping_list import ShoppingListAggregator

logger = get_logger("services.plan_assembler")


@dataclass
class AssembledWeek:
    days: List[PlanDay]
    shopping_list: List[ShoppingListItem]
    points_spent: float = 0
    recipe_ids: List[int] = field(default_factory=list)


def days_in_range(start_date: date, end_date: date) -> List[date]:
    """Calendar dates from start to end, both inclusive."""
    span = (end_date - start_date).days
    return [start_date + timedelta(days=offset) for offset in range(span + 1)]


def _dedupe(recipes: List[RecipeSummary], seen: Set[int]) -> List[RecipeSummary]:
    """Drop recipes whose id was already taken, keeping the first occurrence."""
    unique = []
    for recipe in recipes:
        if recipe.id in seen:
            continue
        seen.add(recipe.id)
        unique.append(recipe)
    return unique


class PlanAssembler:
    """Builds the days and shopping list of a plan from catalog recipes."""

    def __init__(self, catalog: RecipeCatalogClient):
        self.catalog = catalog

    async def assemble_week(
        self,
        profile: UserProfile,
        start_date: date,
        end_date: date
    ) -> AssembledWeek:
        """
        Assemble one plan.

        Raises:
            ValidationError: If the date range is empty.
            BudgetExhausted: If a recipe search cannot be paid for.
            InsufficientRecipes: If any slot of any day cannot be filled.
        """
        dates = days_in_range(start_date, end_date)
        if not dates:
            raise ValidationError(f"Empty date range {start_date} - {end_date}")

        day_count = len(dates)
        required = day_count * MenuConstants.SLOTS_PER_DAY

        breakfasts, breakfast_points = await self.catalog.search_recipes_for_slot(
            profile, MenuConstants.BREAKFAST_BATCH, day_count
        )
        mains, main_points = await self.catalog.search_recipes_for_slot(
            profile, MenuConstants.MAIN_BATCH, day_count * (MenuConstants.SLOTS_PER_DAY - 1)
        )
        points_spent = breakfast_points + main_points

        seen: Set[int] = set()
        breakfasts = _dedupe(breakfasts, seen)
        mains = _dedupe(mains, seen)

        available = len(breakfasts) + len(mains)
        if available < required:
            raise InsufficientRecipes(available, required)

        breakfast_pool = await self._fetch_details(breakfasts)
        main_pool = await self._fetch_details(mains)

        main_iter = iter(main_pool)
        pools: Dict[MealSlot, Iterator[RecipeDetail]] = {
            MealSlot.BREAKFAST: iter(breakfast_pool),
            MealSlot.LUNCH: main_iter,
            MealSlot.DINNER: main_iter,
        }

        aggregator = ShoppingListAggregator()
        days: List[PlanDay] = []
        recipe_ids: List[int] = []

        for current in dates:
            meals = []
            for slot in MealSlot.ordered():
                recipe = next(pools[slot], None)
                if recipe is None:
                    # Skipped details left the pool short; partial plans are not kept
                    raise InsufficientRecipes(len(recipe_ids), required)

                missing = compute_missing(recipe.ingredients, profile.pantry)
                meals.append(PlannedMeal(
                    slot=slot,
                    recipe_id=recipe.id,
                    recipe_name=recipe.title,
                    missing_ingredients=missing,
                ))
                aggregator.add(missing)
                recipe_ids.append(recipe.id)

            days.append(PlanDay(day=current, meals=meals))

        logger.info(
            f"Plan assembled for user {profile.id}: {len(days)} days, "
            f"{len(recipe_ids)} recipes, {len(aggregator)} shopping items "
            f"({points_spent} search points)"
        )
        return AssembledWeek(
            days=days,
            shopping_list=aggregator.items,
            points_spent=points_spent,
            recipe_ids=recipe_ids,
        )

    async def _fetch_details(self, recipes: List[RecipeSummary]) -> List[RecipeDetail]:
        """Details in order; recipes whose detail cannot be paid for are skipped."""
        details = []
        for recipe in recipes:
            try:
                details.append(await self.catalog.get_recipe_detail(recipe.id))
            except BudgetExhausted as e:
                logger.error(f"Skipping recipe {recipe.id}: {e}")
        return details
