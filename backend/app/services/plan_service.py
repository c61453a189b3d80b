"""
Plan service for business logic behind the plan endpoints.
Owns the process-wide budget, caches, catalog client and job runner.
"""
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Callable, List, Optional
import uuid

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.catalog_client import RecipeCatalogClient
from app.core.config import Settings, get_settings
from app.core.constants import ShoppingConstants
from app.core.exceptions import BudgetExhausted, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.db import crud_plans, crud_users
from app.db.models import WeeklyPlanModel
from app.db.schema import (
    PantryItem,
    ShoppingItemUpdate,
    ShoppingListItem,
    ShoppingListUpdateResult,
    WeeklyPlan,
)
from app.db.serializers import PlanSerializer
from app.services.plan_assembler import PlanAssembler
from app.services.plan_jobs import PlanJobRunner, RecoverySweep
from app.services.rate_budget import RateBudgetTracker
from app.services.recipe_cache import ResultCache

logger = get_logger("services.plan_service")


class PlanService:
    """Plan generation, lookup and shopping list updates."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today: Callable[[], date] = date.today
    ):
        self.settings = settings or get_settings()
        self._today = today

        self.budget = RateBudgetTracker(
            daily_limit=self.settings.daily_point_limit,
            per_plan_cap=self.settings.max_points_per_plan,
        )
        self.cache = ResultCache(
            search_ttl=self.settings.search_cache_ttl,
            detail_ttl=self.settings.detail_cache_ttl,
            check_period=self.settings.cache_check_period,
        )
        self.catalog = RecipeCatalogClient(
            self.budget,
            self.cache,
            transport=transport,
            today=today,
            settings=self.settings,
        )
        self.assembler = PlanAssembler(self.catalog)
        self.runner = PlanJobRunner(
            session_factory,
            self.assembler,
            claim_ttl=self.settings.claim_ttl_seconds,
        )
        self.sweep = RecoverySweep(
            self.runner,
            interval_seconds=self.settings.recovery_interval_seconds,
            batch_size=self.settings.recovery_batch_size,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the cache sweep and the recovery sweep."""
        self.cache.start_sweep()
        self.sweep.start()

    async def stop(self) -> None:
        await self.sweep.stop()
        await self.cache.stop_sweep()

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    def request_plan(
        self,
        db: Session,
        user_id: int,
        days: Optional[int] = None,
        start_date: Optional[date] = None
    ) -> WeeklyPlanModel:
        """
        Create a PENDING plan; assembly happens in the background.

        Raises:
            ValidationError: If the day count is out of range.
            BudgetExhausted: If today's budget cannot cover another plan.
            NotFoundError: If the user does not exist.
        """
        day_count = days if days is not None else self.settings.plan_default_days
        if day_count < 1 or day_count > self.settings.plan_max_days:
            raise ValidationError(
                f"days must be between 1 and {self.settings.plan_max_days}"
            )

        estimated = self.catalog.estimate_plan_points(day_count)
        if not self.budget.can_start_plan(estimated):
            raise BudgetExhausted(
                "Not enough points left today to generate a new plan",
                {"remaining": self.budget.remaining, "estimated": estimated},
            )

        if not crud_users.user.exists(db, user_id):
            raise NotFoundError(f"User {user_id} not found")

        start = start_date or self._today()
        end = start + timedelta(days=day_count - 1)

        plan = crud_plans.plan.create_pending(
            db,
            crud_plans.PlanCreate(user_id=user_id, start_date=start, end_date=end),
        )
        logger.info(f"Plan {plan.id} created for user {user_id} ({start} - {end})")
        return plan

    def get_plan(self, db: Session, plan_id: int) -> WeeklyPlan:
        plan = crud_plans.plan.get_full(db, plan_id)
        if not plan:
            raise NotFoundError(f"Plan {plan_id} not found")
        return PlanSerializer.model_to_plan(plan)

    def get_shopping_list(self, db: Session, plan_id: int) -> List[ShoppingListItem]:
        plan = crud_plans.plan.get_full(db, plan_id)
        if not plan:
            raise NotFoundError(f"Plan {plan_id} not found")
        return PlanSerializer.shopping_list(plan)

    def update_shopping_list(
        self,
        db: Session,
        plan_id: int,
        updates: List[ShoppingItemUpdate]
    ) -> ShoppingListUpdateResult:
        """
        Toggle purchased flags; purchased entries are appended to the owner's pantry.
        A failing pantry write is logged and does not undo the flag changes.
        """
        plan = crud_plans.plan.get_full(db, plan_id)
        if not plan:
            raise NotFoundError(f"Plan {plan_id} not found")

        updated, purchased, not_found = crud_plans.plan.set_purchased(db, plan, updates)

        added = 0
        if purchased:
            now = datetime.utcnow()
            pantry_items = [
                PantryItem(
                    ingredient_id=str(uuid.uuid4()),
                    name=entry.name,
                    category=entry.category or ShoppingConstants.DEFAULT_CATEGORY,
                    quantity=entry.quantity,
                    unit=entry.unit or "",
                    storage_location=ShoppingConstants.DEFAULT_STORAGE,
                    last_updated=now,
                )
                for entry in purchased
            ]
            try:
                added = crud_users.user.append_pantry_items(db, plan.user_id, pantry_items)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error adding purchased items of plan {plan_id} to pantry: {e}")

        if not_found:
            logger.info(f"Shopping list of plan {plan_id}: items not found {not_found}")

        return ShoppingListUpdateResult(
            updated_items=len(updated),
            added_to_pantry=added,
            not_found=not_found,
        )


@lru_cache()
def get_plan_service() -> PlanService:
    """Process-wide plan service bound to the application database."""
    from app.db.session import SessionLocal

    return PlanService(SessionLocal)
