"""
CRUD operations for weekly plans.
"""
from typing import Iterable, List, Optional, Tuple
from datetime import date, datetime

from pydantic import BaseModel
from sqlalchemy.orm import Session, selectinload

from app.core.constants import PlanState
from app.db.base_crud import CRUDBase
from app.db.models import (
    WeeklyPlanModel,
    PlanDayModel,
    PlanMealModel,
    ShoppingListItemModel,
)
from app.db.schema import PlanDay, ShoppingListItem, ShoppingItemUpdate
from app.db.serializers import PlanSerializer
from app.utils.text_cleaning import normalize_name


class PlanCreate(BaseModel):
    user_id: int
    start_date: date
    end_date: date


class CRUDPlan(CRUDBase[WeeklyPlanModel, PlanCreate, PlanCreate]):
    def create_pending(self, db: Session, plan_in: PlanCreate) -> WeeklyPlanModel:
        """
        Create a plan in PENDING state with empty days and shopping list.
        """
        now = datetime.utcnow()
        plan = WeeklyPlanModel(
            user_id=plan_in.user_id,
            start_date=plan_in.start_date,
            end_date=plan_in.end_date,
            state=PlanState.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan

    def get_full(self, db: Session, plan_id: int) -> Optional[WeeklyPlanModel]:
        """Get a plan with days, meals and shopping items eagerly loaded."""
        return (
            db.query(WeeklyPlanModel)
            .options(
                selectinload(WeeklyPlanModel.days).selectinload(PlanDayModel.meals),
                selectinload(WeeklyPlanModel.shopping_items),
            )
            .filter(WeeklyPlanModel.id == plan_id)
            .first()
        )

    def get_pending(
        self,
        db: Session,
        exclude_ids: Iterable[int] = (),
        limit: int = 3
    ) -> List[WeeklyPlanModel]:
        """PENDING plans least recently touched first, skipping the given ids."""
        query = db.query(WeeklyPlanModel).filter(WeeklyPlanModel.state == PlanState.PENDING.value)
        excluded = list(exclude_ids)
        if excluded:
            query = query.filter(WeeklyPlanModel.id.notin_(excluded))
        return query.order_by(WeeklyPlanModel.updated_at, WeeklyPlanModel.id).limit(limit).all()

    def touch(self, db: Session, plan_id: int) -> None:
        """Bump updated_at of a PENDING plan that was looked at but left pending."""
        db.query(WeeklyPlanModel).filter(
            WeeklyPlanModel.id == plan_id,
            WeeklyPlanModel.state == PlanState.PENDING.value,
        ).update({"updated_at": datetime.utcnow()}, synchronize_session=False)
        db.commit()

    def _claim_transition(self, db: Session, plan_id: int, state: PlanState) -> bool:
        """Move a PENDING plan to a terminal state; False if it was no longer PENDING."""
        updated = (
            db.query(WeeklyPlanModel)
            .filter(
                WeeklyPlanModel.id == plan_id,
                WeeklyPlanModel.state == PlanState.PENDING.value,
            )
            .update(
                {"state": state.value, "updated_at": datetime.utcnow()},
                synchronize_session=False,
            )
        )
        return updated == 1

    def finalize(
        self,
        db: Session,
        plan_id: int,
        days: List[PlanDay],
        shopping_list: List[ShoppingListItem]
    ) -> bool:
        """
        Write days, shopping list and FINALIZED state in a single commit.

        Returns:
            False (and nothing written) if the plan had already left PENDING
        """
        if not self._claim_transition(db, plan_id, PlanState.FINALIZED):
            db.rollback()
            return False

        for day_position, plan_day in enumerate(days):
            day_row = PlanDayModel(plan_id=plan_id, position=day_position, day=plan_day.day)
            db.add(day_row)
            db.flush()
            for meal_position, meal in enumerate(plan_day.meals):
                db.add(PlanMealModel(
                    day_id=day_row.id,
                    position=meal_position,
                    slot=meal.slot.value,
                    recipe_id=meal.recipe_id,
                    recipe_name=meal.recipe_name,
                    missing_ingredients=PlanSerializer.dump_missing(meal.missing_ingredients),
                ))

        for position, item in enumerate(shopping_list):
            db.add(ShoppingListItemModel(
                plan_id=plan_id,
                position=position,
                name=item.name,
                quantity=item.quantity,
                unit=item.unit,
                category=item.category,
                purchased=item.purchased,
            ))

        db.commit()
        return True

    def cancel(self, db: Session, plan_id: int) -> bool:
        """Mark a PENDING plan CANCELLED, leaving days and shopping list empty."""
        if not self._claim_transition(db, plan_id, PlanState.CANCELLED):
            db.rollback()
            return False
        db.commit()
        return True

    def set_purchased(
        self,
        db: Session,
        plan: WeeklyPlanModel,
        updates: List[ShoppingItemUpdate]
    ) -> Tuple[List[ShoppingListItemModel], List[ShoppingListItemModel], List[str]]:
        """
        Apply purchased flags by normalized name match.

        Returns:
            (updated entries, entries newly marked purchased, names not found)
        """
        updated = []
        purchased = []
        not_found = []

        for change in updates:
            wanted = normalize_name(change.name)
            entry = next(
                (item for item in plan.shopping_items if normalize_name(item.name) == wanted),
                None,
            )
            if entry is None:
                not_found.append(change.name)
                continue

            entry.purchased = change.purchased
            updated.append(entry)
            if change.purchased:
                purchased.append(entry)

        if updated:
            plan.updated_at = datetime.utcnow()
            db.commit()

        return updated, purchased, not_found


plan = CRUDPlan(WeeklyPlanModel)
