"""
API routes for weekly meal plans and their shopping lists.
"""
from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException
from typing import Optional
from sqlalchemy.orm import Session

from app.core.constants import PlanState
from app.core.exceptions import MealPlanError
from app.core.logging import get_logger
from app.db.schema import (
    GeneratePlanRequest,
    GeneratePlanResponse,
    ShoppingListResponse,
    ShoppingListUpdateRequest,
    ShoppingListUpdateResult,
    WeeklyPlan,
)
from app.db.session import get_db
from app.services.plan_service import PlanService, get_plan_service

logger = get_logger("api.routes_plans")
router = APIRouter(prefix="/plans", tags=["Meal Plans"])


def _http_error(e: MealPlanError) -> HTTPException:
    detail = {"message": e.message, **e.detail} if e.detail else e.message
    return HTTPException(status_code=e.status_code, detail=detail)


@router.post("/{user_id}/generate", status_code=202, response_model=GeneratePlanResponse)
async def generate_plan(
    user_id: int,
    background_tasks: BackgroundTasks,
    request: Optional[GeneratePlanRequest] = Body(None),
    db: Session = Depends(get_db),
    service: PlanService = Depends(get_plan_service)
):
    """
    Request a new plan for a user.

    The plan is stored as PENDING and assembled in the background; poll
    GET /plans/{plan_id} until its state is FINALIZED or CANCELLED.
    """
    request = request or GeneratePlanRequest()
    try:
        plan = service.request_plan(
            db,
            user_id,
            days=request.days,
            start_date=request.start_date,
        )

        background_tasks.add_task(
            service.runner.run_later,
            plan.id,
            service.settings.plan_trigger_delay_seconds,
        )

        return GeneratePlanResponse(
            plan_id=plan.id,
            state=PlanState.PENDING,
            remaining_budget=service.budget.remaining,
            per_plan_cap=service.budget.per_plan_cap,
            estimated_points=service.catalog.estimate_plan_points(
                (plan.end_date - plan.start_date).days + 1
            ),
        )

    except MealPlanError as e:
        logger.warning(f"Plan request for user {user_id} rejected: {e.message}")
        raise _http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error requesting plan for user {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{plan_id}", response_model=WeeklyPlan)
async def get_plan(
    plan_id: int,
    db: Session = Depends(get_db),
    service: PlanService = Depends(get_plan_service)
):
    """Get a plan in any state."""
    try:
        return service.get_plan(db, plan_id)
    except MealPlanError as e:
        raise _http_error(e)


@router.get("/{plan_id}/lista-compras", response_model=ShoppingListResponse)
async def get_shopping_list(
    plan_id: int,
    db: Session = Depends(get_db),
    service: PlanService = Depends(get_plan_service)
):
    """Get the consolidated shopping list of a plan."""
    try:
        items = service.get_shopping_list(db, plan_id)
        return ShoppingListResponse(plan_id=plan_id, shopping_list=items)
    except MealPlanError as e:
        raise _http_error(e)


@router.patch("/{plan_id}/lista-compras", response_model=ShoppingListUpdateResult)
async def update_shopping_list(
    plan_id: int,
    request: ShoppingListUpdateRequest,
    db: Session = Depends(get_db),
    service: PlanService = Depends(get_plan_service)
):
    """
    Mark shopping list entries as purchased or not.

    Entries are matched by name (trimmed, case-insensitive). Items marked
    purchased are added to the plan owner's pantry.
    """
    try:
        return service.update_shopping_list(db, plan_id, request.items)
    except MealPlanError as e:
        raise _http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating shopping list of plan {plan_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
