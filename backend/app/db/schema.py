"""
Pydantic schemas for API request/response models.
These define the structure of data flowing through the API and the planner.

Plan documents keep the field names clients already consume (``dias``,
``lista_compras``, ``nombre``...) as aliases; Python code uses the attribute names.
"""
from typing import Optional, List
from datetime import date, datetime
from pydantic import BaseModel, Field, ConfigDict

from app.core.constants import MealSlot, PlanState, ShoppingConstants


class WireModel(BaseModel):
    """Base model accepting both attribute names and aliases."""
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Recipes (catalog data, transient)
# ---------------------------------------------------------------------------

class RecipeIngredient(BaseModel):
    """Ingredient requirement of a recipe."""
    name: str
    amount: float = 0.0
    unit: str = ""


class StepReference(BaseModel):
    """Ingredient or equipment referenced by an instruction step."""
    id: Optional[int] = None
    name: str
    localized_name: Optional[str] = None
    image: Optional[str] = None


class RecipeStep(BaseModel):
    """One structured instruction step."""
    number: int
    text: str
    ingredients: List[StepReference] = []
    equipment: List[StepReference] = []


class RecipeSummary(BaseModel):
    """Recipe as returned by catalog search."""
    id: int
    title: str
    image: str = ""
    ready_in_minutes: Optional[int] = None
    servings: Optional[int] = None
    source_url: Optional[str] = None
    vegetarian: Optional[bool] = None
    vegan: Optional[bool] = None
    gluten_free: Optional[bool] = None
    dairy_free: Optional[bool] = None
    ingredients: List[RecipeIngredient] = []


class RecipeDetail(RecipeSummary):
    """Full recipe with instructions and structured steps."""
    instructions: str = ""
    steps: List[RecipeStep] = []


# ---------------------------------------------------------------------------
# Users (read-only to the planner)
# ---------------------------------------------------------------------------

class DietaryPreferences(BaseModel):
    """Dietary profile used to build catalog queries."""
    diets: List[str] = []
    allergies: List[str] = []
    intolerances: List[str] = []
    preferred_ingredients: List[str] = []
    avoided_ingredients: List[str] = []
    max_prep_time: Optional[int] = None
    preferred_methods: List[str] = []
    low_in: List[str] = []  # nutrients to keep low, e.g. "sodium"
    equipment: List[str] = []


class PantryItem(WireModel):
    """Inventory entry of a user's pantry."""
    ingredient_id: str = Field(alias="ingredientId")
    name: str
    category: str = ShoppingConstants.DEFAULT_CATEGORY
    quantity: float = 0.0
    unit: str = ""
    storage_location: str = Field(ShoppingConstants.DEFAULT_STORAGE, alias="storageLocation")
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated")


class UserProfile(BaseModel):
    """Snapshot of a user as consumed by plan assembly."""
    id: int
    name: str
    preferences: DietaryPreferences = DietaryPreferences()
    pantry: List[PantryItem] = []


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

class MissingIngredient(WireModel):
    """Shortfall of one recipe ingredient against the pantry."""
    name: str = Field(alias="nombre")
    quantity: float = Field(alias="cantidad")
    unit: str = Field("", alias="unidad")


class ShoppingListItem(WireModel):
    """Consolidated shopping list entry."""
    name: str = Field(alias="nombre")
    quantity: float = Field(alias="cantidad")
    unit: str = Field("", alias="unidad")
    category: str = Field(ShoppingConstants.DEFAULT_CATEGORY, alias="categoria")
    purchased: bool = Field(False, alias="comprado")


class PlannedMeal(WireModel):
    """Recipe assigned to one slot of a day."""
    slot: MealSlot = Field(alias="mealSlot")
    recipe_id: int = Field(alias="recipeId")
    recipe_name: str = Field(alias="recipeName")
    missing_ingredients: List[MissingIngredient] = Field([], alias="missingIngredients")


class PlanDay(WireModel):
    """Single calendar day of a plan."""
    day: date = Field(alias="date")
    meals: List[PlannedMeal] = []


class PlanWeek(BaseModel):
    """Inclusive date range of a plan."""
    start: date
    end: date


class WeeklyPlan(WireModel):
    """Complete plan document."""
    id: int
    user_id: int = Field(alias="userId")
    week: PlanWeek
    state: PlanState
    days: List[PlanDay] = Field([], alias="dias")
    shopping_list: List[ShoppingListItem] = Field([], alias="lista_compras")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ---------------------------------------------------------------------------
# Requests / responses
# ---------------------------------------------------------------------------

class GeneratePlanRequest(WireModel):
    """Body of the plan generation endpoint."""
    days: Optional[int] = Field(None, ge=1)
    start_date: Optional[date] = Field(None, alias="startDate")


class GeneratePlanResponse(WireModel):
    """Accepted plan generation request."""
    plan_id: int = Field(alias="planId")
    state: PlanState
    remaining_budget: float = Field(alias="remainingBudget")
    per_plan_cap: float = Field(alias="perPlanCap")
    estimated_points: Optional[float] = Field(None, alias="estimatedPoints")


class ShoppingListResponse(WireModel):
    """Shopping list of a plan."""
    plan_id: int = Field(alias="planId")
    shopping_list: List[ShoppingListItem] = Field([], alias="lista_compras")


class ShoppingItemUpdate(WireModel):
    """Purchased flag change for one shopping list entry."""
    name: str = Field(alias="nombre", min_length=1)
    purchased: bool = Field(alias="comprado")


class ShoppingListUpdateRequest(WireModel):
    """Body of the shopping list update endpoint."""
    items: List[ShoppingItemUpdate] = Field(min_length=1)


class ShoppingListUpdateResult(WireModel):
    """Outcome of a shopping list update."""
    updated_items: int = Field(alias="updatedItems")
    added_to_pantry: int = Field(alias="addedToPantry")
    not_found: List[str] = Field([], alias="notFound")
