"""
Client for the external recipe catalog (Spoonacular-compatible API).

Every live call is paid from the shared point budget and results are cached.
Once the budget for a call is secured, catalog failures never reach the
caller: local recipes are substituted instead.
"""
import random
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from app.core.base_client import BaseHTTPClient
from app.core.config import Settings
from app.core.constants import MenuConstants, LimitsConstants
from app.core.exceptions import BudgetExhausted, CatalogUnavailable
from app.core.logging import get_logger
from app.db.schema import (
    DietaryPreferences,
    RecipeDetail,
    RecipeIngredient,
    RecipeStep,
    RecipeSummary,
    StepReference,
    UserProfile,
)
from app.services.fallback_recipes import (
    fallback_for_catalog_id,
    is_local_id,
    local_recipe_for_id,
    synthesize_batch,
)
from app.services.rate_budget import RateBudgetTracker
from app.services.recipe_cache import ResultCache
from app.utils.json_parser import dict_list
from app.utils.text_cleaning import clean_html, slugify

logger = get_logger("core.catalog_client")


def build_search_params(preferences: DietaryPreferences) -> Dict[str, Any]:
    """
    Map dietary preferences to catalog search filters.
    Only preferences that are set produce a parameter.
    """
    params: Dict[str, Any] = {}

    if preferences.diets:
        params["diet"] = ",".join(preferences.diets)

    intolerances = preferences.allergies + preferences.intolerances
    if intolerances:
        params["intolerances"] = ",".join(intolerances)

    if preferences.preferred_ingredients:
        params["includeIngredients"] = ",".join(preferences.preferred_ingredients)
    if preferences.avoided_ingredients:
        params["excludeIngredients"] = ",".join(preferences.avoided_ingredients)

    if preferences.max_prep_time:
        params["maxReadyTime"] = preferences.max_prep_time

    if preferences.preferred_methods:
        params["tags"] = ",".join(slugify(m) for m in preferences.preferred_methods)

    if preferences.low_in:
        params["requirements"] = ",".join(f"low-{n.lower()}" for n in preferences.low_in)

    if preferences.equipment:
        params["equipment"] = ",".join(slugify(e) for e in preferences.equipment)

    return params


class RecipeCatalogClient(BaseHTTPClient):
    """Budget-aware, cached access to catalog search and detail endpoints."""

    def __init__(
        self,
        budget: RateBudgetTracker,
        cache: ResultCache,
        api_keys: Optional[List[str]] = None,
        key_policy: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today: Callable[[], date] = date.today,
        rng: Optional[random.Random] = None,
        settings: Optional[Settings] = None
    ):
        super().__init__(timeout=timeout, transport=transport, settings=settings)
        self.budget = budget
        self.cache = cache
        self.api_keys = api_keys if api_keys is not None else self.settings.api_keys
        self.key_policy = key_policy or self.settings.catalog_key_policy
        self.base_url = (base_url or self.settings.catalog_base_url).rstrip("/")
        self._today = today
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Cost model
    # ------------------------------------------------------------------

    def estimate_search_points(self, count: int) -> float:
        return self.settings.search_base_points + self.settings.search_points_per_item * count

    def estimate_plan_points(self, day_count: int) -> float:
        """Worst-case cost of a plan: both searches and every detail on cold caches."""
        slots = day_count * MenuConstants.SLOTS_PER_DAY
        return (
            self.estimate_search_points(day_count)
            + self.estimate_search_points(slots - day_count)
            + self.settings.detail_points * slots
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_recipes_for_slot(
        self,
        profile: UserProfile,
        slot_hint: str,
        count: int
    ) -> Tuple[List[RecipeSummary], float]:
        """
        Get `count` recipes for a batch of slots.

        Args:
            profile: User whose preferences filter the search
            slot_hint: MenuConstants.BREAKFAST_BATCH or MenuConstants.MAIN_BATCH
            count: Number of recipes wanted

        Returns:
            (recipes, points spent). Cached and local results cost 0 points.

        Raises:
            BudgetExhausted: If the search cannot be paid for.
        """
        cache_key = self.cache.search_key(profile.id, self._today(), slot_hint)
        cached = self.cache.search.get(cache_key) or []
        if len(cached) >= count:
            logger.info(f"[CACHE] Using {count} cached recipes for '{slot_hint}' batch of user {profile.id}")
            return [recipe.model_copy(deep=True) for recipe in cached[:count]], 0

        params = build_search_params(profile.preferences)
        params.update({
            "addRecipeInformation": True,
            "fillIngredients": True,
            "instructionsRequired": True,
            "number": count,
        })
        meal_type = MenuConstants.CATALOG_MEAL_TYPES.get(slot_hint)
        if meal_type:
            params["type"] = meal_type

        estimated_points = self.estimate_search_points(count)
        if not self.budget.try_consume(estimated_points):
            raise BudgetExhausted(
                f"Not enough points to search {count} recipes for '{slot_hint}'",
                {"requested": estimated_points, "remaining": self.budget.remaining},
            )

        try:
            logger.info(f"[API] Searching {count} recipes for '{slot_hint}' batch of user {profile.id}")
            recipes = await self._fetch_search(params)
        except CatalogUnavailable as e:
            logger.warning(f"Catalog search failed, using local recipes for '{slot_hint}': {e}")
            return synthesize_batch(slot_hint, count), 0

        self.cache.search.set(cache_key, recipes)
        return recipes, estimated_points

    async def _fetch_search(self, params: Dict[str, Any]) -> List[RecipeSummary]:
        data = await self._call(f"{self.base_url}/complexSearch", params)
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise CatalogUnavailable("Search response has no results list")
        try:
            return [self._parse_summary(item) for item in dict_list(results)]
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogUnavailable(f"Malformed search result: {e}") from e

    # ------------------------------------------------------------------
    # Detail
    # ------------------------------------------------------------------

    async def get_recipe_detail(self, recipe_id: int) -> RecipeDetail:
        """
        Get full recipe detail.

        Local ids resolve without a call. A failing catalog call yields a local
        recipe, which is cached under the requested id so the call is not retried.

        Raises:
            BudgetExhausted: If the detail call cannot be paid for.
        """
        if is_local_id(recipe_id):
            return local_recipe_for_id(recipe_id)

        cache_key = self.cache.detail_key(recipe_id)
        cached = self.cache.detail.get(cache_key)
        if cached is not None:
            logger.info(f"[CACHE] Recipe {recipe_id} served from cache")
            return cached.model_copy(deep=True)

        detail_points = self.settings.detail_points
        if not self.budget.try_consume(detail_points):
            raise BudgetExhausted(
                f"Not enough points to fetch recipe {recipe_id}",
                {"requested": detail_points, "remaining": self.budget.remaining},
            )

        try:
            data = await self._call(
                f"{self.base_url}/{recipe_id}/information",
                {"includeNutrition": False},
            )
            detail = self._parse_detail(data)
            logger.info(f"[API] Recipe {recipe_id} stored in cache")
        except CatalogUnavailable as e:
            logger.error(f"Error fetching recipe {recipe_id}, using local recipe: {e}")
            detail = fallback_for_catalog_id(recipe_id)

        self.cache.detail.set(cache_key, detail)
        return detail.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _pick_key(self) -> Optional[str]:
        if not self.api_keys:
            return None
        if self.key_policy == "first":
            return self.api_keys[0]
        return self._rng.choice(self.api_keys)

    async def _call(self, url: str, params: Dict[str, Any]) -> Any:
        """GET against the catalog; every failure becomes CatalogUnavailable."""
        query = dict(params)
        api_key = self._pick_key()
        if api_key:
            query["apiKey"] = api_key
        try:
            return await self._get_json(url, query, log_prefix="Catalog")
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogUnavailable(str(e) or e.__class__.__name__) from e

    @staticmethod
    def _parse_ingredient(raw: Dict[str, Any], prefer_clean_name: bool) -> RecipeIngredient:
        name = raw.get("nameClean") if prefer_clean_name else None
        return RecipeIngredient(
            name=name or raw.get("name") or raw.get("original") or "",
            amount=float(raw.get("amount") or 0),
            unit=raw.get("unit") or "",
        )

    @classmethod
    def _parse_summary(cls, raw: Dict[str, Any]) -> RecipeSummary:
        listed = dict_list(raw.get("missedIngredients")) + dict_list(raw.get("usedIngredients"))
        if not listed:
            listed = dict_list(raw.get("extendedIngredients"))

        return RecipeSummary(
            id=int(raw["id"]),
            title=raw.get("title") or "",
            image=raw.get("image") or "",
            ready_in_minutes=raw.get("readyInMinutes"),
            servings=raw.get("servings"),
            source_url=raw.get("sourceUrl"),
            vegetarian=raw.get("vegetarian"),
            vegan=raw.get("vegan"),
            gluten_free=raw.get("glutenFree"),
            dairy_free=raw.get("dairyFree"),
            ingredients=[cls._parse_ingredient(ing, prefer_clean_name=False) for ing in listed],
        )

    @staticmethod
    def _parse_reference(raw: Dict[str, Any]) -> StepReference:
        return StepReference(
            id=raw.get("id"),
            name=raw.get("name") or "",
            localized_name=raw.get("localizedName"),
            image=raw.get("image"),
        )

    @classmethod
    def _parse_detail(cls, raw: Any) -> RecipeDetail:
        if not isinstance(raw, dict):
            raise CatalogUnavailable("Detail response is not an object")

        try:
            steps = []
            blocks = dict_list(raw.get("analyzedInstructions"))
            if blocks:
                for step in dict_list(blocks[0].get("steps")):
                    steps.append(RecipeStep(
                        number=int(step.get("number") or len(steps) + 1),
                        text=step.get("step") or "",
                        ingredients=[cls._parse_reference(i) for i in dict_list(step.get("ingredients"))],
                        equipment=[cls._parse_reference(e) for e in dict_list(step.get("equipment"))],
                    ))

            return RecipeDetail(
                id=int(raw["id"]),
                title=raw.get("title") or "",
                image=raw.get("image") or "",
                ready_in_minutes=raw.get("readyInMinutes"),
                servings=raw.get("servings"),
                source_url=raw.get("sourceUrl"),
                vegetarian=raw.get("vegetarian"),
                vegan=raw.get("vegan"),
                gluten_free=raw.get("glutenFree"),
                dairy_free=raw.get("dairyFree"),
                ingredients=[
                    cls._parse_ingredient(ing, prefer_clean_name=True)
                    for ing in dict_list(raw.get("extendedIngredients"))
                ],
                instructions=clean_html(raw.get("instructions") or "") or LimitsConstants.NO_INSTRUCTIONS,
                steps=steps,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogUnavailable(f"Malformed recipe detail: {e}") from e
