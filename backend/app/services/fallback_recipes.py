"""
Local recipes substituted when the catalog is unreachable.

Local recipes carry negative ids so they never collide with catalog ids:
copies of the lunch recipe count down from -1001, dinner from -2001 and
breakfast from -3001.
"""
from typing import Dict, List

from app.core.constants import MealSlot, MenuConstants, LimitsConstants
from app.db.schema import RecipeDetail, RecipeIngredient, RecipeStep, StepReference

MAX_COPIES = 999

_BASE_IDS: Dict[MealSlot, int] = {
    MealSlot.LUNCH: -1001,
    MealSlot.DINNER: -2001,
    MealSlot.BREAKFAST: -3001,
}


def _ingredients(*entries) -> List[RecipeIngredient]:
    return [RecipeIngredient(name=name, amount=amount, unit=unit) for name, amount, unit in entries]


def _ref(ref_id: int, name: str, image: str) -> StepReference:
    return StepReference(id=ref_id, name=name, localized_name=name, image=image)


LOCAL_RECIPES: Dict[MealSlot, RecipeDetail] = {
    MealSlot.BREAKFAST: RecipeDetail(
        id=_BASE_IDS[MealSlot.BREAKFAST],
        title="Avena con Plátano y Canela",
        ready_in_minutes=10,
        servings=2,
        vegetarian=True,
        vegan=False,
        gluten_free=False,
        dairy_free=False,
        ingredients=_ingredients(
            ("avena", 1, "cup"),
            ("leche", 2, "cups"),
            ("banana", 1, "medium"),
            ("canela", 0.5, "teaspoon"),
            ("miel", 1, "tablespoon"),
        ),
        instructions="Cocinar la avena en la leche. Servir con banana, canela y miel.",
        steps=[
            RecipeStep(
                number=1,
                text="Calentar la leche y cocinar la avena a fuego bajo durante 5 minutos",
                ingredients=[_ref(-5, "avena", "rolled-oats.jpg"), _ref(-6, "leche", "milk.png")],
                equipment=[_ref(-4, "olla", "pot.png")],
            ),
            RecipeStep(
                number=2,
                text="Servir con banana en rodajas, canela y miel",
                ingredients=[_ref(-7, "banana", "bananas.jpg")],
                equipment=[],
            ),
        ],
    ),
    MealSlot.LUNCH: RecipeDetail(
        id=_BASE_IDS[MealSlot.LUNCH],
        title="Ensalada Mediterránea de Quinoa",
        ready_in_minutes=25,
        servings=2,
        vegetarian=True,
        vegan=True,
        gluten_free=True,
        dairy_free=True,
        ingredients=_ingredients(
            ("quinoa", 1, "cup"),
            ("pepino", 1, "medium"),
            ("tomates cherry", 1, "cup"),
            ("cebolla roja", 0.5, "small"),
            ("aceitunas kalamata", 0.5, "cup"),
            ("aceite de oliva", 3, "tablespoons"),
            ("jugo de limón", 2, "tablespoons"),
        ),
        instructions=LimitsConstants.NO_INSTRUCTIONS,
        steps=[
            RecipeStep(
                number=1,
                text="Cocinar quinoa según instrucciones del paquete y dejar enfriar",
                ingredients=[_ref(-1, "quinoa", "quinoa.png")],
                equipment=[_ref(-1, "olla", "pot.png")],
            ),
            RecipeStep(
                number=2,
                text="Picar pepino, tomates y cortar finamente la cebolla roja",
                ingredients=[
                    _ref(-2, "pepino", "cucumber.png"),
                    _ref(-3, "tomates cherry", "cherry-tomatoes.png"),
                    _ref(-4, "cebolla roja", "red-onion.png"),
                ],
                equipment=[
                    _ref(-2, "tabla de cortar", "cutting-board.png"),
                    _ref(-3, "cuchillo de chef", "chefs-knife.png"),
                ],
            ),
        ],
    ),
    MealSlot.DINNER: RecipeDetail(
        id=_BASE_IDS[MealSlot.DINNER],
        title="Salmón con Mantequilla de Ajo y Espárragos",
        ready_in_minutes=25,
        servings=2,
        vegetarian=False,
        vegan=False,
        gluten_free=True,
        dairy_free=False,
        ingredients=_ingredients(
            ("filetes de salmón", 2, "6 oz cada uno"),
            ("espárragos", 1, "manojo"),
            ("mantequilla", 3, "tablespoons"),
            ("ajo", 4, "dientes"),
            ("limón", 1, "medium"),
            ("aceite de oliva", 1, "tablespoon"),
        ),
        instructions=LimitsConstants.NO_INSTRUCTIONS,
        steps=[
            RecipeStep(
                number=1,
                text="Precalentar el horno a 200°C y forrar una bandeja con papel pergamino",
                ingredients=[],
                equipment=[
                    _ref(-9, "horno", "oven.png"),
                    _ref(-10, "bandeja para hornear", "baking-sheet.png"),
                ],
            ),
        ],
    ),
}


def is_local_id(recipe_id: int) -> bool:
    return recipe_id < 0


def local_recipe(slot: MealSlot, copy_index: int = 0) -> RecipeDetail:
    """Local recipe for a slot; copies differ only by id."""
    base = LOCAL_RECIPES[slot]
    if copy_index == 0:
        return base.model_copy(deep=True)
    return base.model_copy(update={"id": base.id - copy_index}, deep=True)


def local_recipe_for_id(recipe_id: int) -> RecipeDetail:
    """Resolve a local (negative) id back to its recipe."""
    for slot in (MealSlot.BREAKFAST, MealSlot.DINNER, MealSlot.LUNCH):
        base_id = _BASE_IDS[slot]
        if base_id - MAX_COPIES < recipe_id <= base_id:
            return local_recipe(slot, base_id - recipe_id)
    return local_recipe(MealSlot.LUNCH)


def fallback_for_catalog_id(recipe_id: int) -> RecipeDetail:
    """Substitute for a catalog recipe whose detail could not be fetched."""
    slot = MealSlot.LUNCH if recipe_id % 2 == 0 else MealSlot.DINNER
    return local_recipe(slot)


def synthesize_batch(slot_hint: str, count: int) -> List[RecipeDetail]:
    """
    Local stand-ins for a whole search batch.
    The main batch alternates lunch and dinner recipes.
    """
    if slot_hint == MenuConstants.BREAKFAST_BATCH:
        return [local_recipe(MealSlot.BREAKFAST, i) for i in range(count)]

    recipes = []
    for i in range(count):
        slot = MealSlot.LUNCH if i % 2 == 0 else MealSlot.DINNER
        recipes.append(local_recipe(slot, i // 2))
    return recipes
