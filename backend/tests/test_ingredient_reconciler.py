"""
Tests for pantry reconciliation of recipe ingredients.
"""
from app.db.schema import RecipeIngredient
from app.services.ingredient_reconciler import compute_missing


def ingredient(name, amount, unit):
    return RecipeIngredient(name=name, amount=amount, unit=unit)


def test_partial_pantry_quantity(pantry_item):
    missing = compute_missing(
        [ingredient("tomate", 5, "kg")],
        [pantry_item("Tomate", 2, "kg")],
    )
    assert len(missing) == 1
    assert missing[0].name == "tomate"
    assert missing[0].quantity == 3
    assert missing[0].unit == "kg"


def test_absent_ingredient_missing_in_full(pantry_item):
    missing = compute_missing(
        [ingredient("harina", 1, "kg")],
        [pantry_item("arroz", 3, "kg")],
    )
    assert [(m.name, m.quantity, m.unit) for m in missing] == [("harina", 1, "kg")]


def test_covered_ingredient_is_skipped(pantry_item):
    missing = compute_missing(
        [ingredient("leche", 1, "l"), ingredient("huevo", 2, "")],
        [pantry_item("LECHE", 1, "litro"), pantry_item("huevo", 6, "")],
    )
    assert missing == []


def test_unit_mismatch_counts_as_absent(pantry_item):
    missing = compute_missing(
        [ingredient("azúcar", 200, "g")],
        [pantry_item("azúcar", 1, "cup")],
    )
    assert missing[0].quantity == 200
    assert missing[0].unit == "g"


def test_quantity_rounded_to_two_decimals(pantry_item):
    missing = compute_missing(
        [ingredient("aceite", 0.3, "l")],
        [pantry_item("aceite", 0.1, "l")],
    )
    assert missing[0].quantity == 0.2


def test_first_name_match_wins(pantry_item):
    missing = compute_missing(
        [ingredient("queso", 3, "kg")],
        [pantry_item("queso", 1, "kg"), pantry_item("Queso", 5, "kg")],
    )
    assert missing[0].quantity == 2


def test_name_match_in_other_unit_is_passed_over(pantry_item):
    missing = compute_missing(
        [ingredient("tomate", 1, "kg")],
        [pantry_item("tomate", 500, "g"), pantry_item("tomate", 2, "kg")],
    )
    assert missing == []
