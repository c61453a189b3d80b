"""
Unit normalization for ingredient quantities.
Simple hard-coded aliases; quantities are never converted between units.
"""

# Aliases mapped to a standard spelling
UNIT_ALIASES = {
    "g": "g", "gr": "g", "gram": "g", "grams": "g", "gramo": "g", "gramos": "g",
    "kg": "kg", "kilo": "kg", "kilos": "kg", "kilogram": "kg", "kilograms": "kg",
    "kilogramo": "kg", "kilogramos": "kg",
    "ml": "ml", "milliliter": "ml", "milliliters": "ml", "mililitro": "ml", "mililitros": "ml",
    "l": "l", "liter": "l", "liters": "l", "litre": "l", "litres": "l", "litro": "l", "litros": "l",
    "cup": "cup", "cups": "cup", "taza": "cup", "tazas": "cup",
    "tbsp": "tbsp", "tablespoon": "tbsp", "tablespoons": "tbsp", "cucharada": "tbsp", "cucharadas": "tbsp",
    "tsp": "tsp", "teaspoon": "tsp", "teaspoons": "tsp", "cucharadita": "tsp", "cucharaditas": "tsp",
    "oz": "oz", "ounce": "oz", "ounces": "oz",
    "lb": "lb", "lbs": "lb", "pound": "lb", "pounds": "lb",
    "piece": "piece", "pieces": "piece", "whole": "piece", "unidad": "piece", "unidades": "piece",
    "pieza": "piece", "piezas": "piece",
}


def normalize_unit(unit: str) -> str:
    """Normalize unit name to a standard form; unknown units are only lowercased."""
    if not unit:
        return ""

    unit_lower = unit.lower().strip()
    return UNIT_ALIASES.get(unit_lower, unit_lower)


def units_compatible(first: str, second: str) -> bool:
    """
    True when two quantities can be compared directly.
    A missing unit on either side is treated as matching.
    """
    first_norm = normalize_unit(first)
    second_norm = normalize_unit(second)
    if not first_norm or not second_norm:
        return True
    return first_norm == second_norm
