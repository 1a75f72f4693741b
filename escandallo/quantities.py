"""
Quantity parsing, formatting and unit conversion.

Quantities are typed by hand in the recipe editor, so parsing accepts either
decimal separator ("1,5" or "1.5") and never raises: unparseable text is 0.
Conversion only knows metric mass and volume; anything else is returned
unconverted.
"""

import math
import re
from typing import Optional, Union

# Leading numeric literal, the way a float prefix parser reads it
_NUMBER_PREFIX = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')

_MASS_GRAMS = {"g", "gramos"}
_MASS_KILOGRAMS = {"kg", "kilogramos"}

_LITRES = {"l", "litro", "litros"}
_DECILITRES = {"dl", "decilitro"}
_CENTILITRES = {"cl", "centilitro"}
_VOLUME_UNITS = _LITRES | _DECILITRES | _CENTILITRES | {"ml", "mililitro"}


def parse_quantity_strict(value) -> Optional[float]:
    """
    Parse a quantity, returning None when there is no leading number.

    The first comma is read as the decimal separator and trailing text is
    ignored ("500g" -> 500.0, "1,5 kg" -> 1.5).

    Args:
        value: Text (or number) typed by the user

    Returns:
        Parsed float or None
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return None if math.isnan(value) else float(value)

    normalized = str(value).replace(",", ".", 1)
    match = _NUMBER_PREFIX.match(normalized)
    if not match:
        return None
    return float(match.group(1))


def parse_quantity(value) -> float:
    """Parse a quantity string with comma or dot decimals; 0 when unparseable."""
    if not value:
        return 0.0
    parsed = parse_quantity_strict(value)
    return 0.0 if parsed is None else parsed


def format_quantity(value: Optional[float]) -> str:
    """
    Format a quantity for display with a decimal comma.

    Integers print bare, values below 1 with 3 decimals, the rest with 2.
    Missing or non-finite values print as an empty string.

    Examples:
        0.5 -> "0,500", 2 -> "2", 1.25 -> "1,25"
    """
    if value is None or isinstance(value, bool):
        return ""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    if not math.isfinite(number):
        return ""

    if number % 1 == 0:
        text = str(int(number))
    else:
        text = f"{number:.{3 if abs(number) < 1 else 2}f}"
    return text.replace(".", ",", 1)


def _to_millilitres(quantity: float, unit: str) -> float:
    if unit in _LITRES:
        return quantity * 1000
    if unit in _DECILITRES:
        return quantity * 100
    if unit in _CENTILITRES:
        return quantity * 10
    return quantity  # ml


def _from_millilitres(millilitres: float, unit: str) -> float:
    if unit in _LITRES:
        return millilitres / 1000
    if unit in _DECILITRES:
        return millilitres / 100
    if unit in _CENTILITRES:
        return millilitres / 10
    return millilitres


def convert_unit(quantity: float, from_unit: Optional[str], to_unit: Optional[str]) -> float:
    """
    Convert a quantity between metric mass or volume units.

    Unit symbols are case-insensitive and accept Spanish spellings
    ("gramos", "litros", ...). Same, empty, unknown or cross-class units
    return the quantity unchanged.

    Args:
        quantity: Amount expressed in from_unit
        from_unit: Source unit symbol
        to_unit: Target unit symbol

    Returns:
        Amount expressed in to_unit
    """
    source = (from_unit or "").lower()
    target = (to_unit or "").lower()
    if source == target or not source or not target:
        return quantity

    # Mass
    if source in _MASS_GRAMS and target in _MASS_KILOGRAMS:
        return quantity / 1000
    if source in _MASS_KILOGRAMS and target in _MASS_GRAMS:
        return quantity * 1000

    # Volume, through millilitres
    if source in _VOLUME_UNITS and target in _VOLUME_UNITS:
        return _from_millilitres(_to_millilitres(quantity, source), target)

    return quantity


def calculate_ingredient_cost(quantity: Union[str, float], price_per_unit: Optional[float]) -> float:
    """Cost of an ingredient line; 0 without a price or a usable quantity."""
    if isinstance(quantity, str):
        qty = parse_quantity(quantity)
    else:
        qty = quantity
    if qty is None or (isinstance(qty, float) and math.isnan(qty)) or not price_per_unit:
        return 0.0
    return qty * price_per_unit


def pax_ratio(pax: float, yield_quantity: Optional[float]) -> float:
    """Scaling factor from a recipe's base yield to ``pax`` covers (yield 0 counts as 1)."""
    return pax / (yield_quantity or 1)


def scale_quantity_text(value: str, ratio: float) -> str:
    """
    Scale a quantity string for display.

    Text without a leading number ("al gusto") is returned unchanged.
    """
    parsed = parse_quantity_strict(value)
    if parsed is None:
        return value
    return format_quantity(parsed * ratio)
