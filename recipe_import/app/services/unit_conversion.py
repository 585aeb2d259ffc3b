from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Tuple

from recipe_import.app.schemas.ingredient import ParsedIngredient
from recipe_import.app.services.units import UnitFamily, get_unit_family, normalize_unit

GRAMS_PER_UNIT = {
    "oz": Decimal("28.349523125"),
    "lb": Decimal("453.59237"),
}

# Imperial volumes that the alias table folds into a weight or metric unit.
_IMPERIAL_VOLUME_SPELLINGS = frozenset(
    {
        "fl oz",
        "fluid ounce",
        "fluid ounces",
        "floz",
        "pint",
        "pints",
        "pt",
        "quart",
        "quarts",
        "qt",
        "gallon",
        "gallons",
        "gal",
    }
)

# (upper bound, rounding step)
_ROUNDING_STEPS = (
    (Decimal(10), Decimal(1)),
    (Decimal(50), Decimal(5)),
    (Decimal(100), Decimal(10)),
    (Decimal(500), Decimal(25)),
    (Decimal(1000), Decimal(50)),
)


def _to_decimal(value: str) -> Decimal:
    return Decimal(value.strip())


def parse_quantity(raw: Optional[str]) -> Optional[Decimal]:
    """Parse "2", "0.5", "1/2", "1 1/2" or a "2-3" range (midpoint)."""
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None

    # Whole or decimal numbers
    try:
        if "/" not in value and " " not in value and "-" not in value.lstrip("-"):
            number = Decimal(value)
            return number if number.is_finite() else None
    except InvalidOperation:
        return None

    try:
        # Ranges like "2-3"
        if "-" in value and "/" not in value:
            start, end = value.split("-", 1)
            return (_to_decimal(start) + _to_decimal(end)) / 2
        # Fractions like "1/2" or "1 1/2"
        if " " in value:
            whole_part, frac_part = value.split(" ", 1)
            whole = _to_decimal(whole_part)
            num_str, denom_str = frac_part.split("/", 1)
            denom = _to_decimal(denom_str)
            if denom == 0:
                return None
            return whole + (_to_decimal(num_str) / denom)
        if "/" in value:
            num_str, denom_str = value.split("/", 1)
            denom = _to_decimal(denom_str)
            if denom == 0:
                return None
            return _to_decimal(num_str) / denom
    except (InvalidOperation, ValueError):
        return None

    return None


def smart_round(value: Decimal) -> Decimal:
    """Round to a kitchen-friendly step based on magnitude (227 -> 225)."""
    step = Decimal(100)
    for bound, candidate in _ROUNDING_STEPS:
        if value < bound:
            step = candidate
            break
    return (value / step).quantize(Decimal(1), rounding=ROUND_HALF_UP) * step


def format_decimal(value: Decimal) -> str:
    normalized = value.normalize()
    if normalized == normalized.to_integral():
        return str(normalized.quantize(Decimal(1)))
    return format(normalized, "f")


def convert_to_metric(
    quantity: Optional[str], unit: Optional[str]
) -> Tuple[Optional[str], Optional[str]]:
    """Return the (metric_quantity, metric_unit) pair for an ingredient.

    Metric amounts are copied through, imperial weights become grams. Volume
    and count units have no metric pair because recipe ratios matter more than
    exact equivalents.
    """
    if not quantity or not unit:
        return None, None

    if unit.strip().lower() in _IMPERIAL_VOLUME_SPELLINGS:
        return None, None
    canonical = normalize_unit(unit)
    family = get_unit_family(canonical)
    if family in (UnitFamily.VOLUME_METRIC, UnitFamily.WEIGHT_METRIC):
        return quantity.strip(), canonical
    if family is not UnitFamily.WEIGHT_IMPERIAL:
        return None, None

    amount = parse_quantity(quantity)
    if amount is None:
        return None, None
    grams = smart_round(amount * GRAMS_PER_UNIT[canonical])
    return format_decimal(grams), "g"


def with_metric_conversion(ingredient: ParsedIngredient) -> ParsedIngredient:
    """Fill the metric pair when the parser left it empty."""
    if ingredient.metric_quantity and ingredient.metric_unit:
        return ingredient
    metric_quantity, metric_unit = convert_to_metric(ingredient.quantity, ingredient.unit)
    if metric_quantity is None:
        return ingredient
    return ingredient.model_copy(
        update={"metric_quantity": metric_quantity, "metric_unit": metric_unit}
    )
