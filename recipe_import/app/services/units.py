"""Canonical unit vocabulary and unit normalization.

Every unit string coming out of an ingredient parser is reduced to one of the
canonical tokens below so formatting and conversion never deal with synonyms.
"""

from enum import Enum
from typing import Dict, Literal, Optional, Tuple, get_args

Unit = Literal[
    "cup",
    "tbsp",
    "tsp",
    "oz",
    "lb",
    "ml",
    "l",
    "g",
    "kg",
    "pinch",
    "dash",
    "clove",
    "whole",
    "can",
    "package",
    "each",
]


class UnitFamily(str, Enum):
    VOLUME_IMPERIAL = "volume_imperial"
    WEIGHT_IMPERIAL = "weight_imperial"
    VOLUME_METRIC = "volume_metric"
    WEIGHT_METRIC = "weight_metric"
    NON_CONVERTIBLE = "non_convertible"


UNIT_FAMILIES: Dict[UnitFamily, Tuple[str, ...]] = {
    UnitFamily.VOLUME_IMPERIAL: ("cup", "tbsp", "tsp"),
    UnitFamily.WEIGHT_IMPERIAL: ("oz", "lb"),
    UnitFamily.VOLUME_METRIC: ("ml", "l"),
    UnitFamily.WEIGHT_METRIC: ("g", "kg"),
    UnitFamily.NON_CONVERTIBLE: ("pinch", "dash", "clove", "whole", "can", "package", "each"),
}

CANONICAL_UNITS: Tuple[str, ...] = get_args(Unit)

_FAMILY_BY_UNIT: Dict[str, UnitFamily] = {
    unit: family for family, units in UNIT_FAMILIES.items() for unit in units
}

UNIT_DISPLAY_LABELS: Dict[str, str] = {
    "cup": "cup",
    "tbsp": "tbsp",
    "tsp": "tsp",
    "oz": "oz",
    "lb": "lb",
    "ml": "mL",
    "l": "L",
    "g": "g",
    "kg": "kg",
    "pinch": "pinch",
    "dash": "dash",
    "clove": "clove",
    "whole": "whole",
    "can": "can",
    "package": "package",
    "each": "each",
}

# Surface forms as they show up in recipes. Lookups are case-folded, so an
# upper-case spelling resolves through its lower-case entry ("T" -> "t" -> tsp).
UNIT_ALIASES: Dict[str, str] = {
    # cup
    "cups": "cup",
    "c": "cup",
    # tablespoon
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "T": "tbsp",
    "tbs": "tbsp",
    # teaspoon
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "t": "tsp",
    # fluid ounce
    "fl oz": "oz",
    "fluid ounce": "oz",
    "fluid ounces": "oz",
    "floz": "oz",
    # larger imperial volumes collapse to ml
    "pint": "ml",
    "pints": "ml",
    "pt": "ml",
    "quart": "ml",
    "quarts": "ml",
    "qt": "ml",
    "gallon": "ml",
    "gallons": "ml",
    "gal": "ml",
    # ounce / pound
    "ounce": "oz",
    "ounces": "oz",
    "pound": "lb",
    "pounds": "lb",
    "lbs": "lb",
    # milliliter / liter
    "milliliter": "ml",
    "milliliters": "ml",
    "mL": "ml",
    "ML": "ml",
    "liter": "l",
    "liters": "l",
    "L": "l",
    # gram / kilogram
    "gram": "g",
    "grams": "g",
    "G": "g",
    "kilogram": "kg",
    "kilograms": "kg",
    "kilo": "kg",
    "kilos": "kg",
    "Kg": "kg",
    "KG": "kg",
    # counts
    "cloves": "clove",
    "dashes": "dash",
    "pinches": "pinch",
    "cans": "can",
    "packages": "package",
    "pkgs": "package",
    "pkg": "package",
    "knob": "whole",
    "knobs": "whole",
    "sprig": "whole",
    "sprigs": "whole",
    "bunch": "whole",
    "bunches": "whole",
    "head": "whole",
    "heads": "whole",
    "stalk": "whole",
    "stalks": "whole",
    "leaf": "whole",
    "leaves": "whole",
    "slice": "whole",
    "slices": "whole",
    "piece": "whole",
    "pieces": "whole",
}


# Lower-case spellings own the folded slot when two aliases collide ("t" vs "T").
_FOLDED_ALIASES: Dict[str, str] = {
    alias: unit for alias, unit in UNIT_ALIASES.items() if alias == alias.lower()
}
for _alias, _unit in UNIT_ALIASES.items():
    _FOLDED_ALIASES.setdefault(_alias.lower(), _unit)


def _lookup(value: Optional[str]) -> Optional[str]:
    raw = (value or "").strip()
    if not raw:
        return None
    token = raw.lower()
    # Canonical spellings win over any alias that folds to the same string.
    if token in CANONICAL_UNITS:
        return token
    return _FOLDED_ALIASES.get(token)


def normalize_unit(value: Optional[str]) -> Unit:
    """Return the canonical unit for ``value``, falling back to ``each``.

    >>> normalize_unit("Cups")
    'cup'
    >>> normalize_unit(None)
    'each'
    """
    return _lookup(value) or "each"  # type: ignore[return-value]


def is_valid_unit(value: Optional[str]) -> bool:
    """True if ``value`` is canonical or has a registered alias."""
    return _lookup(value) is not None


def get_unit_display_label(unit: Unit) -> str:
    return UNIT_DISPLAY_LABELS[unit]


def get_unit_family(unit: Unit) -> UnitFamily:
    return _FAMILY_BY_UNIT[unit]


def is_convertible_unit(unit: Unit) -> bool:
    return get_unit_family(unit) is not UnitFamily.NON_CONVERTIBLE
