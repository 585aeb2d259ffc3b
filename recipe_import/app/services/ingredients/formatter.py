"""Ingredient formatting utilities.

Renders parsed ingredients for display and storage, and reverse-parses
hand-edited lines back into a low-confidence structure.
"""

import re
from typing import Dict, List, Literal, Optional

from recipe_import.app.core.config import get_settings
from recipe_import.app.schemas.ingredient import ParsedIngredient
from recipe_import.app.services.units import normalize_unit

HIGH_CONFIDENCE = 0.85
MEDIUM_CONFIDENCE = 0.70
MANUAL_FALLBACK_CONFIDENCE = 0.5

_INGREDIENT_LINE_RE = re.compile(r"^([\d\s/.-]+)?\s*([a-zA-Z]+)?\s+(.+)$")

FormatStyle = Literal["display", "storage"]


def format_ingredient(
    ingredient: ParsedIngredient,
    include_metric: bool = False,
    include_preparation: bool = True,
    style: FormatStyle = "display",
) -> str:
    """Format a parsed ingredient back into one line.

    Missing pieces are skipped without leaving stray separators, e.g.
    "2 cups (240g) all-purpose flour, sifted" with ``include_metric=True``.
    Storage style never carries the metric parenthetical.
    """
    parts: List[str] = []
    if ingredient.quantity:
        parts.append(ingredient.quantity)
    if ingredient.unit:
        parts.append(ingredient.unit)
    if style == "display" and include_metric and ingredient.metric_quantity and ingredient.metric_unit:
        parts.append(f"({ingredient.metric_quantity}{ingredient.metric_unit})")
    if ingredient.ingredient_name:
        parts.append(ingredient.ingredient_name)

    formatted = " ".join(part.strip() for part in parts if part.strip())
    if include_preparation and ingredient.preparation_notes:
        formatted = f"{formatted}, {ingredient.preparation_notes}" if formatted else ingredient.preparation_notes
    return formatted


def format_ingredients(
    ingredients: List[ParsedIngredient],
    include_metric: bool = False,
    include_preparation: bool = True,
) -> List[str]:
    return [
        format_ingredient(
            ingredient,
            include_metric=include_metric,
            include_preparation=include_preparation,
        )
        for ingredient in ingredients
    ]


def format_ingredient_for_display(ingredient: ParsedIngredient) -> str:
    return format_ingredient(
        ingredient, include_metric=True, include_preparation=True, style="display"
    )


def format_ingredient_for_storage(ingredient: ParsedIngredient) -> str:
    """Storage string for an ingredient.

    Lines written by a person are stored exactly as typed; only AI output is
    rebuilt from its parts.
    """
    if ingredient.parsing_method in ("manual", "user"):
        return ingredient.original_text
    return format_ingredient(
        ingredient, include_metric=False, include_preparation=True, style="storage"
    )


def format_metric_conversion(ingredient: ParsedIngredient) -> Optional[str]:
    if not ingredient.metric_quantity or not ingredient.metric_unit:
        return None
    return f"{ingredient.metric_quantity}{ingredient.metric_unit}"


def format_confidence_label(confidence: float) -> str:
    if confidence >= HIGH_CONFIDENCE:
        return "High"
    if confidence >= MEDIUM_CONFIDENCE:
        return "Medium"
    return "Low"


def get_confidence_badge_color(confidence: float) -> str:
    return {"High": "green", "Medium": "yellow", "Low": "red"}[format_confidence_label(confidence)]


def parse_ingredient_string(text: str) -> Dict[str, object]:
    """Best-effort split of a hand-typed line into ingredient fields.

    Only the first comma separates the preparation notes. The result is
    always flagged for review at ``MANUAL_FALLBACK_CONFIDENCE``; use
    ``create_manual_parsed_ingredient`` for lines a person vouches for.
    """
    main_part, _, notes = text.partition(",")
    main_part = main_part.strip()
    preparation_notes = notes.strip() or None

    quantity: Optional[str] = None
    unit: Optional[str] = None
    ingredient_name = main_part
    match = _INGREDIENT_LINE_RE.match(main_part)
    if match:
        quantity = (match.group(1) or "").strip() or None
        unit = (match.group(2) or "").strip() or None
        ingredient_name = match.group(3).strip()

    return {
        "original_text": text,
        "quantity": quantity,
        "unit": unit,
        "ingredient_name": ingredient_name,
        "preparation_notes": preparation_notes,
        "metric_quantity": None,
        "metric_unit": None,
        "confidence": MANUAL_FALLBACK_CONFIDENCE,
        "requires_manual_review": True,
        "parsing_method": "manual",
    }


def create_manual_parsed_ingredient(text: str) -> ParsedIngredient:
    """Build a trusted ingredient from a line a person typed."""
    fields = parse_ingredient_string(text)
    fields.update(
        {
            "original_text": text,
            "ingredient_name": fields["ingredient_name"] or text,
            "confidence": 1.0,
            "requires_manual_review": False,
            "parsing_method": "manual",
        }
    )
    return ParsedIngredient(**fields)


def build_ai_ingredient(
    original_text: str,
    ingredient_name: str,
    quantity: Optional[str] = None,
    unit: Optional[str] = None,
    preparation_notes: Optional[str] = None,
    metric_quantity: Optional[str] = None,
    metric_unit: Optional[str] = None,
    confidence: Optional[float] = None,
) -> ParsedIngredient:
    """Build an AI-parsed ingredient, flagging low confidence for review."""
    settings = get_settings()
    if confidence is None:
        confidence = settings.ingredient_default_confidence
    confidence = min(max(float(confidence), 0.0), 1.0)
    if not (metric_quantity and metric_unit):
        metric_quantity = metric_unit = None
    return ParsedIngredient(
        original_text=original_text,
        quantity=quantity or None,
        unit=unit or None,
        ingredient_name=ingredient_name,
        preparation_notes=preparation_notes or None,
        metric_quantity=metric_quantity,
        metric_unit=metric_unit,
        confidence=confidence,
        parsing_method="ai",
        requires_manual_review=confidence < settings.ingredient_confidence_threshold,
    )


def normalize_ingredient_unit(ingredient: ParsedIngredient) -> ParsedIngredient:
    """Replace the raw unit with its canonical token. Missing units stay missing."""
    if not ingredient.unit:
        return ingredient
    return ingredient.model_copy(update={"unit": normalize_unit(ingredient.unit)})


def has_metric_conversion(ingredient: ParsedIngredient) -> bool:
    return bool(ingredient.metric_quantity and ingredient.metric_unit)


def has_preparation_notes(ingredient: ParsedIngredient) -> bool:
    return bool(ingredient.preparation_notes)


def group_ingredients_by_method(
    ingredients: List[ParsedIngredient],
) -> Dict[str, List[ParsedIngredient]]:
    groups: Dict[str, List[ParsedIngredient]] = {}
    for ingredient in ingredients:
        groups.setdefault(ingredient.parsing_method, []).append(ingredient)
    return groups


def get_ingredients_needing_review(ingredients: List[ParsedIngredient]) -> List[ParsedIngredient]:
    return [ingredient for ingredient in ingredients if ingredient.requires_manual_review]
