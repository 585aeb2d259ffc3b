"""Field extraction helpers for schema.org Recipe nodes."""

import logging
import re
from datetime import datetime
from typing import Any, List, Optional

from recipe_import.app.schemas.recipe import AggregateRating, ImportedRecipe, RecipeNutrition

logger = logging.getLogger(__name__)


def clean_text(text: Any) -> str:
    """Normalize whitespace in text."""
    if text is None:
        return ""
    return re.sub(r"\s+", " ", str(text)).strip()


def is_recipe_type(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return "Recipe" in node_type
    return node_type == "Recipe"


def _first_recipe(nodes: List[Any]) -> Optional[dict]:
    for node in nodes:
        if is_recipe_type(node):
            return node
    return None


def find_recipe_node(data: Any) -> Optional[dict]:
    """Locate the Recipe node in a JSON-LD document.

    Top-level arrays are searched first, then an ``@graph`` wrapper, then the
    object itself. Nested graphs are not searched.
    """
    if isinstance(data, list):
        return _first_recipe(data)
    if not isinstance(data, dict):
        return None
    graph = data.get("@graph")
    if isinstance(graph, list):
        return _first_recipe(graph)
    if is_recipe_type(data):
        return data
    return None


def get_json_ld_type(data: Any) -> str:
    """Describe what was found instead of a Recipe, for error messages."""
    if isinstance(data, list):
        return "array"
    if isinstance(data, dict):
        node_type = data.get("@type")
        if isinstance(node_type, list):
            return ", ".join(str(t) for t in node_type) or "unknown"
        if node_type:
            return str(node_type)
        if isinstance(data.get("@graph"), list):
            return "@graph without Recipe"
        return "unknown"
    return type(data).__name__ if data is not None else "null"


def extract_image_url(value: Any) -> str:
    """Extract image URL from a string, a list or an ImageObject."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        url = value.get("url")
        return url.strip() if isinstance(url, str) else ""
    if isinstance(value, list) and value:
        first = value[0]
        if isinstance(first, str):
            return first.strip()
        if isinstance(first, dict) and isinstance(first.get("url"), str):
            return first["url"].strip()
    return ""


def _instruction_entries(entry: Any) -> List[str]:
    if isinstance(entry, str):
        return [entry]
    if not isinstance(entry, dict):
        return []
    # HowToSection groups its steps under itemListElement
    items = entry.get("itemListElement")
    if isinstance(items, list) and "text" not in entry:
        steps: List[str] = []
        for item in items:
            steps.extend(_instruction_entries(item))
        return steps
    text = entry.get("text")
    if not isinstance(text, str):
        return []
    name = entry.get("name")
    # Many sites repeat the step text as its name
    if isinstance(name, str) and name.strip() and clean_text(name) != clean_text(text):
        return [f"{name.strip()}: {text}"]
    return [text]


def extract_instructions(value: Any) -> List[str]:
    """Extract step text from strings, HowToStep and HowToSection objects."""
    if isinstance(value, str):
        entries = [value]
    elif isinstance(value, list):
        entries = []
        for entry in value:
            entries.extend(_instruction_entries(entry))
    elif isinstance(value, dict):
        entries = _instruction_entries(value)
    else:
        return []
    return [step for step in (clean_text(e) for e in entries) if step]


def extract_author(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, dict) and isinstance(value.get("name"), str):
        return value["name"].strip() or None
    return None


def ensure_list(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [clean_text(v) for v in value if clean_text(v)]
    return [clean_text(value)] if clean_text(value) else []


def parse_nutrition_value(value: Any) -> Optional[str]:
    """Leading numeric token of a nutrition string: "270 calories" -> "270"."""
    if value is None:
        return None
    match = re.search(r"\d+(?:\.\d+)?|\.\d+", str(value))
    return match.group(0) if match else None


def extract_nutrition(value: Any) -> Optional[RecipeNutrition]:
    if not isinstance(value, dict):
        return None
    calories = parse_nutrition_value(value.get("calories"))
    if calories is None:
        return None
    return RecipeNutrition(calories=calories)


def extract_aggregate_rating(value: Any) -> Optional[AggregateRating]:
    if not isinstance(value, dict):
        return None
    try:
        rating_value = value.get("ratingValue")
        rating_count = value.get("ratingCount")
        rating = AggregateRating(
            rating_value=float(rating_value) if rating_value is not None else None,
            rating_count=int(float(rating_count)) if rating_count is not None else None,
        )
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable aggregateRating: %r", value)
        return None
    if rating.rating_value is None and rating.rating_count is None:
        return None
    return rating


def parse_date_published(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Ignoring unparseable datePublished: %s", value)
        return None


def extract_ingredients(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    ingredients: List[str] = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("text") or item.get("name")
        cleaned = clean_text(item) if isinstance(item, (str, int, float)) else ""
        if cleaned:
            ingredients.append(cleaned)
    return ingredients


def extract_recipe_yield(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None or isinstance(value, bool):
        return None
    text = clean_text(value)
    return text or None


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        return None
    return clean_text(value) or None


def extract_recipe_fields(node: dict, source_url: Optional[str] = None) -> ImportedRecipe:
    """Map a Recipe node to ``ImportedRecipe``. Missing fields get defaults."""
    name = node.get("name")
    return ImportedRecipe(
        name=clean_text(name) if isinstance(name, str) else "",
        image=extract_image_url(node.get("image")),
        image_source="url",
        description=_optional_text(node.get("description")),
        author=extract_author(node.get("author")),
        date_published=parse_date_published(node.get("datePublished")),
        prep_time=_optional_text(node.get("prepTime")),
        cook_time=_optional_text(node.get("cookTime")),
        total_time=_optional_text(node.get("totalTime")),
        recipe_yield=extract_recipe_yield(node.get("recipeYield")),
        recipe_ingredient=extract_ingredients(node.get("recipeIngredient")),
        recipe_instructions=extract_instructions(node.get("recipeInstructions")),
        recipe_category=ensure_list(node.get("recipeCategory")),
        recipe_cuisine=ensure_list(node.get("recipeCuisine")),
        keywords=ensure_list(node.get("keywords")),
        nutrition=extract_nutrition(node.get("nutrition")),
        aggregate_rating=extract_aggregate_rating(node.get("aggregateRating")),
        suitable_for_diet=ensure_list(node.get("suitableForDiet")),
        source_url=source_url,
    )
