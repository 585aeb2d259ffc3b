"""LLM-backed ingredient line parser.

``parse_ingredients_with_llm`` is a ready-made ``parse_fn`` for
``parse_ingredients_in_batches``: it sends one batch to an OpenAI-style chat
completions proxy and maps the JSON answer to ``ParsedIngredient`` objects.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from recipe_import.app.core.config import get_settings
from recipe_import.app.schemas.ingredient import ParsedIngredient
from recipe_import.app.services.ingredients.batch_parser import validate_ingredient_batch
from recipe_import.app.services.ingredients.formatter import build_ai_ingredient
from recipe_import.app.services.unit_conversion import convert_to_metric

logger = logging.getLogger(__name__)


class IngredientParserError(Exception):
    """Base class for failures of the ingredient parsing service."""


class IngredientParserUnavailable(IngredientParserError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IngredientParserRateLimited(IngredientParserError):
    pass


class IngredientParserResponseError(IngredientParserError):
    pass


def build_batch_prompt(ingredients: List[str]) -> str:
    numbered = "\n".join(f"{i + 1}. {line}" for i, line in enumerate(ingredients))
    return f"""Parse these recipe ingredients into structured JSON. For each ingredient:

1. quantity: numeric value as written, keep ranges like "2-3" and fractions like "1/2"
2. unit: cups, tsp, tbsp, oz, lb, g, ml, kg, l, pinch, clove, can, etc.
3. ingredientName: the ingredient without quantity or unit
4. preparationNotes: text after a comma such as "chopped" or "softened"
5. metricQuantity / metricUnit: metric equivalent when one exists
   (1 lb = 454 g, 1 oz = 28 g, 1 cup = 237 ml, 1 tbsp = 15 ml, 1 tsp = 5 ml);
   null for pinch, dash, clove, sprig, bunch, head, stalk, leaf, slice
6. confidence: 0.85-1.0 for a clear quantity, standard unit and common ingredient;
   0.7-0.84 for ranges, unusual units or complex notes; below 0.7 for vague
   quantities ("some", "a handful") or several ingredients in one line

Ingredients to parse:
{numbered}

Return a JSON array with exactly one object per ingredient, in the same order."""


def _headers() -> Dict[str, str]:
    settings = get_settings()
    if not settings.llm_app_id or not settings.llm_app_key:
        raise ValueError("LLM_APP_ID and LLM_APP_KEY must be set for LLM proxy authentication")
    return {
        "Content-Type": "application/json",
        "X-Jarvis-App-Id": settings.llm_app_id,
        "X-Jarvis-App-Key": settings.llm_app_key,
    }


def _parse_json_array(raw: str) -> List[Any]:
    """Parse the model output, tolerating code fences and wrapper objects."""
    cleaned = raw.strip()
    cleaned = re.sub(r"^```[a-zA-Z0-9_-]*\s*", "", cleaned)
    cleaned = re.sub(r"\s*```$", "", cleaned)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("[")
        end = cleaned.rfind("]")
        if start == -1 or end <= start:
            raise IngredientParserResponseError("LLM response was not valid JSON")
        try:
            data = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as exc:
            raise IngredientParserResponseError("LLM response was not valid JSON") from exc
    if isinstance(data, dict):
        data = data.get("ingredients")
    if not isinstance(data, list):
        raise IngredientParserResponseError("LLM response is not a JSON array")
    return data


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _to_ingredient(original: str, item: Any) -> ParsedIngredient:
    if not isinstance(item, dict):
        raise IngredientParserResponseError("LLM returned a non-object ingredient")
    quantity = _text(item.get("quantity"))
    unit = _text(item.get("unit"))
    metric_quantity = _text(item.get("metricQuantity"))
    metric_unit = _text(item.get("metricUnit"))
    if not (metric_quantity and metric_unit):
        metric_quantity, metric_unit = convert_to_metric(quantity, unit)
    confidence = item.get("confidence")
    if not isinstance(confidence, (int, float)) or isinstance(confidence, bool):
        confidence = None
    return build_ai_ingredient(
        original_text=original,
        ingredient_name=_text(item.get("ingredientName")) or original.strip(),
        quantity=quantity,
        unit=unit,
        preparation_notes=_text(item.get("preparationNotes")),
        metric_quantity=metric_quantity,
        metric_unit=metric_unit,
        confidence=confidence,
    )


async def parse_ingredients_with_llm(ingredients: List[str]) -> List[ParsedIngredient]:
    """Parse one batch of ingredient lines through the LLM proxy."""
    settings = get_settings()
    validation = validate_ingredient_batch(ingredients)
    if not validation.valid:
        raise ValueError(validation.error)
    if len(ingredients) > settings.ingredient_max_batch_size:
        raise ValueError(
            f"Maximum {settings.ingredient_max_batch_size} ingredients per request"
        )
    if not settings.llm_base_url:
        raise ValueError("LLM_BASE_URL is not configured")

    payload = {
        "model": settings.llm_full_model_name,
        "temperature": 0.0,
        "response_format": {"type": "json_object"},
        "messages": [
            {
                "role": "system",
                "content": "You parse recipe ingredient lines. Return ONLY valid JSON.",
            },
            {"role": "user", "content": build_batch_prompt(ingredients)},
        ],
        "stream": False,
    }
    timeout = httpx.Timeout(settings.llm_timeout_seconds, connect=10.0)
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(
                f"{settings.llm_base_url}/v1/chat/completions",
                json=payload,
                headers=_headers(),
            )
    except httpx.TimeoutException as exc:
        logger.warning("LLM ingredient parse timed out after %ss", settings.llm_timeout_seconds)
        raise IngredientParserUnavailable("Ingredient parsing service timed out") from exc
    except httpx.HTTPError as exc:
        logger.warning("LLM ingredient parse request failed: %s", exc)
        raise IngredientParserUnavailable("Failed to connect to ingredient parsing service") from exc

    if resp.status_code == 429:
        raise IngredientParserRateLimited("Rate limit exceeded, please try again later")
    if resp.status_code >= 400:
        logger.warning("LLM proxy returned %s: %s", resp.status_code, resp.text[:500])
        raise IngredientParserUnavailable(
            f"Ingredient parsing service returned {resp.status_code}",
            status_code=resp.status_code,
        )

    try:
        data = resp.json()
    except ValueError as exc:
        raise IngredientParserResponseError("LLM proxy response was not JSON") from exc
    if isinstance(data, dict) and "error" in data:
        error_info = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
        logger.warning(
            "LLM proxy returned error: type=%s, message=%s",
            error_info.get("type", "unknown_error"),
            str(error_info.get("message", ""))[:500],
        )
        raise IngredientParserResponseError(error_info.get("message") or "LLM proxy returned an error")

    content = data.get("choices", [{}])[0].get("message", {}).get("content")
    if not content:
        raise IngredientParserResponseError("LLM response was empty")

    items = _parse_json_array(content)
    if len(items) != len(ingredients):
        raise IngredientParserResponseError(
            f"Expected {len(ingredients)} parsed ingredients, got {len(items)}"
        )
    parsed = [_to_ingredient(original, item) for original, item in zip(ingredients, items)]
    logger.info(
        "LLM parsed %d ingredients (%d need review)",
        len(parsed),
        sum(1 for ing in parsed if ing.requires_manual_review),
    )
    return parsed
