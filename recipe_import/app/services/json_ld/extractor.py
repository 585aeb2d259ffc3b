"""Parse pasted schema.org Recipe JSON-LD into an ``ImportedRecipe``."""

import logging
import time
from typing import List, Optional

from recipe_import.app.core.config import get_settings
from recipe_import.app.schemas.errors import (
    JsonInvalidSchemaError,
    SizeLimitError,
    ValidationFailedError,
    format_import_error,
)
from recipe_import.app.schemas.recipe import RecipeParseResult
from recipe_import.app.services.json_ld.fields import (
    extract_recipe_fields,
    find_recipe_node,
    get_json_ld_type,
)
from recipe_import.app.services.json_ld.preprocessor import (
    detect_input_format,
    get_byte_size,
    load_json,
    preprocess_json_input,
)
from recipe_import.app.services.json_ld.validator import validate_recipe

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON format. Please check your input."
NO_RECIPE_MESSAGE = "No Recipe schema found in JSON-LD. Please ensure the data contains a Recipe type."


def _elapsed_ms(started: float) -> int:
    return int(round((time.monotonic() - started) * 1000))


def parse_recipe_json_ld(
    json_ld_text: str,
    source_url: Optional[str] = None,
    max_input_bytes: Optional[int] = None,
) -> RecipeParseResult:
    """Parse JSON-LD text and validate the Recipe it contains.

    Malformed input never raises; every failure comes back as an
    unsuccessful ``RecipeParseResult`` with an ``import_error``. When the
    Recipe node is found its fields are always extracted, so a result that
    failed validation still carries the partial recipe.
    """
    started = time.monotonic()
    limit = max_input_bytes or get_settings().json_ld_max_input_bytes

    size = get_byte_size(json_ld_text)
    if size > limit:
        error = SizeLimitError(actual=size, limit=limit, unit="bytes")
        logger.info("Rejected JSON-LD input of %d bytes (limit %d)", size, limit)
        return RecipeParseResult(
            success=False,
            errors=[format_import_error(error)],
            import_error=error,
            parsing_duration_ms=_elapsed_ms(started),
            source_url=source_url,
        )

    data, parse_error = load_json(preprocess_json_input(json_ld_text))
    if parse_error is not None:
        warnings: List[str] = []
        is_escaped, hint = detect_input_format(json_ld_text)
        if is_escaped and hint:
            warnings.append(hint)
            warnings.append("Try copying the raw JSON content instead of the console output.")
        else:
            warnings.append(
                "Make sure you copied the complete JSON structure with all opening and closing brackets."
            )
        return RecipeParseResult(
            success=False,
            errors=[INVALID_JSON_MESSAGE],
            warnings=warnings,
            import_error=parse_error,
            parsing_duration_ms=_elapsed_ms(started),
            source_url=source_url,
        )

    node = find_recipe_node(data)
    if node is None:
        found = get_json_ld_type(data)
        logger.info("JSON-LD contained no Recipe node (found %s)", found)
        return RecipeParseResult(
            success=False,
            errors=[NO_RECIPE_MESSAGE],
            import_error=JsonInvalidSchemaError(
                message="No Recipe schema found in JSON-LD",
                received_type=found,
            ),
            parsing_duration_ms=_elapsed_ms(started),
            source_url=source_url,
        )

    recipe = extract_recipe_fields(node, source_url=source_url)
    validation_errors, validation_warnings = validate_recipe(recipe)
    duration = _elapsed_ms(started)
    logger.debug(
        "Parsed JSON-LD recipe %r: %d errors, %d warnings in %dms",
        recipe.name,
        len(validation_errors),
        len(validation_warnings),
        duration,
    )
    return RecipeParseResult(
        success=not validation_errors,
        recipe=recipe,
        errors=[e.message for e in validation_errors],
        warnings=[w.message for w in validation_warnings],
        validation_errors=validation_errors,
        validation_warnings=validation_warnings,
        import_error=ValidationFailedError(errors=validation_errors) if validation_errors else None,
        parsing_duration_ms=duration,
        source_url=source_url,
    )


def get_json_ld_extraction_instructions(url: Optional[str] = None) -> str:
    """Step-by-step instructions for copying JSON-LD out of a recipe page."""
    first_step = f"1. Open {url} in your browser" if url else "1. Open the recipe webpage in your browser"
    return f"""{first_step}
2. Open browser DevTools (F12 or right-click, then Inspect)
3. Go to the Console tab
4. Paste this code and press Enter:

```javascript
// For most sites (single JSON-LD script):
copy(JSON.parse(document.querySelector('script[type="application/ld+json"]').textContent))

// For sites with multiple JSON-LD scripts:
copy(Array.from(document.querySelectorAll('script[type="application/ld+json"]'))
  .map(s => JSON.parse(s.textContent))
  .find(obj => obj['@type'] === 'Recipe' || obj['@graph']?.find(g => g['@type'] === 'Recipe')))
```

5. The JSON will be copied to your clipboard
6. Paste it in the text area below

The parser accepts raw JSON, escaped JSON from console output and JSON wrapped in backticks."""
