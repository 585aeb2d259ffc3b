"""Ingredient parsing package.

Batch orchestration with progress and cancellation, an LLM-backed batch
parser and formatting helpers for parsed ingredients.
"""

from recipe_import.app.services.ingredients.batch_parser import (
    IngredientParsingCancelled,
    calculate_optimal_batch_size,
    chunk,
    create_initial_progress,
    estimate_parsing_time,
    format_progress_percentage,
    format_time_remaining,
    needs_batch_processing,
    parse_ingredients_in_batches,
    validate_ingredient_batch,
)
from recipe_import.app.services.ingredients.formatter import (
    create_manual_parsed_ingredient,
    format_ingredient,
    format_ingredient_for_display,
    format_ingredient_for_storage,
    format_ingredients,
    parse_ingredient_string,
)
from recipe_import.app.services.ingredients.llm_parser import (
    IngredientParserError,
    IngredientParserRateLimited,
    IngredientParserResponseError,
    IngredientParserUnavailable,
    parse_ingredients_with_llm,
)

__all__ = [
    # Batch parsing
    "IngredientParsingCancelled",
    "calculate_optimal_batch_size",
    "chunk",
    "create_initial_progress",
    "estimate_parsing_time",
    "format_progress_percentage",
    "format_time_remaining",
    "needs_batch_processing",
    "parse_ingredients_in_batches",
    "validate_ingredient_batch",
    # Formatting
    "create_manual_parsed_ingredient",
    "format_ingredient",
    "format_ingredient_for_display",
    "format_ingredient_for_storage",
    "format_ingredients",
    "parse_ingredient_string",
    # LLM parser
    "IngredientParserError",
    "IngredientParserRateLimited",
    "IngredientParserResponseError",
    "IngredientParserUnavailable",
    "parse_ingredients_with_llm",
]
