"""Schema.org Recipe JSON-LD import package.

Accepts JSON-LD pasted by a user (raw, escaped console output or wrapped in
code fences) or a saved HTML page, and returns a validated recipe.
"""

from recipe_import.app.services.json_ld.extractor import (
    get_json_ld_extraction_instructions,
    parse_recipe_json_ld,
)
from recipe_import.app.services.json_ld.fields import (
    extract_recipe_fields,
    find_recipe_node,
    get_json_ld_type,
    is_recipe_type,
)
from recipe_import.app.services.json_ld.html import find_json_ld_blocks, parse_recipe_html
from recipe_import.app.services.json_ld.preprocessor import (
    detect_input_format,
    get_byte_size,
    is_within_size_limit,
    load_json,
    preprocess_json_input,
)
from recipe_import.app.services.json_ld.validator import (
    has_minimum_viable_content,
    is_valid_url,
    validate_recipe,
)

__all__ = [
    # Parsing
    "parse_recipe_json_ld",
    "parse_recipe_html",
    "find_json_ld_blocks",
    "get_json_ld_extraction_instructions",
    # Field extraction
    "extract_recipe_fields",
    "find_recipe_node",
    "get_json_ld_type",
    "is_recipe_type",
    # Preprocessing
    "detect_input_format",
    "get_byte_size",
    "is_within_size_limit",
    "load_json",
    "preprocess_json_input",
    # Validation
    "has_minimum_viable_content",
    "is_valid_url",
    "validate_recipe",
]
