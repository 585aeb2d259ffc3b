"""Required-field, optional-field and data quality checks for imported recipes."""

from typing import List, Optional, Tuple
from urllib.parse import urlparse

from recipe_import.app.schemas.errors import (
    RecipeValidationError,
    RecipeValidationWarning,
    create_validation_error,
    create_validation_warning,
)
from recipe_import.app.schemas.recipe import ImportedRecipe


def is_valid_url(url: Optional[str]) -> bool:
    """Absolute http(s) URL with a host; relative paths are rejected."""
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_required_fields(recipe: ImportedRecipe) -> List[RecipeValidationError]:
    errors: List[RecipeValidationError] = []
    if not recipe.name.strip():
        errors.append(
            create_validation_error(
                "missing_required_field",
                "name",
                "Recipe name is required",
                "The name field is empty or missing from the JSON-LD data",
            )
        )
    if not recipe.image.strip():
        errors.append(
            create_validation_error(
                "missing_required_field",
                "image",
                "Recipe image is required",
                "The image field is empty or missing from the JSON-LD data",
            )
        )
    return errors


def validate_optional_fields(recipe: ImportedRecipe) -> List[RecipeValidationWarning]:
    warnings: List[RecipeValidationWarning] = []
    if not recipe.recipe_ingredient:
        warnings.append(
            create_validation_warning("missing_optional_field", "recipeIngredient", "No ingredients found")
        )
    if not recipe.recipe_instructions:
        warnings.append(
            create_validation_warning("missing_optional_field", "recipeInstructions", "No instructions found")
        )
    if not (recipe.recipe_yield or "").strip():
        warnings.append(
            create_validation_warning("missing_optional_field", "recipeYield", "No serving size specified")
        )
    if not (recipe.prep_time or recipe.cook_time or recipe.total_time):
        warnings.append(
            create_validation_warning(
                "missing_optional_field",
                "prepTime,cookTime,totalTime",
                "No timing information found",
            )
        )
    return warnings


def validate_data_quality(recipe: ImportedRecipe) -> List[RecipeValidationWarning]:
    warnings: List[RecipeValidationWarning] = []
    if recipe.image and not is_valid_url(recipe.image):
        warnings.append(create_validation_warning("data_quality", "image", "Image URL may be invalid"))
    ingredient_count = len(recipe.recipe_ingredient)
    if 0 < ingredient_count < 3:
        warnings.append(
            create_validation_warning(
                "data_quality",
                "recipeIngredient",
                f"Only {ingredient_count} ingredient(s) found - recipe may be incomplete",
            )
        )
    if len(recipe.recipe_instructions) == 1:
        warnings.append(
            create_validation_warning(
                "data_quality",
                "recipeInstructions",
                "Only 1 instruction found - recipe may be incomplete",
            )
        )
    if recipe.name and len(recipe.name) < 3:
        warnings.append(create_validation_warning("data_quality", "name", "Recipe name is very short"))
    return warnings


def validate_recipe(
    recipe: ImportedRecipe,
) -> Tuple[List[RecipeValidationError], List[RecipeValidationWarning]]:
    """Run every check. The recipe is valid when the error list is empty."""
    errors = validate_required_fields(recipe)
    warnings = validate_optional_fields(recipe) + validate_data_quality(recipe)
    return errors, warnings


def has_minimum_viable_content(recipe: ImportedRecipe) -> bool:
    return bool(recipe.name.strip() and recipe.image.strip())
