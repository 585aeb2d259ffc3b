"""Error types for recipe import.

``RecipeImportError`` is a closed union discriminated on ``type``. Every
variant has its own fixed shape; new failure modes get a new variant.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from recipe_import.app.schemas.ingredient import ParsedIngredient


class RecipeValidationError(BaseModel):
    """Field-level finding that blocks the import."""

    type: Literal["missing_required_field", "invalid_format", "schema_mismatch"]
    field: Optional[str] = None
    message: str
    details: Optional[str] = None
    severity: Literal["error"] = "error"

    model_config = ConfigDict(frozen=True)


class RecipeValidationWarning(BaseModel):
    """Field-level finding shown to the user without blocking the import."""

    type: Literal["missing_optional_field", "low_confidence", "data_quality"]
    field: Optional[str] = None
    message: str
    actionable: bool = True
    severity: Literal["warning"] = "warning"

    model_config = ConfigDict(frozen=True)


class _ImportErrorBase(BaseModel):
    model_config = ConfigDict(frozen=True)


class JsonParseError(_ImportErrorBase):
    type: Literal["json_parse"] = "json_parse"
    message: str
    details: str = ""
    line: Optional[int] = None
    column: Optional[int] = None


class JsonInvalidSchemaError(_ImportErrorBase):
    type: Literal["json_invalid_schema"] = "json_invalid_schema"
    message: str
    received_type: str
    expected_type: Literal["Recipe"] = "Recipe"


class ValidationFailedError(_ImportErrorBase):
    type: Literal["validation"] = "validation"
    errors: List[RecipeValidationError]


class IngredientParseError(_ImportErrorBase):
    type: Literal["ingredient_parse"] = "ingredient_parse"
    failed_ingredients: List[str]
    partial_results: List[ParsedIngredient] = Field(default_factory=list)
    original_error: Exception

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class NetworkError(_ImportErrorBase):
    type: Literal["network"] = "network"
    message: str
    retryable: bool
    status_code: Optional[int] = None


class SizeLimitError(_ImportErrorBase):
    type: Literal["size_limit"] = "size_limit"
    actual: int
    limit: int
    unit: Literal["bytes", "ingredients"]


class OperationTimeoutError(_ImportErrorBase):
    type: Literal["timeout"] = "timeout"
    operation: str
    timeout_ms: int


RecipeImportError = Annotated[
    Union[
        JsonParseError,
        JsonInvalidSchemaError,
        ValidationFailedError,
        IngredientParseError,
        NetworkError,
        SizeLimitError,
        OperationTimeoutError,
    ],
    Field(discriminator="type"),
]


def create_validation_error(
    error_type: str, field: str, message: str, details: Optional[str] = None
) -> RecipeValidationError:
    return RecipeValidationError(type=error_type, field=field, message=message, details=details)


def create_validation_warning(
    warning_type: str, field: str, message: str, actionable: bool = True
) -> RecipeValidationWarning:
    return RecipeValidationWarning(type=warning_type, field=field, message=message, actionable=actionable)


_RECOVERABLE = {
    "json_parse": True,
    "json_invalid_schema": False,
    "validation": True,
    "ingredient_parse": True,
    "network": True,
    "size_limit": False,
    "timeout": True,
}


def is_recoverable_error(error: RecipeImportError) -> bool:
    """Whether the user can retry or continue after this error.

    A non-retryable network error is still recoverable; it just comes
    without a suggestion.
    """
    return _RECOVERABLE.get(error.type, False)


def format_import_error(error: RecipeImportError) -> str:
    """Render a single user-facing sentence for an import error."""
    if error.type == "json_parse":
        if error.line:
            return f"Invalid JSON at line {error.line}: {error.message}"
        return f"Invalid JSON: {error.message}"
    if error.type == "json_invalid_schema":
        return (
            f"Expected Recipe schema but found {error.received_type}. "
            "Make sure you're copying the recipe JSON-LD data."
        )
    if error.type == "validation":
        return "Validation failed: " + ", ".join(e.message for e in error.errors)
    if error.type == "ingredient_parse":
        return (
            f"Failed to parse {len(error.failed_ingredients)} ingredients. "
            f"{len(error.partial_results)} parsed successfully."
        )
    if error.type == "network":
        if error.retryable:
            return f"Network error: {error.message}. Please try again."
        return f"Network error: {error.message}"
    if error.type == "size_limit":
        return f"Input too large: {error.actual} {error.unit} (limit: {error.limit} {error.unit})"
    if error.type == "timeout":
        return f"{error.operation} timed out after {error.timeout_ms}ms. Please try again."
    return "An unknown error occurred"


def get_recovery_suggestion(error: RecipeImportError) -> Optional[str]:
    if error.type == "json_parse":
        return (
            "Check the JSON-LD format and try again. Make sure you copied the entire "
            "JSON-LD block from the recipe website."
        )
    if error.type == "json_invalid_schema":
        return (
            "This doesn't appear to be a recipe. Look for JSON-LD data with "
            '@type: "Recipe" on the recipe website.'
        )
    if error.type == "validation":
        return "Fix the missing required fields and try importing again."
    if error.type == "ingredient_parse":
        return (
            "You can continue with the successfully parsed ingredients and manually "
            "edit the failed ones."
        )
    if error.type == "network":
        return "Click retry to try again." if error.retryable else None
    if error.type == "size_limit":
        if error.unit == "bytes":
            return "The JSON-LD is too large. Try copying a smaller portion or contact support."
        return "This recipe has too many ingredients. Try removing some or contact support."
    if error.type == "timeout":
        return "The operation took too long. Click retry to try again."
    return None
