import pytest
from pydantic import TypeAdapter, ValidationError

from recipe_import.app.schemas.errors import (
    IngredientParseError,
    JsonInvalidSchemaError,
    JsonParseError,
    NetworkError,
    OperationTimeoutError,
    RecipeImportError,
    SizeLimitError,
    ValidationFailedError,
    create_validation_error,
    create_validation_warning,
    format_import_error,
    get_recovery_suggestion,
    is_recoverable_error,
)
from recipe_import.app.schemas.recipe import RecipeParseResult

name_error = create_validation_error("missing_required_field", "name", "Recipe name is required")


@pytest.mark.parametrize(
    "error,recoverable,has_suggestion",
    [
        (JsonParseError(message="Unexpected token", line=3, column=7), True, True),
        (JsonInvalidSchemaError(message="No Recipe", received_type="WebPage"), False, True),
        (ValidationFailedError(errors=[name_error]), True, True),
        (IngredientParseError(failed_ingredients=["x"], original_error=RuntimeError("boom")), True, True),
        (NetworkError(message="offline", retryable=True), True, True),
        (NetworkError(message="forbidden", retryable=False, status_code=403), True, False),
        (SizeLimitError(actual=3_000_000, limit=2_097_152, unit="bytes"), False, True),
        (OperationTimeoutError(operation="Ingredient parsing", timeout_ms=60000), True, True),
    ],
)
def test_recoverability_table(error, recoverable, has_suggestion):
    assert is_recoverable_error(error) is recoverable
    assert (get_recovery_suggestion(error) is not None) is has_suggestion
    assert format_import_error(error)


def test_json_parse_message_includes_line_only_when_known():
    assert format_import_error(JsonParseError(message="Unexpected token", line=12)) == (
        "Invalid JSON at line 12: Unexpected token"
    )
    message = format_import_error(JsonParseError(message="Unexpected token"))
    assert message == "Invalid JSON: Unexpected token"
    assert "line" not in message


def test_formatted_messages_echo_fields(make_ingredient):
    assert format_import_error(SizeLimitError(actual=250, limit=200, unit="ingredients")) == (
        "Input too large: 250 ingredients (limit: 200 ingredients)"
    )
    parse_error = IngredientParseError(
        failed_ingredients=["a", "b"],
        partial_results=[make_ingredient("c")],
        original_error=RuntimeError("boom"),
    )
    assert format_import_error(parse_error) == "Failed to parse 2 ingredients. 1 parsed successfully."
    assert "WebPage" in format_import_error(JsonInvalidSchemaError(message="x", received_type="WebPage"))
    assert format_import_error(NetworkError(message="offline", retryable=True)).endswith("Please try again.")
    assert format_import_error(NetworkError(message="denied", retryable=False)) == "Network error: denied"
    image_error = create_validation_error("missing_required_field", "image", "Recipe image is required")
    assert format_import_error(ValidationFailedError(errors=[name_error, image_error])) == (
        "Validation failed: Recipe name is required, Recipe image is required"
    )
    assert "60000ms" in format_import_error(OperationTimeoutError(operation="Parse", timeout_ms=60000))


def test_size_limit_suggestion_depends_on_unit():
    by_bytes = get_recovery_suggestion(SizeLimitError(actual=2, limit=1, unit="bytes"))
    by_count = get_recovery_suggestion(SizeLimitError(actual=2, limit=1, unit="ingredients"))
    assert "JSON-LD" in by_bytes
    assert "ingredients" in by_count


def test_union_discriminates_on_type():
    adapter = TypeAdapter(RecipeImportError)
    error = adapter.validate_python({"type": "network", "message": "offline", "retryable": True})
    assert isinstance(error, NetworkError)
    with pytest.raises(ValidationError):
        adapter.validate_python({"type": "network", "message": "offline"})
    with pytest.raises(ValidationError):
        adapter.validate_python({"type": "unknown"})


def test_validation_helpers():
    warning = create_validation_warning("data_quality", "image", "Image URL may be invalid")
    assert warning.severity == "warning"
    assert warning.actionable
    assert name_error.severity == "error"
    with pytest.raises(ValidationError):
        create_validation_error("not_a_type", "name", "x")


def test_successful_result_cannot_carry_errors():
    with pytest.raises(ValidationError):
        RecipeParseResult(success=True, errors=["Recipe name is required"])
