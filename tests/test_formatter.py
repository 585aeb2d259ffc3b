import pytest

from recipe_import.app.core.config import get_settings
from recipe_import.app.services.ingredients.formatter import (
    build_ai_ingredient,
    create_manual_parsed_ingredient,
    format_confidence_label,
    format_ingredient,
    format_ingredient_for_display,
    format_ingredient_for_storage,
    format_ingredients,
    format_metric_conversion,
    get_confidence_badge_color,
    get_ingredients_needing_review,
    group_ingredients_by_method,
    has_metric_conversion,
    has_preparation_notes,
    normalize_ingredient_unit,
    parse_ingredient_string,
)


@pytest.fixture
def flour(make_ingredient):
    return make_ingredient(
        "2 cups all-purpose flour, sifted",
        quantity="2",
        unit="cups",
        ingredient_name="all-purpose flour",
        preparation_notes="sifted",
        metric_quantity="240",
        metric_unit="g",
    )


def test_format_ingredient_plain(make_ingredient):
    ingredient = make_ingredient("2 cup flour", quantity="2", unit="cup", ingredient_name="flour")
    assert format_ingredient(ingredient) == "2 cup flour"


def test_format_ingredient_options(flour):
    assert format_ingredient(flour) == "2 cups all-purpose flour, sifted"
    assert format_ingredient(flour, include_metric=True) == "2 cups (240g) all-purpose flour, sifted"
    assert format_ingredient(flour, include_preparation=False) == "2 cups all-purpose flour"
    assert format_ingredient(flour, include_metric=True, style="storage") == "2 cups all-purpose flour, sifted"


def test_format_ingredient_skips_missing_parts(make_ingredient):
    salt = make_ingredient("salt, to taste", ingredient_name="salt", preparation_notes="to taste")
    assert format_ingredient(salt, include_metric=True) == "salt, to taste"


def test_display_and_storage_presets(flour):
    assert format_ingredient_for_display(flour) == "2 cups (240g) all-purpose flour, sifted"
    assert format_ingredient_for_storage(flour) == "2 cups all-purpose flour, sifted"
    assert format_ingredients([flour, flour], include_preparation=False) == ["2 cups all-purpose flour"] * 2


@pytest.mark.parametrize("method", ["manual", "user"])
def test_storage_keeps_hand_written_text(make_ingredient, method):
    ingredient = make_ingredient(
        "  a good glug of olive oil ",
        quantity="1",
        unit="tbsp",
        ingredient_name="olive oil",
        parsing_method=method,
    )
    assert format_ingredient_for_storage(ingredient) == "  a good glug of olive oil "


def test_metric_conversion_helpers(flour, make_ingredient):
    assert format_metric_conversion(flour) == "240g"
    bare = make_ingredient("salt")
    assert format_metric_conversion(bare) is None
    assert has_metric_conversion(flour)
    assert not has_metric_conversion(bare)
    assert has_preparation_notes(flour)
    assert not has_preparation_notes(bare)


@pytest.mark.parametrize(
    "confidence,label,color",
    [
        (1.0, "High", "green"),
        (0.85, "High", "green"),
        (0.84, "Medium", "yellow"),
        (0.70, "Medium", "yellow"),
        (0.69, "Low", "red"),
        (0.0, "Low", "red"),
    ],
)
def test_confidence_labels_and_colors(confidence, label, color):
    assert format_confidence_label(confidence) == label
    assert get_confidence_badge_color(confidence) == color


def test_parse_ingredient_string():
    parsed = parse_ingredient_string("2 cups flour, sifted, divided")
    assert parsed["quantity"] == "2"
    assert parsed["unit"] == "cups"
    assert parsed["ingredient_name"] == "flour"
    assert parsed["preparation_notes"] == "sifted, divided"
    assert parsed["parsing_method"] == "manual"
    assert parsed["confidence"] == 0.5
    assert parsed["requires_manual_review"] is True


def test_parse_ingredient_string_confidence_ignores_settings(monkeypatch):
    monkeypatch.setenv("INGREDIENT_DEFAULT_CONFIDENCE", "0.3")
    get_settings.cache_clear()
    assert parse_ingredient_string("1 cup rice")["confidence"] == 0.5
    assert build_ai_ingredient("1 cup rice", "rice").confidence == 0.3


def test_parse_ingredient_string_without_match():
    parsed = parse_ingredient_string("salt")
    assert parsed["quantity"] is None
    assert parsed["unit"] is None
    assert parsed["ingredient_name"] == "salt"
    assert parsed["preparation_notes"] is None


def test_create_manual_parsed_ingredient_is_trusted():
    ingredient = create_manual_parsed_ingredient("1 1/2 tsp vanilla extract")
    assert ingredient.quantity == "1 1/2"
    assert ingredient.unit == "tsp"
    assert ingredient.ingredient_name == "vanilla extract"
    assert ingredient.confidence == 1.0
    assert ingredient.requires_manual_review is False
    assert ingredient.parsing_method == "manual"
    assert format_ingredient_for_storage(ingredient) == "1 1/2 tsp vanilla extract"


def test_build_ai_ingredient_flags_low_confidence():
    low = build_ai_ingredient("some salt", "salt", confidence=0.4)
    assert low.requires_manual_review
    assert low.parsing_method == "ai"

    default = build_ai_ingredient("salt", "salt")
    assert default.confidence == 0.5
    assert default.requires_manual_review

    high = build_ai_ingredient("1 cup milk", "milk", "1", "cup", confidence=1.7, metric_quantity="240")
    assert high.confidence == 1.0
    assert not high.requires_manual_review
    assert high.metric_quantity is None and high.metric_unit is None


def test_normalize_ingredient_unit(make_ingredient):
    assert normalize_ingredient_unit(make_ingredient("x", unit="Tablespoons")).unit == "tbsp"
    assert normalize_ingredient_unit(make_ingredient("x", unit="handful")).unit == "each"
    assert normalize_ingredient_unit(make_ingredient("x")).unit is None


def test_grouping_and_review_filters(make_ingredient):
    ai = make_ingredient("a")
    shaky = make_ingredient("b", confidence=0.3, requires_manual_review=True)
    manual = make_ingredient("c", parsing_method="manual")
    groups = group_ingredients_by_method([ai, shaky, manual])
    assert groups == {"ai": [ai, shaky], "manual": [manual]}
    assert get_ingredients_needing_review([ai, shaky, manual]) == [shaky]
    assert group_ingredients_by_method([]) == {}
