import json

import pytest

from recipe_import.app.core.config import get_settings
from recipe_import.app.schemas.ingredient import ParsedIngredient


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for name in (
        "INGREDIENT_DEFAULT_CONFIDENCE",
        "INGREDIENT_MAX_BATCH_SIZE",
        "INGREDIENT_MAX_LENGTH",
        "INGREDIENT_MAX_COUNT",
        "INGREDIENT_PARSE_TIMEOUT_MS",
        "JSON_LD_MAX_INPUT_BYTES",
        "LLM_BASE_URL",
        "LLM_APP_ID",
        "LLM_APP_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def llm_env(monkeypatch):
    monkeypatch.setenv("LLM_BASE_URL", "http://llm-proxy.test")
    monkeypatch.setenv("LLM_APP_ID", "recipes")
    monkeypatch.setenv("LLM_APP_KEY", "secret")
    get_settings.cache_clear()


@pytest.fixture
def make_ingredient():
    def _make(text: str, **overrides) -> ParsedIngredient:
        fields = {
            "original_text": text,
            "ingredient_name": text,
            "confidence": 0.9,
            "parsing_method": "ai",
        }
        fields.update(overrides)
        return ParsedIngredient(**fields)

    return _make


@pytest.fixture
def recipe_json():
    def _dump(**fields) -> str:
        node = {"@context": "https://schema.org", "@type": "Recipe"}
        node.update(fields)
        return json.dumps(node)

    return _dump
