import json

import httpx
import pytest

from recipe_import.app.services.ingredients.llm_parser import (
    IngredientParserRateLimited,
    IngredientParserResponseError,
    IngredientParserUnavailable,
    build_batch_prompt,
    parse_ingredients_with_llm,
)

RealAsyncClient = httpx.AsyncClient


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def patch_client(monkeypatch, handler):
    transport = httpx.MockTransport(handler)

    def client_factory(*args, **kwargs):
        kwargs["transport"] = transport
        return RealAsyncClient(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)


def test_build_batch_prompt_numbers_lines():
    prompt = build_batch_prompt(["2 cups flour", "1 egg"])
    assert "1. 2 cups flour\n2. 1 egg" in prompt
    assert "ingredientName" in prompt


@pytest.mark.asyncio
async def test_parse_ingredients_with_llm_maps_items(monkeypatch, llm_env):
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        content = json.dumps(
            {
                "ingredients": [
                    {
                        "quantity": "1",
                        "unit": "lb",
                        "ingredientName": "ground beef",
                        "preparationNotes": None,
                        "confidence": 0.95,
                    },
                    {"quantity": "some", "unit": None, "ingredientName": "salt", "confidence": 0.4},
                    {"quantity": "2", "unit": "cups", "ingredientName": "milk"},
                ]
            }
        )
        return httpx.Response(200, json=completion(content))

    patch_client(monkeypatch, handler)
    lines = ["1 lb ground beef", "some salt", "2 cups milk"]
    parsed = await parse_ingredients_with_llm(lines)

    assert seen["url"] == "http://llm-proxy.test/v1/chat/completions"
    assert seen["headers"]["X-Jarvis-App-Id"] == "recipes"
    assert seen["headers"]["X-Jarvis-App-Key"] == "secret"
    assert "1. 1 lb ground beef" in seen["body"]["messages"][1]["content"]

    assert [p.original_text for p in parsed] == lines
    beef, salt, milk = parsed
    assert (beef.metric_quantity, beef.metric_unit) == ("450", "g")
    assert not beef.requires_manual_review
    assert salt.requires_manual_review
    assert milk.confidence == 0.5
    assert milk.requires_manual_review
    assert milk.metric_quantity is None
    assert all(p.parsing_method == "ai" for p in parsed)


@pytest.mark.asyncio
async def test_code_fenced_array_is_accepted(monkeypatch, llm_env):
    async def handler(request: httpx.Request) -> httpx.Response:
        content = '```json\n[{"quantity": "3", "unit": "cloves", "ingredientName": "garlic", "preparationNotes": "minced", "confidence": 0.9}]\n```'
        return httpx.Response(200, json=completion(content))

    patch_client(monkeypatch, handler)
    [garlic] = await parse_ingredients_with_llm(["3 cloves garlic, minced"])
    assert garlic.unit == "cloves"
    assert garlic.preparation_notes == "minced"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error_type",
    [(429, IngredientParserRateLimited), (503, IngredientParserUnavailable), (400, IngredientParserUnavailable)],
)
async def test_http_errors_are_mapped(monkeypatch, llm_env, status, error_type):
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text="nope")

    patch_client(monkeypatch, handler)
    with pytest.raises(error_type):
        await parse_ingredients_with_llm(["1 egg"])


@pytest.mark.asyncio
async def test_transport_failure_is_unavailable(monkeypatch, llm_env):
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    patch_client(monkeypatch, handler)
    with pytest.raises(IngredientParserUnavailable) as exc_info:
        await parse_ingredients_with_llm(["1 egg"])
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        completion("not json at all"),
        completion('[{"ingredientName": "egg"}, {"ingredientName": "milk"}]'),
        completion(""),
        {"error": {"type": "server_error", "message": "model overloaded"}},
    ],
)
async def test_bad_responses_raise_response_error(monkeypatch, llm_env, body):
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    patch_client(monkeypatch, handler)
    with pytest.raises(IngredientParserResponseError):
        await parse_ingredients_with_llm(["1 egg"])


@pytest.mark.asyncio
async def test_input_is_validated_before_any_request(monkeypatch, llm_env):
    async def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    patch_client(monkeypatch, handler)
    with pytest.raises(ValueError, match="cannot be empty"):
        await parse_ingredients_with_llm([])
    with pytest.raises(ValueError, match="Maximum 20"):
        await parse_ingredients_with_llm(["egg"] * 21)


@pytest.mark.asyncio
async def test_missing_base_url_is_rejected():
    with pytest.raises(ValueError, match="LLM_BASE_URL"):
        await parse_ingredients_with_llm(["1 egg"])
