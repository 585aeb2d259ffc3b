"""End-to-end recipe import: JSON-LD extraction followed by ingredient parsing."""

import asyncio
import inspect
import logging
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from recipe_import.app.core.config import get_settings
from recipe_import.app.schemas.errors import (
    IngredientParseError,
    NetworkError,
    OperationTimeoutError,
    RecipeImportError,
    SizeLimitError,
    format_import_error,
    is_recoverable_error,
)
from recipe_import.app.schemas.ingredient import ParsedIngredient
from recipe_import.app.schemas.recipe import RecipeParseResult
from recipe_import.app.services.ingredients.batch_parser import (
    CancellationSignal,
    ParseFunction,
    ProgressCallback,
    parse_ingredients_in_batches,
    validate_ingredient_batch,
)
from recipe_import.app.services.ingredients.formatter import (
    format_ingredient_for_storage,
    normalize_ingredient_unit,
)
from recipe_import.app.services.ingredients.llm_parser import (
    IngredientParserRateLimited,
    IngredientParserUnavailable,
)
from recipe_import.app.services.json_ld.extractor import parse_recipe_json_ld
from recipe_import.app.services.unit_conversion import with_metric_conversion

logger = logging.getLogger(__name__)


class RecipeImportOutcome(BaseModel):
    """Everything a caller needs to show or save after an import attempt."""

    parse_result: RecipeParseResult
    ingredients: List[ParsedIngredient] = Field(default_factory=list)
    failed_ingredients: List[str] = Field(default_factory=list)
    storage_ingredients: List[str] = Field(default_factory=list)
    errors: List[RecipeImportError] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def success(self) -> bool:
        return self.parse_result.success and not self.errors

    @property
    def recoverable(self) -> bool:
        return all(is_recoverable_error(error) for error in self.errors)

    def messages(self) -> List[str]:
        return [format_import_error(error) for error in self.errors]


class _CauseRecorder:
    """Wraps a parse function and remembers the last exception it raised."""

    def __init__(self, parse_fn: ParseFunction):
        self._parse_fn = parse_fn
        self.last_error: Optional[Exception] = None
        self.calls = 0

    async def __call__(self, batch: List[str]) -> List[ParsedIngredient]:
        self.calls += 1
        try:
            results = self._parse_fn(batch)
            if inspect.isawaitable(results):
                results = await results
            return results
        except Exception as exc:
            self.last_error = exc
            raise


def _network_error(exc: Exception) -> Optional[NetworkError]:
    if isinstance(exc, IngredientParserRateLimited):
        return NetworkError(message=str(exc), retryable=True, status_code=429)
    if isinstance(exc, IngredientParserUnavailable):
        retryable = exc.status_code is None or exc.status_code >= 500
        return NetworkError(message=str(exc), retryable=retryable, status_code=exc.status_code)
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return NetworkError(message=str(exc), retryable=status >= 500 or status == 429, status_code=status)
    if isinstance(exc, httpx.HTTPError):
        return NetworkError(message=str(exc), retryable=True)
    return None


def _storage_strings(lines: List[str], parsed: List[ParsedIngredient]) -> List[str]:
    """Storage strings in recipe order; lines without a parse are kept verbatim.

    ``parsed`` keeps the units as the parser wrote them, so "2 pints milk" is
    not stored as "2 ml milk".
    """
    by_text: Dict[str, List[ParsedIngredient]] = {}
    for ingredient in parsed:
        by_text.setdefault(ingredient.original_text, []).append(ingredient)
    storage: List[str] = []
    for line in lines:
        matches = by_text.get(line)
        storage.append(format_ingredient_for_storage(matches.pop(0)) if matches else line)
    return storage


async def import_recipe(
    json_ld_text: str,
    parse_fn: ParseFunction,
    source_url: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
    signal: Optional[CancellationSignal] = None,
) -> RecipeImportOutcome:
    """Extract a recipe from JSON-LD and parse its ingredient lines.

    Extraction failures are reported without parsing. A recipe that failed
    validation is still parsed so the user can fix and save it.
    ``IngredientParsingCancelled`` and ``asyncio.CancelledError`` propagate.
    """
    settings = get_settings()
    parse_result = parse_recipe_json_ld(json_ld_text, source_url=source_url)
    errors: List[RecipeImportError] = []
    if parse_result.import_error is not None:
        errors.append(parse_result.import_error)

    recipe = parse_result.recipe
    if recipe is None or not recipe.recipe_ingredient:
        return RecipeImportOutcome(parse_result=parse_result, errors=errors)

    lines = recipe.recipe_ingredient
    if len(lines) > settings.ingredient_max_count:
        logger.info(
            "Recipe has %d ingredients, over the limit of %d; skipping parsing",
            len(lines),
            settings.ingredient_max_count,
        )
        errors.append(
            SizeLimitError(actual=len(lines), limit=settings.ingredient_max_count, unit="ingredients")
        )
        return RecipeImportOutcome(
            parse_result=parse_result,
            failed_ingredients=list(lines),
            storage_ingredients=list(lines),
            errors=errors,
        )

    parseable: List[str] = []
    rejected: List[str] = []
    for line in lines:
        check = validate_ingredient_batch([line])
        if check.valid:
            parseable.append(line)
        else:
            logger.warning("Skipping ingredient line: %s", check.error)
            rejected.append(line)

    recorder = _CauseRecorder(parse_fn)
    timeout_ms = settings.ingredient_parse_timeout_ms
    parsed: List[ParsedIngredient] = []
    as_written: List[ParsedIngredient] = []
    failed: List[str] = list(rejected)
    if parseable:
        try:
            batch_result = await asyncio.wait_for(
                parse_ingredients_in_batches(
                    parseable, recorder, on_progress=on_progress, signal=signal
                ),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            logger.warning("Ingredient parsing timed out after %dms", timeout_ms)
            errors.append(OperationTimeoutError(operation="Ingredient parsing", timeout_ms=timeout_ms))
            return RecipeImportOutcome(
                parse_result=parse_result,
                failed_ingredients=list(lines),
                storage_ingredients=list(lines),
                errors=errors,
            )
        # The metric pair is computed from the unit as the parser wrote it; folding
        # first would read "pints" as millilitres and "fl oz" as a weight.
        as_written = [with_metric_conversion(i) for i in batch_result.parsed_ingredients]
        parsed = [normalize_ingredient_unit(i) for i in as_written]
        failed.extend(batch_result.failed_ingredients)

    if failed:
        cause = recorder.last_error
        network = _network_error(cause) if cause is not None and not parsed else None
        if network is not None:
            errors.append(network)
        else:
            errors.append(
                IngredientParseError(
                    failed_ingredients=failed,
                    partial_results=parsed,
                    original_error=cause
                    or ValueError(f"{len(rejected)} ingredient lines failed validation"),
                )
            )

    logger.info(
        "Imported recipe %r: %d ingredients parsed, %d failed",
        recipe.name,
        len(parsed),
        len(failed),
    )
    return RecipeImportOutcome(
        parse_result=parse_result,
        ingredients=parsed,
        failed_ingredients=failed,
        storage_ingredients=_storage_strings(lines, as_written),
        errors=errors,
    )
