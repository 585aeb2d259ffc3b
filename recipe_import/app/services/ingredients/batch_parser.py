"""Ingredient batch parsing.

Splits large ingredient lists into bounded batches, feeds them one at a time
to an injected parse function and reports progress after every batch.
"""

import asyncio
import inspect
import logging
import math
import time
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Sequence, TypeVar, Union

from recipe_import.app.core.config import get_settings
from recipe_import.app.schemas.ingredient import (
    BatchParsingResult,
    BatchValidationResult,
    IngredientParsingProgress,
    ParsedIngredient,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ParseFunction = Callable[
    [List[str]], Union[Awaitable[List[ParsedIngredient]], List[ParsedIngredient]]
]
ProgressCallback = Callable[[IngredientParsingProgress], None]


class CancellationSignal(Protocol):
    def is_set(self) -> bool: ...


class IngredientParsingCancelled(Exception):
    """Raised when the caller cancels a batch run between batches."""

    def __init__(self, completed_batches: int = 0, total_batches: int = 0):
        super().__init__("Ingredient parsing was cancelled")
        self.completed_batches = completed_batches
        self.total_batches = total_batches


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split ``items`` into lists of ``size``; the last one may be shorter."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def _elapsed_ms(started: float) -> int:
    return int(round((time.monotonic() - started) * 1000))


async def parse_ingredients_in_batches(
    ingredients: List[str],
    parse_fn: ParseFunction,
    on_progress: Optional[ProgressCallback] = None,
    signal: Optional[CancellationSignal] = None,
    batch_size: Optional[int] = None,
) -> BatchParsingResult:
    """Parse ``ingredients`` batch by batch.

    Batches run strictly one after another. The cancellation signal is polled
    before each batch; once a batch call is in flight it is awaited to
    completion. A failing batch is logged and its raw lines are reported as
    failed while the remaining batches still run.
    """
    started = time.monotonic()
    size = batch_size or get_settings().ingredient_max_batch_size
    batches = chunk(ingredients, size)
    total_batches = len(batches)

    parsed: List[ParsedIngredient] = []
    failed: List[str] = []

    logger.info(
        "Parsing %d ingredients in %d batches (batch size %d)",
        len(ingredients),
        total_batches,
        size,
    )

    for idx, batch in enumerate(batches):
        if signal is not None and signal.is_set():
            logger.info("Ingredient parsing cancelled before batch %d/%d", idx + 1, total_batches)
            raise IngredientParsingCancelled(completed_batches=idx, total_batches=total_batches)

        try:
            results = parse_fn(batch)
            if inspect.isawaitable(results):
                results = await results
            parsed.extend(results)
            logger.debug("Batch %d/%d parsed %d ingredients", idx + 1, total_batches, len(results))
        except Exception as exc:
            logger.exception("Batch %d/%d failed: %s", idx + 1, total_batches, exc)
            failed.extend(batch)

        completed = idx + 1
        elapsed = _elapsed_ms(started)
        average_per_batch = elapsed / completed
        remaining = total_batches - completed
        if on_progress is not None:
            on_progress(
                IngredientParsingProgress(
                    current_batch=completed,
                    total_batches=total_batches,
                    parsed_count=len(parsed) + len(failed),
                    total_count=len(ingredients),
                    estimated_time_remaining_ms=int(round(remaining * average_per_batch)),
                    can_cancel=True,
                )
            )

        # Let the caller's loop run so a cancel request can land before the next batch.
        await asyncio.sleep(0)

    duration = _elapsed_ms(started)
    logger.info(
        "Ingredient parsing finished: %d parsed, %d failed, %d batches in %dms",
        len(parsed),
        len(failed),
        total_batches,
        duration,
    )
    return BatchParsingResult(
        parsed_ingredients=parsed,
        failed_ingredients=failed,
        total_batches=total_batches,
        duration_ms=duration,
    )


def validate_ingredient_batch(ingredients: Any) -> BatchValidationResult:
    """Check a list of ingredient lines before it is sent to a parser."""
    max_length = get_settings().ingredient_max_length
    if not isinstance(ingredients, list):
        return BatchValidationResult(valid=False, error="Ingredients must be an array")
    if not ingredients:
        return BatchValidationResult(valid=False, error="Ingredients array cannot be empty")
    for idx, ingredient in enumerate(ingredients):
        if not isinstance(ingredient, str):
            return BatchValidationResult(
                valid=False, error=f"Ingredient at index {idx} must be a string"
            )
        if len(ingredient) > max_length:
            return BatchValidationResult(
                valid=False,
                error=f"Ingredient at index {idx} exceeds {max_length} characters",
            )
    return BatchValidationResult(valid=True)


def calculate_optimal_batch_size(total_ingredients: int, max_batch_size: Optional[int] = None) -> int:
    """Batch size that spreads ``total_ingredients`` evenly.

    25 items with a max of 20 gives batches of 13 and 12 rather than 20 and 5.
    """
    if max_batch_size is None:
        max_batch_size = get_settings().ingredient_max_batch_size
    if total_ingredients <= max_batch_size:
        return total_ingredients
    num_batches = math.ceil(total_ingredients / max_batch_size)
    return math.ceil(total_ingredients / num_batches)


def estimate_parsing_time(ingredient_count: int, average_time_per_batch: Optional[int] = None) -> int:
    settings = get_settings()
    if average_time_per_batch is None:
        average_time_per_batch = settings.ingredient_batch_estimate_ms
    return math.ceil(ingredient_count / settings.ingredient_max_batch_size) * average_time_per_batch


def create_initial_progress(total_count: int) -> IngredientParsingProgress:
    return IngredientParsingProgress(
        current_batch=0,
        total_batches=math.ceil(total_count / get_settings().ingredient_max_batch_size),
        parsed_count=0,
        total_count=total_count,
        estimated_time_remaining_ms=estimate_parsing_time(total_count),
        can_cancel=True,
    )


def needs_batch_processing(ingredient_count: int) -> bool:
    return ingredient_count > get_settings().ingredient_max_batch_size


def format_progress_percentage(progress: IngredientParsingProgress) -> int:
    if progress.total_count == 0:
        return 0
    return int(math.floor(progress.parsed_count / progress.total_count * 100 + 0.5))


def format_time_remaining(ms: float) -> str:
    """Human readable ETA: "<1s", "45s", "2m" or "1m 30s"."""
    if ms < 1000:
        return "<1s"
    seconds = int(math.floor(ms / 1000 + 0.5))
    if seconds < 60:
        return f"{seconds}s"
    minutes, remaining_seconds = divmod(seconds, 60)
    if remaining_seconds == 0:
        return f"{minutes}m"
    return f"{minutes}m {remaining_seconds}s"
