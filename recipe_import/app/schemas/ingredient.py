from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

ParsingMethod = Literal["ai", "manual", "user"]


class ParsedIngredient(BaseModel):
    """One structured ingredient line.

    ``original_text`` is always the line as it was received. ``unit`` holds
    whatever the parser produced until it is canonicalized by the unit
    normalizer.
    """

    original_text: str
    quantity: Optional[str] = None
    unit: Optional[str] = None
    ingredient_name: str
    preparation_notes: Optional[str] = None
    metric_quantity: Optional[str] = None
    metric_unit: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    parsing_method: ParsingMethod
    requires_manual_review: bool = False

    @model_validator(mode="after")
    def _metric_pair(self) -> "ParsedIngredient":
        if bool(self.metric_quantity) != bool(self.metric_unit):
            raise ValueError("metric_quantity and metric_unit must be set together")
        return self


class IngredientParsingProgress(BaseModel):
    """Snapshot emitted after each batch."""

    current_batch: int
    total_batches: int
    parsed_count: int
    total_count: int
    estimated_time_remaining_ms: int
    can_cancel: bool = True

    model_config = ConfigDict(frozen=True)


class BatchParsingResult(BaseModel):
    parsed_ingredients: List[ParsedIngredient] = Field(default_factory=list)
    failed_ingredients: List[str] = Field(default_factory=list)
    total_batches: int = 0
    duration_ms: int = 0

    model_config = ConfigDict(frozen=True)


class BatchValidationResult(BaseModel):
    valid: bool
    error: Optional[str] = None

    model_config = ConfigDict(frozen=True)
