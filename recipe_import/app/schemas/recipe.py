"""Pydantic models for JSON-LD recipe import."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from recipe_import.app.schemas.errors import (
    RecipeImportError,
    RecipeValidationError,
    RecipeValidationWarning,
)


class RecipeNutrition(BaseModel):
    calories: Optional[str] = None


class AggregateRating(BaseModel):
    rating_value: Optional[float] = None
    rating_count: Optional[int] = None


class ImportedRecipe(BaseModel):
    """Best-effort recipe fields extracted from a schema.org Recipe node."""

    name: str = ""
    image: str = ""
    image_source: str = "url"
    description: Optional[str] = None
    author: Optional[str] = None
    date_published: Optional[datetime] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    total_time: Optional[str] = None
    recipe_yield: Optional[str] = None
    recipe_ingredient: List[str] = Field(default_factory=list)
    recipe_instructions: List[str] = Field(default_factory=list)
    recipe_category: List[str] = Field(default_factory=list)
    recipe_cuisine: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    nutrition: Optional[RecipeNutrition] = None
    aggregate_rating: Optional[AggregateRating] = None
    suitable_for_diet: List[str] = Field(default_factory=list)
    source_url: Optional[str] = None


class RecipeParseResult(BaseModel):
    """Result of one JSON-LD import attempt."""

    success: bool
    recipe: Optional[ImportedRecipe] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    validation_errors: List[RecipeValidationError] = Field(default_factory=list)
    validation_warnings: List[RecipeValidationWarning] = Field(default_factory=list)
    import_error: Optional[RecipeImportError] = None
    parsing_duration_ms: int = 0
    source_url: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _errors_match_success(self) -> "RecipeParseResult":
        if self.success and self.errors:
            raise ValueError("a successful parse result cannot carry errors")
        return self
