"""
Canonical Recipe Schema
=======================

The single validated representation of a recipe used by every downstream
step (compiler, embedded block, rendering).

Attributes use Python names; serialization uses the Schema.org property
names (``recipeName``, ``recipeIngredient``, ...) so that the JSON stored in
the embedded block reads like the structured data it produces.
"""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Schema.org NutritionInformation properties
NUTRITION_PROPERTIES = (
    "calories",
    "carbohydrateContent",
    "cholesterolContent",
    "fatContent",
    "fiberContent",
    "proteinContent",
    "saturatedFatContent",
    "servingSize",
    "sodiumContent",
    "sugarContent",
    "transFatContent",
    "unsaturatedFatContent",
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RecipeImage(_Frozen):
    """One recipe image."""

    url: str
    alt: str = ""


class RecipeAuthor(_Frozen):
    """Author attribution, always derived from the publishing identity."""

    name: str = ""
    url: str = ""


class RecipeVideo(_Frozen):
    """Recipe video. Only materializes when ``content_url`` is set."""

    name: str = ""
    description: str = ""
    content_url: str = Field(alias="contentUrl")
    thumbnail_url: str = Field(default="", alias="thumbnailUrl")
    duration: str = ""


class RatingSource(_Frozen):
    """
    Rating/review pair stored by the content store for a record.

    Never read from the inbound payload.
    """

    rating_value: Optional[float] = None
    review_count: Optional[int] = None

    def is_publishable(self) -> bool:
        """True when the pair may be emitted as an AggregateRating."""
        if self.rating_value is None or self.review_count is None:
            return False
        return self.review_count > 0 and 1.0 <= self.rating_value <= 5.0


class Recipe(_Frozen):
    """Canonical recipe record (immutable once built)."""

    name: str = Field(min_length=1, alias="recipeName")
    description: str = ""
    images: Tuple[RecipeImage, ...] = ()

    # Timing (ISO 8601 durations)
    prep_time: str = Field(default="", alias="prepTime")
    cook_time: str = Field(default="", alias="cookTime")
    total_time: str = Field(default="", alias="totalTime")

    # Classification
    recipe_yield: str = Field(default="", alias="recipeYield")
    category: Tuple[str, ...] = Field(default=(), alias="recipeCategory")
    cuisine: str = Field(default="", alias="recipeCuisine")
    cooking_method: str = Field(default="", alias="cookingMethod")

    # Content
    ingredients: Tuple[str, ...] = Field(default=(), alias="recipeIngredient")
    instructions: Tuple[str, ...] = Field(default=(), alias="recipeInstructions")
    keywords: Tuple[str, ...] = ()
    suitable_for_diet: Tuple[str, ...] = Field(default=(), alias="suitableForDiet")

    # Advanced properties
    nutrition: dict[str, str] = Field(default_factory=dict)
    video: Optional[RecipeVideo] = None
    tools: Tuple[str, ...] = Field(default=(), alias="tool")
    supplies: Tuple[str, ...] = Field(default=(), alias="supply")
    estimated_cost: str = Field(default="", alias="estimatedCost")

    # Attribution
    author: RecipeAuthor = Field(default_factory=RecipeAuthor)
    date_published: str = Field(default="", alias="datePublished")

    @field_validator("nutrition")
    @classmethod
    def keep_known_nutrition(cls, value: dict[str, str]) -> dict[str, str]:
        return {key: text for key, text in value.items() if key in NUTRITION_PROPERTIES and text}

    def to_attributes(self) -> dict:
        """Serialized form stored in the embedded block."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PublishingIdentity(_Frozen):
    """The content-store user a recipe is published as."""

    user_id: int
    display_name: str = ""
    profile_url: str = ""

    def as_author(self) -> RecipeAuthor:
        return RecipeAuthor(name=self.display_name, url=self.profile_url)
