"""
DM Recipes Schemas
==================

Pydantic schemas for structured data.

- recipe: canonical Recipe record and its parts
- publish: handler configuration, taxonomy reports, publish result
"""

from .publish import (
    HANDLER_KEY,
    HandlerConfig,
    PublishResult,
    PublishState,
    TaxonomyAssignment,
    TaxonomyMode,
    TaxonomySelection,
)
from .recipe import (
    PublishingIdentity,
    RatingSource,
    Recipe,
    RecipeAuthor,
    RecipeImage,
    RecipeVideo,
)

__all__ = [
    "HANDLER_KEY",
    "HandlerConfig",
    "PublishResult",
    "PublishState",
    "TaxonomyAssignment",
    "TaxonomyMode",
    "TaxonomySelection",
    "PublishingIdentity",
    "RatingSource",
    "Recipe",
    "RecipeAuthor",
    "RecipeImage",
    "RecipeVideo",
]
