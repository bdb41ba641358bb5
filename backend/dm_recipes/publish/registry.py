"""
Handler Registry
================

Explicit registration of publish handlers and the AI tool each one exposes.

A ``HandlerDescriptor`` carries everything a pipeline needs to discover the
handler: label, capabilities, a factory building the publisher for a store,
and the settings fields it understands.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterator, Optional, Tuple

from ..schemas.publish import HANDLER_KEY
from ..store.base import ContentStore
from .orchestrator import RecipePublisher

TOOL_NAME = "recipe_publish"

TOOL_DESCRIPTION = (
    "Create a WordPress post with recipe content and Schema.org structured data. "
    "Use this tool to publish recipe posts with complete recipe information including "
    "ingredients, instructions, cooking times, and nutritional data."
)

HANDLER_DIRECTIVE = (
    "When publishing recipes to WordPress, create comprehensive recipe content with proper "
    "Schema.org structured data. Focus on clear, detailed ingredients with specific measurements, "
    "step-by-step instructions, accurate timing information (prep/cook/total), and helpful cooking "
    "tips. Include recipe categories, cuisine types, and dietary information when relevant. "
    "Ensure all recipe data follows Schema.org Recipe markup standards for optimal SEO and rich "
    "snippets. Use descriptive language that helps readers understand the cooking process and "
    "expected results."
)

HANDLER_SETTINGS = (
    "post_type",
    "post_status",
    "post_author",
    "post_date_source",
    "taxonomies",
)


def _string(description: str) -> dict:
    return {"type": "string", "description": description}


def _string_list(description: str) -> dict:
    return {"type": "array", "items": {"type": "string"}, "description": description}


TOOL_PARAMETERS: Dict[str, Any] = {
    "type": "object",
    "properties": {
        # Post-level
        "post_title": _string("The title of the blog post (required)"),
        "post_content": _string("The main blog post content (can be empty if only recipe schema is needed)"),
        "category": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Category names for the post (used when categories are left to the AI)",
        },
        "tags": _string_list("Tag names for the post (used when tags are left to the AI)"),
        # Recipe
        "recipeName": _string("The name of the recipe (required for schema)"),
        "description": _string("A description of the recipe"),
        "images": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "url": _string("Image URL"),
                    "alt": _string("Alt text for image"),
                },
            },
            "description": "Array of recipe images with URL and alt text",
        },
        "prepTime": _string("Preparation time in ISO 8601 format (e.g., PT30M for 30 minutes)"),
        "cookTime": _string("Cooking time in ISO 8601 format (e.g., PT1H for 1 hour)"),
        "totalTime": _string("Total time in ISO 8601 format (prep + cook time)"),
        "recipeYield": _string('Number of servings or yield (e.g., "4 servings", "12 muffins")'),
        "recipeCategory": _string_list('Recipe categories (e.g., ["appetizer", "main course", "dessert"])'),
        "recipeCuisine": _string('The cuisine type (e.g., "Italian", "Mexican", "American")'),
        "cookingMethod": _string('Cooking method (e.g., "baking", "grilling", "frying")'),
        "recipeIngredient": _string_list('List of ingredients with quantities (e.g., ["2 cups flour", "1 tsp salt"])'),
        "recipeInstructions": _string_list("Step-by-step cooking instructions"),
        "keywords": _string_list("Keywords or tags for the recipe"),
        "suitableForDiet": _string_list('Dietary restrictions (e.g., ["vegetarian", "gluten-free", "low-carb"])'),
        "nutrition": {
            "type": "object",
            "properties": {
                "calories": _string("Calories per serving"),
                "fatContent": _string("Fat content"),
                "carbohydrateContent": _string("Carbohydrate content"),
                "proteinContent": _string("Protein content"),
                "sodiumContent": _string("Sodium content"),
                "fiberContent": _string("Fiber content"),
            },
            "description": "Nutritional information for the recipe",
        },
        "video": {
            "type": "object",
            "properties": {
                "name": _string("Video title"),
                "description": _string("Video description"),
                "contentUrl": _string("Video URL"),
                "thumbnailUrl": _string("Video thumbnail URL"),
                "duration": _string("Video duration in ISO 8601 format"),
            },
            "description": "Recipe video information",
        },
        "tool": _string_list("Cooking tools or equipment needed"),
        "supply": _string_list("Supplies consumed during cooking (beyond ingredients)"),
        "estimatedCost": _string("Estimated cost to make the recipe"),
        "datePublished": _string("Publication date in ISO 8601 format (auto-generated if not provided)"),
    },
    "required": ["post_title", "recipeName"],
}


def recipe_publish_tool(handler_config: Optional[dict] = None) -> dict:
    """AI tool definition for recipe publishing, bound to ``handler_config``."""
    return {
        "name": TOOL_NAME,
        "handler": HANDLER_KEY,
        "description": TOOL_DESCRIPTION,
        "parameters": copy.deepcopy(TOOL_PARAMETERS),
        "handler_config": dict(handler_config or {}),
        "directive": HANDLER_DIRECTIVE,
    }


@dataclass(frozen=True)
class HandlerDescriptor:
    key: str
    label: str
    description: str
    capabilities: FrozenSet[str]
    factory: Callable[..., RecipePublisher]
    settings: Tuple[str, ...] = field(default_factory=tuple)
    directive: str = ""

    def build(self, store: ContentStore, **kwargs) -> RecipePublisher:
        return self.factory(store, **kwargs)

    def to_response(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "description": self.description,
            "capabilities": sorted(self.capabilities),
            "settings": list(self.settings),
        }


class HandlerRegistry:
    """Explicit replacement for filter-based handler discovery."""

    def __init__(self):
        self._handlers: Dict[str, HandlerDescriptor] = {}

    def register(self, descriptor: HandlerDescriptor) -> HandlerDescriptor:
        if descriptor.key in self._handlers:
            raise ValueError(f"Handler '{descriptor.key}' is already registered")
        self._handlers[descriptor.key] = descriptor
        return descriptor

    def get(self, key: str) -> Optional[HandlerDescriptor]:
        return self._handlers.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __iter__(self) -> Iterator[HandlerDescriptor]:
        return iter(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)


RECIPE_PUBLISH_HANDLER = HandlerDescriptor(
    key=HANDLER_KEY,
    label="WordPress Recipe",
    description="Publish recipes to WordPress with Schema.org structured data markup",
    capabilities=frozenset({"publish", "ai_tool"}),
    factory=RecipePublisher,
    settings=HANDLER_SETTINGS,
    directive=HANDLER_DIRECTIVE,
)


def build_default_registry() -> HandlerRegistry:
    registry = HandlerRegistry()
    registry.register(RECIPE_PUBLISH_HANDLER)
    return registry


default_registry = build_default_registry()
