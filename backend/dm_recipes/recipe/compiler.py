"""
Structured Data Compiler
========================

Turns a canonical ``Recipe`` (plus the stored rating for its record) into:

- a microdata HTML fragment (``itemscope``/``itemprop``)
- a Schema.org Recipe JSON-LD document

Both are pure functions of their inputs: the same recipe and rating always
produce byte-identical output.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from html import escape
from typing import Any, Optional

from ..core.errors import CompilationError
from ..schemas.recipe import NUTRITION_PROPERTIES, RatingSource, Recipe
from .duration import format_duration
from .sanitizer import sanitize_rich_text, strip_all_tags

SCHEMA_CONTEXT = "https://schema.org/"
SCHEMA_BASE = "https://schema.org/"
MAX_MICRODATA_IMAGES = 6


@dataclass(frozen=True)
class CompiledRecipe:
    """Microdata fragment and JSON-LD document for one recipe."""

    microdata: str
    json_ld: dict

    def json_ld_text(self) -> str:
        """Deterministic JSON serialization, safe to embed in a script element."""
        return dump_json(self.json_ld).replace("</", "<\\/")

    def script_tag(self) -> str:
        return f'<script type="application/ld+json">{self.json_ld_text()}</script>'

    def html(self) -> str:
        """Microdata region followed by the JSON-LD script."""
        return f"{self.microdata}\n{self.script_tag()}"


def dump_json(data: Any) -> str:
    """Compact UTF-8 JSON with key order preserved."""
    try:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise CompilationError(f"Failed to encode structured data as JSON: {e}") from e


def _rating_value(rating: RatingSource) -> float:
    return round(float(rating.rating_value), 2)


# ============================================================================
# JSON-LD
# ============================================================================


def build_json_ld(recipe: Recipe, rating: Optional[RatingSource] = None) -> dict:
    """Schema.org Recipe document; optional fields are omitted, never nulled."""
    schema: dict[str, Any] = {
        "@context": SCHEMA_CONTEXT,
        "@type": "Recipe",
    }

    def put(key: str, value: Any) -> None:
        if value:
            schema[key] = value

    put("name", recipe.name)
    put("description", strip_all_tags(recipe.description))
    put("image", [image.url for image in recipe.images])

    put("prepTime", recipe.prep_time)
    put("cookTime", recipe.cook_time)
    put("totalTime", recipe.total_time)

    put("recipeYield", recipe.recipe_yield)
    put("recipeCategory", list(recipe.category))
    put("recipeCuisine", recipe.cuisine)
    put("recipeIngredient", list(recipe.ingredients))
    put(
        "recipeInstructions",
        [
            {"@type": "HowToStep", "name": f"Step {index}", "text": strip_all_tags(text)}
            for index, text in enumerate(recipe.instructions, start=1)
        ],
    )

    if recipe.author.name:
        author: dict[str, Any] = {"@type": "Person", "name": recipe.author.name}
        if recipe.author.url:
            author["url"] = recipe.author.url
        schema["author"] = author

    put("datePublished", recipe.date_published)

    if rating is not None and rating.is_publishable():
        schema["aggregateRating"] = {
            "@type": "AggregateRating",
            "ratingValue": _rating_value(rating),
            "reviewCount": int(rating.review_count),
        }

    put("keywords", list(recipe.keywords))
    put("cookingMethod", recipe.cooking_method)

    nutrition = {key: value for key, value in recipe.nutrition.items() if value and key in NUTRITION_PROPERTIES}
    if nutrition:
        schema["nutrition"] = {"@type": "NutritionInformation", **nutrition}

    put("suitableForDiet", list(recipe.suitable_for_diet))

    if recipe.video is not None and recipe.video.content_url:
        video: dict[str, Any] = {"@type": "VideoObject"}
        for key, value in (
            ("name", recipe.video.name),
            ("description", recipe.video.description),
            ("contentUrl", recipe.video.content_url),
            ("thumbnailUrl", recipe.video.thumbnail_url),
            ("duration", recipe.video.duration),
        ):
            if value:
                video[key] = value
        schema["video"] = video

    put("tool", list(recipe.tools))
    put("supply", list(recipe.supplies))
    put("estimatedCost", recipe.estimated_cost)

    return schema


# ============================================================================
# MICRODATA
# ============================================================================


def _attr(value: Any) -> str:
    return escape(str(value), quote=True)


def _meta(prop: str, value: Any) -> str:
    return f'<meta itemprop="{prop}" content="{_attr(value)}" />'


def _duration_row(css: str, label: str, prop: str, value: str) -> str:
    return (
        f'<div class="{css}"><strong>{label}</strong> '
        f'<span itemprop="{prop}" content="{_attr(value)}">{escape(format_duration(value))}</span></div>'
    )


def _text_row(css: str, label: str, prop: str, value: str) -> str:
    return f'<div class="{css}"><strong>{label}</strong> <span itemprop="{prop}">{escape(value)}</span></div>'


def build_microdata(
    recipe: Recipe,
    rating: Optional[RatingSource] = None,
    *,
    visible: bool = True,
) -> str:
    """Microdata region mirroring the JSON-LD data."""
    root = f'<div class="recipe-schema-block" itemscope itemtype="{SCHEMA_BASE}Recipe"'
    root += ">" if visible else ' style="display: none;">'
    parts = [root]

    parts.append(f'<h2 class="recipe-name" itemprop="name">{escape(recipe.name)}</h2>')

    if recipe.description:
        # Already sanitized; re-run the allow-list so stored attributes stay safe
        parts.append(
            f'<div class="recipe-description" itemprop="description">{sanitize_rich_text(recipe.description)}</div>'
        )

    if recipe.images:
        parts.append('<div class="recipe-images">')
        for image in recipe.images[:MAX_MICRODATA_IMAGES]:
            parts.append(f'<img src="{_attr(image.url)}" alt="{_attr(image.alt)}" itemprop="image" />')
        parts.append("</div>")

    meta_rows = []
    if recipe.prep_time:
        meta_rows.append(_duration_row("prep-time", "Prep Time:", "prepTime", recipe.prep_time))
    if recipe.cook_time:
        meta_rows.append(_duration_row("cook-time", "Cook Time:", "cookTime", recipe.cook_time))
    if recipe.total_time:
        meta_rows.append(_duration_row("total-time", "Total Time:", "totalTime", recipe.total_time))
    if recipe.recipe_yield:
        meta_rows.append(_text_row("recipe-yield", "Yield:", "recipeYield", recipe.recipe_yield))
    if recipe.cuisine:
        meta_rows.append(_text_row("recipe-cuisine", "Cuisine:", "recipeCuisine", recipe.cuisine))
    if recipe.estimated_cost:
        meta_rows.append(_text_row("recipe-cost", "Estimated Cost:", "estimatedCost", recipe.estimated_cost))
    if meta_rows:
        parts.append('<div class="recipe-meta">')
        parts.extend(meta_rows)
        parts.append("</div>")

    if recipe.ingredients:
        parts.append('<div class="recipe-ingredients"><h3>Ingredients</h3><ul>')
        for ingredient in recipe.ingredients:
            parts.append(f'<li itemprop="recipeIngredient">{escape(ingredient)}</li>')
        parts.append("</ul></div>")

    if recipe.instructions:
        parts.append('<div class="recipe-instructions"><h3>Instructions</h3><ol>')
        for index, instruction in enumerate(recipe.instructions, start=1):
            parts.append(
                f'<li itemprop="recipeInstructions" itemscope itemtype="{SCHEMA_BASE}HowToStep">'
                f'{_meta("name", f"Step {index}")}'
                f'<span itemprop="text">{escape(instruction)}</span></li>'
            )
        parts.append("</ol></div>")

    if recipe.tools:
        parts.append('<div class="recipe-tools"><h3>Tools</h3><ul>')
        parts.extend(f'<li itemprop="tool">{escape(tool)}</li>' for tool in recipe.tools)
        parts.append("</ul></div>")

    if recipe.supplies:
        parts.append('<div class="recipe-supplies"><h3>Supplies</h3><ul>')
        parts.extend(f'<li itemprop="supply">{escape(supply)}</li>' for supply in recipe.supplies)
        parts.append("</ul></div>")

    nutrition = {key: value for key, value in recipe.nutrition.items() if value and key in NUTRITION_PROPERTIES}
    if nutrition:
        parts.append(
            f'<div itemprop="nutrition" itemscope itemtype="{SCHEMA_BASE}NutritionInformation" style="display: none;">'
        )
        parts.extend(_meta(key, value) for key, value in nutrition.items())
        parts.append("</div>")

    if recipe.video is not None and recipe.video.content_url:
        video = recipe.video
        parts.append(f'<div itemprop="video" itemscope itemtype="{SCHEMA_BASE}VideoObject" style="display: none;">')
        for prop, value in (
            ("name", video.name),
            ("description", video.description),
            ("contentUrl", video.content_url),
            ("thumbnailUrl", video.thumbnail_url),
            ("duration", video.duration),
        ):
            if value:
                parts.append(_meta(prop, value))
        parts.append("</div>")

    if rating is not None and rating.is_publishable():
        parts.append(f'<div itemprop="aggregateRating" itemscope itemtype="{SCHEMA_BASE}AggregateRating">')
        parts.append(_meta("ratingValue", _rating_value(rating)))
        parts.append(_meta("reviewCount", int(rating.review_count)))
        parts.append("</div>")

    # Author markup
    if recipe.author.name:
        parts.append(f'<div itemprop="author" itemscope itemtype="{SCHEMA_BASE}Person" style="display: none;">')
        parts.append(_meta("name", recipe.author.name))
        if recipe.author.url:
            parts.append(_meta("url", recipe.author.url))
        parts.append("</div>")

    # Additional hidden schema markup
    parts.extend(_meta("recipeCategory", category) for category in recipe.category)
    if recipe.keywords:
        parts.append(_meta("keywords", ", ".join(recipe.keywords)))
    if recipe.cooking_method:
        parts.append(_meta("cookingMethod", recipe.cooking_method))
    parts.extend(_meta("suitableForDiet", diet) for diet in recipe.suitable_for_diet)
    if recipe.date_published:
        parts.append(_meta("datePublished", recipe.date_published))

    parts.append("</div>")
    return "\n".join(parts)


def compile_recipe(
    recipe: Recipe,
    rating: Optional[RatingSource] = None,
    *,
    visible: bool = True,
) -> CompiledRecipe:
    """
    Compile microdata and JSON-LD for a recipe.

    ``rating`` is the stored rating pair for the target record, fetched once
    by the caller.

    Raises:
        CompilationError: if the JSON-LD document cannot be serialized.
    """
    json_ld = build_json_ld(recipe, rating)
    # Fail here rather than while writing the record body
    dump_json(json_ld)
    return CompiledRecipe(
        microdata=build_microdata(recipe, rating, visible=visible),
        json_ld=json_ld,
    )
