"""
Recipe Normalizer
=================

Builds the canonical ``Recipe`` from a raw inbound payload.

The recipe name is the only hard requirement. Every other field falls back to
its zero value when absent or malformed. Author data always comes from the
publishing identity, never from the payload.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Tuple

from ..core.errors import RecipeValidationError
from ..schemas.recipe import PublishingIdentity, Recipe, RecipeImage, RecipeVideo
from .sanitizer import (
    FieldState,
    read_field,
    sanitize_duration,
    sanitize_mapping,
    sanitize_rich_text,
    sanitize_text,
    sanitize_text_list,
    sanitize_timestamp,
    sanitize_url,
)

logger = logging.getLogger(__name__)

TITLE_KEYS = ("post_title", "name")


def current_timestamp() -> str:
    """Current instant as ISO 8601 with offset, seconds precision."""
    return datetime.now().astimezone().isoformat(timespec="seconds")


def post_title_from(payload: Mapping[str, Any]) -> str:
    """Sanitized post title (``post_title`` or ``name``)."""
    return sanitize_text(read_field(payload, *TITLE_KEYS))


def _images(value: Any) -> Tuple[RecipeImage, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    images = []
    for item in value:
        if isinstance(item, Mapping):
            url = sanitize_url(item.get("url"))
            alt = sanitize_text(read_field(item, "alt", "altText", "alt_text"))
        else:
            url, alt = sanitize_url(item), ""
        if url:
            images.append(RecipeImage(url=url, alt=alt))
    return tuple(images)


def _video(value: Any) -> Optional[RecipeVideo]:
    if not isinstance(value, Mapping):
        return None
    content_url = sanitize_url(value.get("contentUrl"))
    if not content_url:
        return None
    return RecipeVideo(
        name=sanitize_text(value.get("name")),
        description=sanitize_text(value.get("description")),
        content_url=content_url,
        thumbnail_url=sanitize_url(value.get("thumbnailUrl")),
        duration=sanitize_duration(value.get("duration")),
    )


def _field(payload: Mapping[str, Any], clean: Callable[[Any], Any], key: str, *aliases: str) -> Any:
    """Cleaned value of one payload field; rejected values fall back to the zero value."""
    raw = read_field(payload, key, *aliases)
    if raw.state is FieldState.ABSENT:
        return clean(None)
    value = clean(raw.value)
    if raw.state is FieldState.PRESENT and not value:
        logger.info(f"Dropping invalid value for '{raw.key}'")
    return value


def _date_published(payload: Mapping[str, Any], now: str, date_source: str) -> str:
    if date_source == "current_date":
        return now
    return _field(payload, sanitize_timestamp, "datePublished") or now


def normalize_recipe(
    payload: Mapping[str, Any],
    identity: PublishingIdentity,
    *,
    now: Optional[str] = None,
    date_source: str = "source_date",
) -> Recipe:
    """
    Canonical recipe for one publish call.

    Args:
        payload: Raw inbound fields (Schema.org names).
        identity: Publishing identity; the only source of author data.
        now: Timestamp captured once by the caller; defaults to the current instant.
        date_source: ``source_date`` keeps a supplied, well-formed
            ``datePublished``, ``current_date`` always uses ``now``.

    Raises:
        RecipeValidationError: when neither ``recipeName`` nor the post title
            survives sanitization.
    """
    if not isinstance(payload, Mapping):
        payload = {}

    name = _field(payload, sanitize_text, "recipeName") or post_title_from(payload)
    if not name:
        raise RecipeValidationError("name")

    if "author" in payload:
        logger.debug(f"Ignoring payload-supplied author for recipe '{name}'")

    return Recipe(
        name=name,
        description=_field(payload, sanitize_rich_text, "description"),
        images=_field(payload, _images, "images"),
        prep_time=_field(payload, sanitize_duration, "prepTime"),
        cook_time=_field(payload, sanitize_duration, "cookTime"),
        total_time=_field(payload, sanitize_duration, "totalTime"),
        recipe_yield=_field(payload, sanitize_text, "recipeYield"),
        category=_field(payload, sanitize_text_list, "recipeCategory"),
        cuisine=_field(payload, sanitize_text, "recipeCuisine"),
        cooking_method=_field(payload, sanitize_text, "cookingMethod"),
        ingredients=_field(payload, sanitize_text_list, "recipeIngredient"),
        instructions=_field(payload, sanitize_text_list, "recipeInstructions"),
        keywords=_field(payload, sanitize_text_list, "keywords"),
        suitable_for_diet=_field(payload, sanitize_text_list, "suitableForDiet"),
        nutrition=_field(payload, sanitize_mapping, "nutrition"),
        video=_field(payload, _video, "video"),
        tools=_field(payload, sanitize_text_list, "tool"),
        supplies=_field(payload, sanitize_text_list, "supply"),
        estimated_cost=_field(payload, sanitize_text, "estimatedCost"),
        author=identity.as_author(),
        date_published=_date_published(payload, now or current_timestamp(), date_source),
    )
