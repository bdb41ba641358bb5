"""
Embedded recipe block
=====================

The canonical recipe is persisted inside the record body as a
comment-delimited block whose opening marker carries the recipe JSON:

    <!-- wp:dm-recipes/recipe-schema {"recipeName":"Pancakes",...} -->
    ...rendered markup...
    <!-- /wp:dm-recipes/recipe-schema -->

Re-parsing the JSON between the markers reconstructs the exact ``Recipe``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..core.errors import CompilationError
from ..schemas.recipe import RatingSource, Recipe
from .compiler import compile_recipe, dump_json

logger = logging.getLogger(__name__)

BLOCK_NAME = "dm-recipes/recipe-schema"

# Characters that could close the HTML comment or confuse an HTML parser
_COMMENT_ESCAPES = (
    ("--", "\\u002d\\u002d"),
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
)

BLOCK_RE = re.compile(
    r"<!--\s+wp:" + re.escape(BLOCK_NAME) + r"\s+(?P<attrs>\{.*?\})\s+(?P<void>/)?-->"
    r"(?(void)|(?P<inner>.*?)<!--\s+/wp:" + re.escape(BLOCK_NAME) + r"\s+-->)",
    re.DOTALL,
)


def encode_attributes(recipe: Recipe) -> str:
    """Block attribute JSON: UTF-8, forward slashes unescaped, comment-safe."""
    text = dump_json(recipe.to_attributes())
    for raw, escaped in _COMMENT_ESCAPES:
        text = text.replace(raw, escaped)
    return text


def serialize_block(recipe: Recipe, inner_html: str = "") -> str:
    """Opening marker with the recipe JSON, optional inner markup, closing marker."""
    opening = f"<!-- wp:{BLOCK_NAME} {encode_attributes(recipe)} -->"
    closing = f"<!-- /wp:{BLOCK_NAME} -->"
    if inner_html:
        return f"{opening}\n{inner_html}\n{closing}"
    return f"{opening}\n{closing}"


def _decode(attrs: str) -> Optional[Recipe]:
    try:
        return Recipe.model_validate(json.loads(attrs))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Skipping unreadable recipe block: {e}")
        return None


def parse_blocks(content: str) -> List[Recipe]:
    """Every readable recipe block in a record body, in document order."""
    recipes = []
    for match in BLOCK_RE.finditer(content or ""):
        recipe = _decode(match.group("attrs"))
        if recipe is not None:
            recipes.append(recipe)
    return recipes


def render_content(
    content: str,
    rating: Optional[RatingSource] = None,
    *,
    visible: bool = True,
    renderer: Optional[Callable[[Recipe], str]] = None,
) -> str:
    """
    Replace each recipe block with freshly rendered markup.

    The rating is read by the caller at display time, so a stored body always
    renders with the current review data.
    """
    def render(recipe: Recipe) -> str:
        return compile_recipe(recipe, rating, visible=visible).html()

    renderer = renderer or render

    def replace(match: re.Match) -> str:
        recipe = _decode(match.group("attrs"))
        if recipe is None:
            return match.group(0)
        try:
            return renderer(recipe)
        except CompilationError as e:
            logger.error(f"Failed to render recipe '{recipe.name}': {e}")
            return ""

    return BLOCK_RE.sub(replace, content or "")
