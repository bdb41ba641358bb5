"""
Tests for recipe normalization.
"""

import re

import pytest

from dm_recipes.core.errors import RecipeValidationError
from dm_recipes.recipe.normalizer import normalize_recipe
from dm_recipes.schemas.recipe import RecipeAuthor, RecipeImage

from conftest import FIXED_NOW


def test_minimal_payload_yields_zero_values(identity):
    recipe = normalize_recipe({"recipeName": "Pancakes"}, identity, now=FIXED_NOW)

    assert recipe.name == "Pancakes"
    assert recipe.description == ""
    assert recipe.images == ()
    assert recipe.prep_time == recipe.cook_time == recipe.total_time == ""
    assert recipe.category == ()
    assert recipe.ingredients == ()
    assert recipe.instructions == ()
    assert recipe.nutrition == {}
    assert recipe.video is None
    assert recipe.tools == recipe.supplies == ()
    assert recipe.estimated_cost == ""
    assert recipe.author == RecipeAuthor(name="Jane Cook", url="https://example.com/author/7/")
    assert recipe.date_published == FIXED_NOW


def test_payload_author_is_ignored(identity):
    payload = {
        "recipeName": "Pancakes",
        "author": {"name": "Mallory", "url": "https://evil.example"},
    }
    recipe = normalize_recipe(payload, identity, now=FIXED_NOW)
    assert recipe.author.name == "Jane Cook"
    assert recipe.author.url == "https://example.com/author/7/"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"recipeName": ""},
        {"recipeName": "   ", "post_title": "<b></b>"},
        {"recipeInstructions": ["Mix"]},
    ],
)
def test_missing_name_fails(identity, payload):
    with pytest.raises(RecipeValidationError) as exc_info:
        normalize_recipe(payload, identity, now=FIXED_NOW)
    assert exc_info.value.field == "name"
    assert exc_info.value.kind == "validation_error"


def test_name_falls_back_to_post_title(identity):
    assert normalize_recipe({"post_title": "Crêpes"}, identity, now=FIXED_NOW).name == "Crêpes"
    assert normalize_recipe({"name": "Waffles"}, identity, now=FIXED_NOW).name == "Waffles"


def test_recipe_name_wins_over_title(identity):
    recipe = normalize_recipe({"name": "Title", "recipeName": "Pancakes"}, identity, now=FIXED_NOW)
    assert recipe.name == "Pancakes"


def test_fields_are_sanitized(identity):
    payload = {
        "recipeName": "<h1>Pan</h1>cakes",
        "description": '<p style="color:red">Light &amp; <em>fluffy</em></p><script>x()</script>',
        "recipeIngredient": ["1 cup flour", "", "<b>2 eggs</b>"],
        "recipeInstructions": "Mix everything",
        "recipeCategory": ["Breakfast", "Breakfast"],
        "prepTime": "PT10M",
        "recipeYield": 4,
    }
    recipe = normalize_recipe(payload, identity, now=FIXED_NOW)

    assert recipe.name == "Pancakes"
    assert recipe.description == "<p>Light &amp; <em>fluffy</em></p>"
    assert recipe.ingredients == ("1 cup flour", "2 eggs")
    # Not an array
    assert recipe.instructions == ()
    # Insertion order kept, no dedup
    assert recipe.category == ("Breakfast", "Breakfast")
    assert recipe.prep_time == "PT10M"
    assert recipe.recipe_yield == "4"


def test_images(identity):
    payload = {
        "recipeName": "Pancakes",
        "images": [
            {"url": "https://example.com/1.jpg", "alt": "Stack"},
            {"url": "not a url", "alt": "Broken"},
            "https://example.com/2.jpg",
            {"alt": "No url"},
        ],
    }
    recipe = normalize_recipe(payload, identity, now=FIXED_NOW)
    assert recipe.images == (
        RecipeImage(url="https://example.com/1.jpg", alt="Stack"),
        RecipeImage(url="https://example.com/2.jpg", alt=""),
    )


def test_nutrition_kept_only_with_values(identity):
    empty = normalize_recipe({"recipeName": "A", "nutrition": {"calories": "", "fatContent": None}}, identity)
    assert empty.nutrition == {}

    full = normalize_recipe({"recipeName": "A", "nutrition": {"calories": "250", "fatContent": ""}}, identity)
    assert full.nutrition == {"calories": "250"}


def test_video_requires_content_url(identity):
    without = normalize_recipe({"recipeName": "A", "video": {"name": "Clip", "contentUrl": ""}}, identity)
    assert without.video is None

    video = {
        "name": "Clip",
        "contentUrl": "https://video.example.com/clip.mp4",
        "thumbnailUrl": "javascript:alert(1)",
    }
    recipe = normalize_recipe({"recipeName": "A", "video": video}, identity)
    assert recipe.video.content_url == "https://video.example.com/clip.mp4"
    assert recipe.video.thumbnail_url == ""


def test_date_published_source_date_keeps_supplied_value(identity):
    payload = {"recipeName": "A", "datePublished": "2020-01-01T08:00:00+02:00"}
    recipe = normalize_recipe(payload, identity, now=FIXED_NOW, date_source="source_date")
    assert recipe.date_published == "2020-01-01T08:00:00+02:00"


def test_date_published_current_date_ignores_supplied_value(identity):
    payload = {"recipeName": "A", "datePublished": "2020-01-01T08:00:00+02:00"}
    recipe = normalize_recipe(payload, identity, now=FIXED_NOW, date_source="current_date")
    assert recipe.date_published == FIXED_NOW


def test_date_published_defaults_to_now_with_offset(identity):
    recipe = normalize_recipe({"recipeName": "A"}, identity)
    assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[+-]\d{2}:\d{2}$", recipe.date_published)


def test_non_mapping_payload_fails_validation(identity):
    with pytest.raises(RecipeValidationError):
        normalize_recipe(["recipeName", "Pancakes"], identity)


def test_free_text_timings_are_dropped(identity):
    payload = {
        "recipeName": "A",
        "prepTime": "about 20 minutes",
        "cookTime": "PT20M",
        "totalTime": "30",
        "video": {"contentUrl": "https://video.example.com/clip.mp4", "duration": "two minutes"},
    }
    recipe = normalize_recipe(payload, identity, now=FIXED_NOW)

    assert recipe.prep_time == ""
    assert recipe.cook_time == "PT20M"
    assert recipe.total_time == ""
    assert recipe.video.duration == ""


def test_malformed_date_published_falls_back_to_now(identity):
    payload = {"recipeName": "A", "datePublished": "last Tuesday"}
    recipe = normalize_recipe(payload, identity, now=FIXED_NOW, date_source="source_date")
    assert recipe.date_published == FIXED_NOW


def test_unknown_nutrition_keys_are_dropped(identity):
    payload = {"recipeName": "A", "nutrition": {"@type": "Evil", "calories": "100", "mood": "happy"}}
    recipe = normalize_recipe(payload, identity, now=FIXED_NOW)
    assert recipe.nutrition == {"calories": "100"}


def test_rejected_present_field_is_logged(identity, caplog):
    with caplog.at_level("INFO", logger="dm_recipes.recipe.normalizer"):
        normalize_recipe({"recipeName": "A", "prepTime": "soon", "cookTime": ""}, identity, now=FIXED_NOW)

    messages = [record.getMessage() for record in caplog.records]
    assert "Dropping invalid value for 'prepTime'" in messages
    # Empty values are not invalid
    assert not any("cookTime" in message for message in messages)
