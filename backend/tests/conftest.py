"""
Shared fixtures for the recipe publishing tests.
"""

from __future__ import annotations

import pytest

from dm_recipes.store import InMemoryContentStore

AUTHOR_ID = 7
SITE = "https://example.com"
FIXED_NOW = "2024-05-01T12:00:00+00:00"


@pytest.fixture
def store() -> InMemoryContentStore:
    store = InMemoryContentStore(base_url=SITE)
    store.add_user(AUTHOR_ID, "Jane Cook")
    return store


@pytest.fixture
def identity(store):
    return store.get_author(AUTHOR_ID)


@pytest.fixture
def handler_config() -> dict:
    return {
        "post_type": "post",
        "post_status": "draft",
        "post_author": AUTHOR_ID,
        "taxonomy_category_selection": "ai_decides",
        "taxonomy_post_tag_selection": "skip",
    }


@pytest.fixture
def pancakes() -> dict:
    return {
        "name": "Title",
        "recipeName": "Pancakes",
        "recipeIngredient": ["1 cup flour", "2 eggs"],
        "recipeInstructions": ["Mix", "Cook"],
    }
