"""
Tests for the publish orchestrator (state machine + rollback).
"""

import json
from typing import List

import pytest

from dm_recipes.core.errors import StoreError
from dm_recipes.publish.orchestrator import PublishSaga, RecipePublisher
from dm_recipes.recipe.block import parse_blocks
from dm_recipes.schemas.publish import PublishState
from dm_recipes.schemas.recipe import RatingSource
from dm_recipes.store import InMemoryContentStore

from conftest import AUTHOR_ID, FIXED_NOW


class FailingUpdateStore(InMemoryContentStore):
    """Creates records fine but refuses to attach markup afterwards."""

    def __init__(self, *, fail_delete: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.deleted: List[int] = []
        self.fail_delete = fail_delete

    def update_record_content(self, record_id, content):
        raise StoreError("update refused")

    def delete_record(self, record_id):
        self.deleted.append(record_id)
        if self.fail_delete:
            raise StoreError("delete refused")
        super().delete_record(record_id)


@pytest.fixture
def publisher(store):
    return RecipePublisher(store, clock=lambda: FIXED_NOW)


def stored_json_ld(store, record_id) -> dict:
    content = store.get_record_content(record_id)
    script = content.split('<script type="application/ld+json">', 1)[1].split("</script>", 1)[0]
    return json.loads(script)


def test_end_to_end_pancakes(store, publisher, pancakes, handler_config):
    result = publisher.publish(pancakes, handler_config)

    assert result.success
    assert result.state is PublishState.DONE
    assert result.content_id in store.records

    record = store.records[result.content_id]
    assert record.draft.title == "Title"
    assert record.draft.status == "draft"
    assert record.draft.author_id == AUTHOR_ID

    json_ld = stored_json_ld(store, result.content_id)
    assert json_ld["recipeIngredient"] == ["1 cup flour", "2 eggs"]
    assert [step["name"] for step in json_ld["recipeInstructions"]] == ["Step 1", "Step 2"]
    assert all(step["@type"] == "HowToStep" for step in json_ld["recipeInstructions"])
    assert json_ld["author"]["name"] == "Jane Cook"
    assert json_ld["datePublished"] == FIXED_NOW

    response = result.to_response()
    assert response["success"] is True
    assert response["message"] == "Recipe post created successfully"
    assert response["post_id"] == result.content_id
    assert response["post_url"] == f"https://example.com/?p={result.content_id}"
    assert response["edit_url"] == f"https://example.com/wp-admin/post.php?post={result.content_id}&action=edit"
    # No category candidates in the payload, tags skipped
    assert response["taxonomy_results"] == {}


def test_body_is_narrative_plus_block(store, publisher, pancakes, handler_config):
    payload = dict(pancakes, post_content="<p>My favourite breakfast.</p><script>x()</script>")
    result = publisher.publish(payload, handler_config)

    content = store.get_record_content(result.content_id)
    assert content.startswith("<p>My favourite breakfast.</p>\n\n<!-- wp:dm-recipes/recipe-schema ")
    assert "x()" not in content
    assert [r.name for r in parse_blocks(content)] == ["Pancakes"]


def test_block_carries_stored_rating(store, pancakes, handler_config, monkeypatch):
    publisher = RecipePublisher(store, clock=lambda: FIXED_NOW)
    monkeypatch.setattr(store, "get_rating", lambda record_id: RatingSource(rating_value=4.25, review_count=8))
    result = publisher.publish(pancakes, handler_config)
    json_ld = stored_json_ld(store, result.content_id)
    assert json_ld["aggregateRating"] == {"@type": "AggregateRating", "ratingValue": 4.25, "reviewCount": 8}


def test_payload_rating_is_ignored(store, publisher, pancakes, handler_config):
    payload = dict(pancakes, aggregateRating={"ratingValue": 5, "reviewCount": 100}, rating_value=5)
    result = publisher.publish(payload, handler_config)
    assert "aggregateRating" not in stored_json_ld(store, result.content_id)


def test_taxonomies_are_assigned(store, publisher, pancakes, handler_config):
    config = dict(handler_config, taxonomy_post_tag_selection="auto")
    payload = dict(pancakes, category=["Breakfast", "Breakfast"], tags=["easy", "sweet"])

    result = publisher.publish(payload, config)
    response = result.to_response()

    assert response["taxonomy_results"]["category"]["terms"] == ["Breakfast"]
    assert response["taxonomy_results"]["post_tag"]["terms"] == ["easy", "sweet"]
    assert response["taxonomy_results"]["post_tag"]["term_count"] == 2
    assert set(store.records[result.content_id].terms) == {"category", "post_tag"}


def test_taxonomy_errors_do_not_abort(store, publisher, pancakes, handler_config):
    config = dict(handler_config, taxonomy_category_selection=999, taxonomy_post_tag_selection="auto")
    payload = dict(pancakes, tags=["easy"])

    result = publisher.publish(payload, config)

    assert result.success
    assert result.content_id in store.records
    report = result.to_response()["taxonomy_results"]
    assert report["category"]["success"] is False
    assert "999" in report["category"]["error"]
    assert report["post_tag"]["success"] is True


def test_unexpected_taxonomy_exception_is_reported(store, publisher, pancakes, handler_config, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(store, "find_term_by_name", explode)
    result = publisher.publish(dict(pancakes, category=["Breakfast"]), handler_config)

    assert result.success
    assert result.to_response()["taxonomy_results"]["category"] == {
        "success": False,
        "taxonomy": "category",
        "mode": "auto",
        "term_ids": [],
        "term_count": 0,
        "terms": [],
        "error": "boom",
    }


def test_missing_name_is_validation_error(store, publisher, handler_config):
    result = publisher.publish({"recipeIngredient": ["flour"]}, handler_config)

    assert not result.success
    assert result.state is PublishState.ABORTED
    assert result.error_kind == "validation_error"
    assert result.to_response() == {"success": False, "error": "Missing required field: name"}
    assert store.records == {}


@pytest.mark.parametrize(
    "config, fragment",
    [
        (None, "Missing handler configuration"),
        ({}, "Missing handler configuration"),
        ({"wordpress_recipe_publish": {}}, "Empty handler configuration"),
        ({"post_status": "draft", "post_author": AUTHOR_ID}, "post_type"),
        ({"post_type": "post", "post_author": AUTHOR_ID}, "post_status"),
        ({"post_type": "post", "post_status": "draft"}, "post_author"),
        ({"post_type": "post", "post_status": "scheduled", "post_author": AUTHOR_ID}, "post_status"),
        ({"post_type": "recipe", "post_status": "draft", "post_author": AUTHOR_ID}, "Post type 'recipe' does not exist"),
        ({"post_type": "post", "post_status": "draft", "post_author": 999}, "Post author 999 does not exist"),
        (
            {"post_type": "post", "post_status": "draft", "post_author": AUTHOR_ID, "taxonomy_category_selection": "maybe"},
            "invalid taxonomy selection",
        ),
    ],
)
def test_configuration_errors_create_nothing(store, publisher, pancakes, config, fragment):
    result = publisher.publish(pancakes, config)

    assert not result.success
    assert result.error_kind == "configuration_error"
    assert fragment in result.error
    assert store.records == {}


def test_nested_handler_config_is_unwrapped(store, publisher, pancakes, handler_config):
    result = publisher.publish(pancakes, {"wordpress_recipe_publish": handler_config})
    assert result.success


def test_published_status_alias(store, publisher, pancakes, handler_config):
    result = publisher.publish(pancakes, dict(handler_config, post_status="published"))
    assert store.records[result.content_id].draft.status == "publish"


def test_current_date_source(store, publisher, pancakes, handler_config):
    payload = dict(pancakes, datePublished="2020-01-01T00:00:00+00:00")

    kept = publisher.publish(payload, dict(handler_config, post_date_source="source_date"))
    replaced = publisher.publish(payload, dict(handler_config, post_date_source="current_date"))

    assert stored_json_ld(store, kept.content_id)["datePublished"] == "2020-01-01T00:00:00+00:00"
    assert stored_json_ld(store, replaced.content_id)["datePublished"] == FIXED_NOW
    assert store.records[replaced.content_id].draft.date == FIXED_NOW


def test_rollback_when_markup_attachment_fails(pancakes, handler_config):
    store = FailingUpdateStore(base_url="https://example.com")
    store.add_user(AUTHOR_ID, "Jane Cook")

    result = RecipePublisher(store, clock=lambda: FIXED_NOW).publish(pancakes, handler_config)

    assert not result.success
    assert result.error_kind == "record_creation_error"
    assert "update refused" in result.error
    assert store.deleted == [1]
    assert store.records == {}


def test_failed_rollback_is_reported(pancakes, handler_config):
    store = FailingUpdateStore(base_url="https://example.com", fail_delete=True)
    store.add_user(AUTHOR_ID, "Jane Cook")

    result = RecipePublisher(store).publish(pancakes, handler_config)

    assert not result.success
    assert "rollback failed" in result.error
    assert "delete refused" in result.error


def test_create_failure_needs_no_rollback(store, publisher, pancakes, handler_config, monkeypatch):
    def refuse(draft):
        raise StoreError("insert refused")

    deleted = []
    monkeypatch.setattr(store, "create_record", refuse)
    monkeypatch.setattr(store, "delete_record", deleted.append)

    result = publisher.publish(pancakes, handler_config)

    assert not result.success
    assert result.error == "Failed to create post: insert refused"
    assert deleted == []


def test_unexpected_error_is_compensated(store, publisher, pancakes, handler_config, monkeypatch):
    def explode(record_id):
        raise RuntimeError("rating backend down")

    monkeypatch.setattr(store, "get_rating", explode)
    result = publisher.publish(pancakes, handler_config)

    assert not result.success
    assert result.error_kind == "record_creation_error"
    assert store.records == {}


def test_non_mapping_payload_fails_cleanly(store, publisher, handler_config):
    result = publisher.publish("not a payload", handler_config)
    assert not result.success
    assert result.error_kind == "validation_error"


def test_saga_runs_compensations_in_reverse():
    calls = []
    saga = PublishSaga()
    saga.register("first", lambda: calls.append("first"))
    saga.register("second", lambda: calls.append("second"))

    assert saga.compensate() == []
    assert calls == ["second", "first"]
    # Compensations run once
    assert saga.compensate() == []
    assert calls == ["second", "first"]
