"""
Recipe Publisher
================

Drives one publish call through its states:

    VALIDATING -> COMPILING -> CREATING_RECORD -> ASSIGNING_TAXONOMIES -> DONE
                                                   (ABORTED on fatal error)

Record creation runs as a saga: each completed step registers an undo, and
undos run in reverse order when a later step fails. Taxonomy assignment runs
after the record is final and never aborts the publish.

No exception leaves ``publish()``; every failure becomes a ``PublishResult``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..core.errors import (
    ConfigurationError,
    RecipePublishError,
    RecordCreationError,
    StoreError,
)
from ..recipe.block import serialize_block
from ..recipe.compiler import compile_recipe
from ..recipe.normalizer import current_timestamp, normalize_recipe, post_title_from
from ..recipe.sanitizer import sanitize_rich_text
from ..schemas.publish import (
    HANDLER_KEY,
    HandlerConfig,
    PublishResult,
    PublishState,
    TaxonomyAssignment,
)
from ..schemas.recipe import PublishingIdentity, Recipe
from ..store.base import ContentStore, RecordDraft
from ..taxonomy.resolver import TaxonomyResolver, candidate_param_name
from .trace_logger import PublishTraceLogger

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Recipe post created successfully"


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ())) or "handler_config"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


def load_handler_config(raw: Any) -> HandlerConfig:
    """
    Parse raw handler settings.

    Raises:
        ConfigurationError: when settings are missing or illegal.
    """
    if isinstance(raw, HandlerConfig):
        return raw
    if not isinstance(raw, Mapping) or not raw:
        raise ConfigurationError("Missing handler configuration")
    nested = raw.get(HANDLER_KEY)
    if isinstance(nested, Mapping) and not nested:
        raise ConfigurationError(f"Empty handler configuration for {HANDLER_KEY}")
    try:
        return HandlerConfig.model_validate(dict(raw))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid handler configuration: {_describe_validation_error(e)}") from e


@dataclass
class _Compensation:
    description: str
    undo: Callable[[], None]


class PublishSaga:
    """Ordered compensations for the record-creation steps."""

    def __init__(self):
        self._steps: List[_Compensation] = []

    def register(self, description: str, undo: Callable[[], None]) -> None:
        self._steps.append(_Compensation(description, undo))

    def compensate(self) -> List[str]:
        """Run undos newest first; returns the failures (empty when clean)."""
        failures = []
        while self._steps:
            step = self._steps.pop()
            try:
                step.undo()
                logger.info(f"Compensated: {step.description}")
            except StoreError as e:
                logger.error(f"Compensation failed ({step.description}): {e.message}")
                failures.append(f"{step.description}: {e.message}")
        return failures


class RecipePublisher:
    """
    Publishes recipe payloads into a content store.

    Usage:
        publisher = RecipePublisher(store)
        result = publisher.publish(parameters, handler_config)
        return result.to_response()
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        clock: Optional[Callable[[], str]] = None,
        trace_logger: Optional[PublishTraceLogger] = None,
        visible: bool = True,
    ):
        self.store = store
        self.clock = clock or current_timestamp
        self.trace_logger = trace_logger
        self.visible = visible
        self.resolver = TaxonomyResolver(store)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def publish(self, payload: Mapping[str, Any], config: Any) -> PublishResult:
        request_id = uuid.uuid4().hex[:8]
        if not isinstance(payload, Mapping):
            payload = {}
        state = PublishState.VALIDATING
        recipe: Optional[Recipe] = None

        try:
            handler_config, identity = self._validate(config)

            state = PublishState.COMPILING
            recipe = normalize_recipe(
                payload,
                identity,
                now=self.clock(),
                date_source=handler_config.post_date_source,
            )
            # Surface serialization problems before anything is written
            compile_recipe(recipe, None, visible=self.visible)

            state = PublishState.CREATING_RECORD
            record_id = self._create_record(payload, recipe, handler_config)

            state = PublishState.ASSIGNING_TAXONOMIES
            assignments = self._assign_taxonomies(record_id, payload, handler_config)

            links = self.store.record_links(record_id)
            result = PublishResult(
                success=True,
                state=PublishState.DONE,
                message=SUCCESS_MESSAGE,
                content_id=record_id,
                url=links.url,
                edit_url=links.edit_url,
                taxonomy_assignments=assignments,
            )
            logger.info(f"[{request_id}] Published recipe '{recipe.name}' as record {record_id}")

        except RecipePublishError as e:
            logger.warning(f"[{request_id}] Publish aborted while {state.value}: {e.message}")
            result = self._failure(e.message, e.kind)
        except Exception as e:
            logger.error(f"[{request_id}] Unexpected publish failure while {state.value}: {e}", exc_info=True)
            result = self._failure(f"Unexpected error: {e}", "unexpected_error")

        if self.trace_logger is not None:
            self.trace_logger.log_publish(
                request_id,
                recipe.name if recipe else None,
                result,
                metadata={"failed_state": state.value} if not result.success else None,
            )
        return result

    @staticmethod
    def _failure(message: str, kind: str) -> PublishResult:
        return PublishResult(success=False, state=PublishState.ABORTED, error=message, error_kind=kind)

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def _validate(self, raw_config: Any) -> Tuple[HandlerConfig, PublishingIdentity]:
        config = load_handler_config(raw_config)
        try:
            if not self.store.post_type_exists(config.post_type):
                raise ConfigurationError(f"Post type '{config.post_type}' does not exist")
            identity = self.store.get_author(config.post_author)
        except StoreError as e:
            raise ConfigurationError(f"Could not verify handler configuration: {e.message}") from e
        if identity is None:
            raise ConfigurationError(f"Post author {config.post_author} does not exist")
        return config, identity

    def _create_record(self, payload: Mapping[str, Any], recipe: Recipe, config: HandlerConfig) -> int:
        saga = PublishSaga()
        narrative = sanitize_rich_text(payload.get("post_content"))
        draft = RecordDraft(
            title=post_title_from(payload) or recipe.name,
            content=narrative,
            status=config.post_status,
            author_id=config.post_author,
            post_type=config.post_type,
            date=recipe.date_published or None,
        )

        try:
            record_id = self.store.create_record(draft)
            saga.register(f"delete record {record_id}", lambda: self.store.delete_record(record_id))

            rating = self.store.get_rating(record_id)
            compiled = compile_recipe(recipe, rating, visible=self.visible)
            block = serialize_block(recipe, compiled.html())
            body = f"{narrative}\n\n{block}" if narrative else block
            self.store.update_record_content(record_id, body)
        except Exception as e:
            failures = saga.compensate()
            if isinstance(e, StoreError):
                error: RecipePublishError = RecordCreationError(f"Failed to create post: {e.message}")
            elif isinstance(e, RecipePublishError):
                error = e
            else:
                logger.error(f"Unexpected error while writing record: {e}", exc_info=True)
                error = RecordCreationError(f"Failed to create post: {e}")
            if failures:
                error = type(error)(f"{error.message} (rollback failed: {'; '.join(failures)})")
            raise error from e
        return record_id

    def _assign_taxonomies(
        self, record_id: int, payload: Mapping[str, Any], config: HandlerConfig
    ) -> List[TaxonomyAssignment]:
        assignments = []
        for taxonomy, selection in config.taxonomies.items():
            candidates = payload.get(candidate_param_name(taxonomy))
            try:
                assignment = self.resolver.resolve(record_id, taxonomy, selection, candidates)
            except Exception as e:
                logger.error(f"Taxonomy '{taxonomy}' raised unexpectedly: {e}", exc_info=True)
                assignment = TaxonomyAssignment(
                    taxonomy=taxonomy,
                    mode=selection.mode,
                    term_id=selection.term_id,
                    outcome="error",
                    detail=str(e),
                )
            if assignment is not None:
                assignments.append(assignment)
        return assignments
