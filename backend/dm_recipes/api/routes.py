"""
DM Recipes API Routes
=====================

Endpoints:
  - POST /publish                 (recipe_publish tool call)
  - GET  /handlers                (registered handler descriptors)
  - GET  /tools/recipe_publish    (AI tool definition)
  - GET  /records/{id}/render     (stored body with recipe blocks rendered)
  - GET  /health
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from ..core.config import get_settings
from ..core.errors import StoreError
from ..publish.registry import default_registry, recipe_publish_tool
from ..publish.trace_logger import get_trace_logger
from ..recipe.block import parse_blocks, render_content
from ..schemas.publish import HANDLER_KEY
from ..store.base import ContentStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recipes"])


def get_store(request: Request) -> ContentStore:
    """Content store attached to the application at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Content store is not configured",
        )
    return store


class PublishRequest(BaseModel):
    parameters: Dict[str, Any] = Field(default_factory=dict)
    handler_config: Optional[Dict[str, Any]] = None


class RenderResponse(BaseModel):
    post_id: int
    html: str
    recipes: List[dict]


@router.post("/publish")
def publish(request: PublishRequest, store: ContentStore = Depends(get_store)):
    """
    Execute one recipe_publish call.

    Always answers 200: a failed publish is a well-formed result with
    ``success: false``.
    """
    settings = get_settings()
    handler_config = request.handler_config or settings.default_handler_config()
    descriptor = default_registry.get(HANDLER_KEY)
    publisher = descriptor.build(
        store,
        trace_logger=get_trace_logger(),
        visible=settings.microdata_visible,
    )
    result = publisher.publish(request.parameters, handler_config)
    return result.to_response()


@router.get("/handlers")
def list_handlers():
    return {"handlers": [descriptor.to_response() for descriptor in default_registry]}


@router.get("/tools/recipe_publish")
def get_recipe_publish_tool():
    """Tool definition bound to the default handler configuration."""
    return recipe_publish_tool(get_settings().default_handler_config())


@router.get("/records/{record_id}/render", response_model=RenderResponse)
def render_record(record_id: int, store: ContentStore = Depends(get_store)):
    """Stored record body with every recipe block rendered for display."""
    try:
        content = store.get_record_content(record_id)
        if content is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Record {record_id} not found")
        rating = store.get_rating(record_id)
    except StoreError as e:
        logger.error(f"Failed to load record {record_id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Content store error: {e.message}",
        )

    html = render_content(content, rating, visible=get_settings().microdata_visible)
    return RenderResponse(
        post_id=record_id,
        html=html,
        recipes=[recipe.to_attributes() for recipe in parse_blocks(content)],
    )


@router.get("/health")
def health(request: Request):
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "store": settings.store_backend,
        "store_ready": getattr(request.app.state, "store", None) is not None,
    }
