"""Content store selection from application settings."""

from __future__ import annotations

import logging

from ..core.config import Settings
from ..core.errors import ConfigurationError
from .base import ContentStore
from .memory import InMemoryContentStore
from .wordpress import WordPressRestStore

logger = logging.getLogger(__name__)


def build_store(settings: Settings) -> ContentStore:
    """Instantiate the configured store backend."""
    if settings.store_backend == "wordpress":
        if not (settings.wordpress_site_url and settings.wordpress_username and settings.wordpress_app_password):
            raise ConfigurationError(
                "WordPress store requires DM_RECIPES_WORDPRESS_SITE_URL, "
                "DM_RECIPES_WORDPRESS_USERNAME and DM_RECIPES_WORDPRESS_APP_PASSWORD"
            )
        logger.info(f"Using WordPress content store at {settings.wordpress_site_url}")
        return WordPressRestStore(
            settings.wordpress_site_url,
            settings.wordpress_username,
            settings.wordpress_app_password,
            timeout=settings.wordpress_timeout,
        )

    store = InMemoryContentStore()
    if settings.default_post_author:
        store.add_user(settings.default_post_author, "Recipe Author")
    logger.info("Using in-memory content store")
    return store
