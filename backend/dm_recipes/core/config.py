"""
DM Recipes Configuration
========================

Centralized application settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App info
    app_name: str = "DM Recipes"
    app_version: str = "1.0.0"
    debug: bool = False

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api"

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = False  # Must be False with wildcard origins
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Content store ("memory" for local runs, "wordpress" for a live site)
    store_backend: Literal["memory", "wordpress"] = "memory"
    wordpress_site_url: str = ""
    wordpress_username: str = ""
    wordpress_app_password: str = ""
    wordpress_timeout: float = 30.0

    # Default handler configuration, used when a publish call carries none
    default_post_type: str = "post"
    default_post_status: str = "draft"
    default_post_author: int | None = None
    default_post_date_source: Literal["current_date", "source_date"] = "source_date"
    default_taxonomies: dict[str, str] = {"category": "auto", "post_tag": "auto"}

    # Rendering
    microdata_visible: bool = True

    # Trace logging
    trace_log_path: Path = Path(__file__).parent.parent.parent / "logs" / "publish_traces.jsonl"

    model_config = SettingsConfigDict(
        env_prefix="DM_RECIPES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def default_handler_config(self) -> dict:
        """Handler configuration built from the defaults above."""
        config: dict = {
            "post_type": self.default_post_type,
            "post_status": self.default_post_status,
            "post_author": self.default_post_author,
            "post_date_source": self.default_post_date_source,
        }
        for taxonomy, selection in self.default_taxonomies.items():
            config[f"taxonomy_{taxonomy}_selection"] = selection
        return config


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
