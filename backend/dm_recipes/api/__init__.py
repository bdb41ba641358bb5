"""HTTP surface of the recipe publisher."""

from .routes import router

__all__ = ["router"]
