"""
DM Recipes Core
===============

Configuration and error taxonomy.
"""

from .config import Settings, get_settings
from .errors import (
    CompilationError,
    ConfigurationError,
    RecipePublishError,
    RecipeValidationError,
    RecordCreationError,
    StoreError,
    TaxonomyAssignmentError,
)

__all__ = [
    "Settings",
    "get_settings",
    "RecipePublishError",
    "ConfigurationError",
    "RecipeValidationError",
    "CompilationError",
    "RecordCreationError",
    "TaxonomyAssignmentError",
    "StoreError",
]
