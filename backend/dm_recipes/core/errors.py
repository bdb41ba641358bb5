"""
Publish Errors
==============

Exception taxonomy for the publish pipeline.

Fatal errors (configuration, validation, compilation, record creation) stop a
publish and become a single failure result. Taxonomy errors are non-fatal and
are reported alongside a successful result.
"""

from __future__ import annotations

from typing import Optional


class RecipePublishError(Exception):
    """Base class for every error raised by the publish pipeline."""

    kind = "publish_error"
    fatal = True

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(RecipePublishError):
    """A required handler setting is missing or illegal."""

    kind = "configuration_error"


class RecipeValidationError(RecipePublishError):
    """A required recipe field is missing after sanitization."""

    kind = "validation_error"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required field: {field}")
        self.field = field


class CompilationError(RecipePublishError):
    """Structured data could not be serialized."""

    kind = "compilation_error"


class RecordCreationError(RecipePublishError):
    """The content store failed to create or update the record."""

    kind = "record_creation_error"


class TaxonomyAssignmentError(RecipePublishError):
    """A single taxonomy could not be resolved or assigned."""

    kind = "taxonomy_assignment_error"
    fatal = False


class StoreError(Exception):
    """Raised by content store implementations when the backend refuses an operation."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body or {}
