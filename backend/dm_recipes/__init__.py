"""
DM Recipes
==========

Publishes recipe content with embedded Schema.org ``Recipe`` metadata.

- recipe: sanitizer, normalizer, duration codec, structured data compiler, block codec
- taxonomy: term resolution for published records
- store: content store interface and backends
- publish: orchestrator, handler registry, trace log
- api: FastAPI routes
"""

__version__ = "1.0.0"
