"""
Content Store Module
====================

Collaborator interface to the host content system plus its implementations.
"""

from .base import ContentStore, RecordDraft, RecordLinks, Term
from .factory import build_store
from .memory import InMemoryContentStore
from .wordpress import WordPressRestStore

__all__ = [
    "build_store",
    "ContentStore",
    "RecordDraft",
    "RecordLinks",
    "Term",
    "InMemoryContentStore",
    "WordPressRestStore",
]
