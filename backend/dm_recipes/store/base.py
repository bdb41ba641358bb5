"""
Content Store Interface
=======================

The narrow surface the publisher needs from the host content system.
Implementations raise ``StoreError`` when the backend refuses an operation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..schemas.recipe import PublishingIdentity, RatingSource


@dataclass(frozen=True)
class Term:
    term_id: int
    name: str
    taxonomy: str


@dataclass(frozen=True)
class RecordDraft:
    """Fields of a content record at creation time."""

    title: str
    content: str
    status: str
    author_id: int
    post_type: str
    date: Optional[str] = None


@dataclass(frozen=True)
class RecordLinks:
    url: str
    edit_url: str


class ContentStore(ABC):
    """Records, taxonomy terms and rating metadata of the host system."""

    # Records

    @abstractmethod
    def create_record(self, draft: RecordDraft) -> int:
        """Create a record and return its id."""

    @abstractmethod
    def update_record_content(self, record_id: int, content: str) -> None:
        """Replace the body of an existing record."""

    @abstractmethod
    def delete_record(self, record_id: int) -> None:
        """Permanently delete a record."""

    @abstractmethod
    def get_record_content(self, record_id: int) -> Optional[str]:
        """Stored body of a record, or None when it does not exist."""

    @abstractmethod
    def record_links(self, record_id: int) -> RecordLinks:
        """Public permalink and edit link of a record."""

    @abstractmethod
    def get_rating(self, record_id: int) -> RatingSource:
        """Stored rating/review pair of a record (empty when none)."""

    # Schema

    @abstractmethod
    def post_type_exists(self, post_type: str) -> bool:
        ...

    @abstractmethod
    def get_author(self, user_id: int) -> Optional[PublishingIdentity]:
        ...

    # Taxonomies

    @abstractmethod
    def taxonomy_exists(self, taxonomy: str) -> bool:
        ...

    @abstractmethod
    def get_term(self, taxonomy: str, term_id: int) -> Optional[Term]:
        ...

    @abstractmethod
    def find_term_by_name(self, taxonomy: str, name: str) -> Optional[Term]:
        """Existing term whose name matches exactly."""

    @abstractmethod
    def create_term(self, taxonomy: str, name: str) -> Term:
        """Create a term; a term that already exists under ``name`` is returned instead."""

    @abstractmethod
    def set_record_terms(self, record_id: int, taxonomy: str, term_ids: Sequence[int]) -> List[int]:
        """Replace the record's terms in ``taxonomy``; returns the assigned ids."""
