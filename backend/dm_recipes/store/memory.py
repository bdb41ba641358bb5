"""
In-memory content store.

Used for local runs and tests. Every map is guarded by one re-entrant lock so that term lookup-or-create,
record writes and the reads racing them are atomic within the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from itertools import count
from threading import RLock
from typing import Dict, List, Optional, Sequence

from ..core.errors import StoreError
from ..schemas.recipe import PublishingIdentity, RatingSource
from .base import ContentStore, RecordDraft, RecordLinks, Term

logger = logging.getLogger(__name__)


@dataclass
class StoredRecord:
    record_id: int
    draft: RecordDraft
    content: str
    terms: Dict[str, List[int]] = field(default_factory=dict)
    meta: Dict[str, str] = field(default_factory=dict)


class InMemoryContentStore(ContentStore):
    """Dictionary-backed store with WordPress-like defaults."""

    def __init__(
        self,
        *,
        base_url: str = "http://localhost",
        post_types: Sequence[str] = ("post", "page"),
        taxonomies: Sequence[str] = ("category", "post_tag"),
    ):
        self.base_url = base_url.rstrip("/")
        self.post_types = set(post_types)
        self.taxonomies = set(taxonomies)
        self.records: Dict[int, StoredRecord] = {}
        self.users: Dict[int, PublishingIdentity] = {}
        self.terms: Dict[int, Term] = {}
        self._record_ids = count(1)
        self._term_ids = count(1)
        self._lock = RLock()

    # ------------------------------------------------------------------
    # Fixtures
    # ------------------------------------------------------------------

    def add_user(self, user_id: int, display_name: str, profile_url: str = "") -> PublishingIdentity:
        identity = PublishingIdentity(
            user_id=user_id,
            display_name=display_name,
            profile_url=profile_url or f"{self.base_url}/author/{user_id}/",
        )
        self.users[user_id] = identity
        return identity

    def set_rating(self, record_id: int, rating_value: float, review_count: int) -> None:
        with self._lock:
            record = self._require(record_id)
            record.meta["rating_value"] = str(rating_value)
            record.meta["review_count"] = str(review_count)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _require(self, record_id: int) -> StoredRecord:
        record = self.records.get(record_id)
        if record is None:
            raise StoreError(f"Record {record_id} not found", status_code=404)
        return record

    def create_record(self, draft: RecordDraft) -> int:
        with self._lock:
            record_id = next(self._record_ids)
            self.records[record_id] = StoredRecord(record_id=record_id, draft=draft, content=draft.content)
        logger.debug(f"Created record {record_id} ({draft.post_type})")
        return record_id

    def update_record_content(self, record_id: int, content: str) -> None:
        with self._lock:
            record = self._require(record_id)
            record.content = content
            record.draft = replace(record.draft, content=content)

    def delete_record(self, record_id: int) -> None:
        with self._lock:
            self._require(record_id)
            del self.records[record_id]
        logger.debug(f"Deleted record {record_id}")

    def get_record_content(self, record_id: int) -> Optional[str]:
        with self._lock:
            record = self.records.get(record_id)
        return record.content if record else None

    def record_links(self, record_id: int) -> RecordLinks:
        return RecordLinks(
            url=f"{self.base_url}/?p={record_id}",
            edit_url=f"{self.base_url}/wp-admin/post.php?post={record_id}&action=edit",
        )

    def get_rating(self, record_id: int) -> RatingSource:
        with self._lock:
            record = self.records.get(record_id)
            meta = dict(record.meta) if record is not None else {}
        try:
            value = float(meta["rating_value"]) if meta.get("rating_value") else None
            reviews = int(meta["review_count"]) if meta.get("review_count") else None
        except ValueError:
            logger.warning(f"Ignoring malformed rating meta on record {record_id}")
            return RatingSource()
        return RatingSource(rating_value=value, review_count=reviews)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def post_type_exists(self, post_type: str) -> bool:
        return post_type in self.post_types

    def get_author(self, user_id: int) -> Optional[PublishingIdentity]:
        return self.users.get(user_id)

    # ------------------------------------------------------------------
    # Taxonomies
    # ------------------------------------------------------------------

    def taxonomy_exists(self, taxonomy: str) -> bool:
        return taxonomy in self.taxonomies

    def get_term(self, taxonomy: str, term_id: int) -> Optional[Term]:
        with self._lock:
            term = self.terms.get(term_id)
        if term is None or term.taxonomy != taxonomy:
            return None
        return term

    def find_term_by_name(self, taxonomy: str, name: str) -> Optional[Term]:
        with self._lock:
            for term in self.terms.values():
                if term.taxonomy == taxonomy and term.name == name:
                    return term
        return None

    def create_term(self, taxonomy: str, name: str) -> Term:
        if taxonomy not in self.taxonomies:
            raise StoreError(f"Taxonomy '{taxonomy}' does not exist")
        with self._lock:
            existing = self.find_term_by_name(taxonomy, name)
            if existing is not None:
                return existing
            term = Term(term_id=next(self._term_ids), name=name, taxonomy=taxonomy)
            self.terms[term.term_id] = term
        return term

    def set_record_terms(self, record_id: int, taxonomy: str, term_ids: Sequence[int]) -> List[int]:
        with self._lock:
            record = self._require(record_id)
            for term_id in term_ids:
                term = self.terms.get(term_id)
                if term is None or term.taxonomy != taxonomy:
                    raise StoreError(f"Invalid term id {term_id} for '{taxonomy}'")
            record.terms[taxonomy] = list(term_ids)
        return list(term_ids)
