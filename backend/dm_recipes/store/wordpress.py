"""
WordPress REST content store.

Talks to ``/wp-json/wp/v2`` with an Application Password (HTTP basic auth).
Rating metadata is read from the record's registered ``rating_value`` /
``review_count`` meta fields.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..core.errors import StoreError
from ..schemas.recipe import PublishingIdentity, RatingSource
from .base import ContentStore, RecordDraft, RecordLinks, Term

logger = logging.getLogger(__name__)


def clean_site_url(site_url: str) -> str:
    """Site URL without common admin suffixes or trailing slash."""
    url = site_url.strip()
    for suffix in ("/wp-admin/", "/wp-admin", "/wp-login.php"):
        if url.endswith(suffix):
            url = url[: -len(suffix)]
    return url.rstrip("/")


class WordPressRestStore(ContentStore):
    """
    Content store backed by the WordPress REST API.

    Usage:
        with WordPressRestStore(site, user, app_password) as store:
            record_id = store.create_record(draft)
    """

    def __init__(
        self,
        site_url: str,
        username: str,
        app_password: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.site_url = clean_site_url(site_url)
        self.client = httpx.Client(
            base_url=f"{self.site_url}/wp-json/wp/v2",
            auth=(username, app_password),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._types: Optional[Dict[str, Any]] = None
        self._taxonomies: Optional[Dict[str, Any]] = None
        self._record_bases: Dict[int, str] = {}

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "WordPressRestStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"Network error calling WordPress API {path}: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            if not isinstance(body, dict):
                body = {}
            detail = body.get("message") or response.text[:300]
            raise StoreError(
                f"WordPress API error {response.status_code} on {method} {path}: {detail}",
                status_code=response.status_code,
                body=body,
            )
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"WordPress API returned non-JSON for {path}") from e

    def _get_optional(self, path: str, **kwargs) -> Optional[Any]:
        try:
            return self._request("GET", path, **kwargs)
        except StoreError as e:
            if e.status_code in (400, 403, 404):
                return None
            raise

    def _post_types(self) -> Dict[str, Any]:
        if self._types is None:
            self._types = self._request("GET", "/types") or {}
        return self._types

    def _taxonomy_map(self) -> Dict[str, Any]:
        if self._taxonomies is None:
            self._taxonomies = self._request("GET", "/taxonomies") or {}
        return self._taxonomies

    def _type_base(self, post_type: str) -> str:
        entry = self._post_types().get(post_type)
        if not entry:
            raise StoreError(f"Post type '{post_type}' does not exist")
        return entry.get("rest_base") or post_type

    def _taxonomy_base(self, taxonomy: str) -> str:
        entry = self._taxonomy_map().get(taxonomy)
        if not entry:
            raise StoreError(f"Taxonomy '{taxonomy}' does not exist")
        return entry.get("rest_base") or taxonomy

    def _record_base(self, record_id: int) -> str:
        return self._record_bases.get(record_id, "posts")

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def create_record(self, draft: RecordDraft) -> int:
        base = self._type_base(draft.post_type)
        payload: Dict[str, Any] = {
            "title": draft.title,
            "content": draft.content,
            "status": draft.status,
            "author": draft.author_id,
        }
        if draft.date:
            payload["date"] = draft.date
        data = self._request("POST", f"/{base}", json=payload)
        record_id = data.get("id")
        if not record_id:
            raise StoreError("WordPress API returned no record id")
        self._record_bases[int(record_id)] = base
        logger.info(f"Created WordPress {draft.post_type} {record_id}")
        return int(record_id)

    def update_record_content(self, record_id: int, content: str) -> None:
        self._request("POST", f"/{self._record_base(record_id)}/{record_id}", json={"content": content})

    def delete_record(self, record_id: int) -> None:
        self._request("DELETE", f"/{self._record_base(record_id)}/{record_id}", params={"force": "true"})
        self._record_bases.pop(record_id, None)

    def _fetch_record(self, record_id: int) -> Optional[Dict[str, Any]]:
        return self._get_optional(f"/{self._record_base(record_id)}/{record_id}", params={"context": "edit"})

    def get_record_content(self, record_id: int) -> Optional[str]:
        data = self._fetch_record(record_id)
        if not data:
            return None
        content = data.get("content") or {}
        if isinstance(content, dict):
            return content.get("raw") or content.get("rendered") or ""
        return str(content)

    def record_links(self, record_id: int) -> RecordLinks:
        data = self._fetch_record(record_id) or {}
        return RecordLinks(
            url=data.get("link") or f"{self.site_url}/?p={record_id}",
            edit_url=f"{self.site_url}/wp-admin/post.php?post={record_id}&action=edit",
        )

    def get_rating(self, record_id: int) -> RatingSource:
        data = self._fetch_record(record_id) or {}
        meta = data.get("meta") or {}
        if not isinstance(meta, dict):
            return RatingSource()
        try:
            value = float(meta["rating_value"]) if meta.get("rating_value") not in (None, "") else None
            reviews = int(meta["review_count"]) if meta.get("review_count") not in (None, "") else None
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed rating meta on record {record_id}")
            return RatingSource()
        return RatingSource(rating_value=value, review_count=reviews)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def post_type_exists(self, post_type: str) -> bool:
        return post_type in self._post_types()

    def get_author(self, user_id: int) -> Optional[PublishingIdentity]:
        data = self._get_optional(f"/users/{user_id}")
        if not data:
            return None
        return PublishingIdentity(
            user_id=int(data.get("id") or user_id),
            display_name=data.get("name") or "",
            profile_url=data.get("link") or "",
        )

    # ------------------------------------------------------------------
    # Taxonomies
    # ------------------------------------------------------------------

    def taxonomy_exists(self, taxonomy: str) -> bool:
        return taxonomy in self._taxonomy_map()

    @staticmethod
    def _term(data: Dict[str, Any], taxonomy: str) -> Term:
        # Term names come back entity-encoded (Mac &amp; Cheese)
        return Term(term_id=int(data["id"]), name=html.unescape(data.get("name") or ""), taxonomy=taxonomy)

    def get_term(self, taxonomy: str, term_id: int) -> Optional[Term]:
        data = self._get_optional(f"/{self._taxonomy_base(taxonomy)}/{term_id}")
        if not data:
            return None
        return self._term(data, taxonomy)

    def find_term_by_name(self, taxonomy: str, name: str) -> Optional[Term]:
        results = self._request(
            "GET",
            f"/{self._taxonomy_base(taxonomy)}",
            params={"search": name, "per_page": 100},
        )
        for item in results or []:
            if html.unescape(item.get("name") or "") == name:
                return self._term(item, taxonomy)
        return None

    def create_term(self, taxonomy: str, name: str) -> Term:
        try:
            data = self._request("POST", f"/{self._taxonomy_base(taxonomy)}", json={"name": name})
        except StoreError as e:
            existing_id = (e.body.get("data") or {}).get("term_id") if e.body.get("code") == "term_exists" else None
            if existing_id is None:
                raise
            logger.info(f"Term '{name}' already exists in '{taxonomy}' as {existing_id}")
            existing = self.get_term(taxonomy, int(existing_id))
            if existing is None:
                raise
            return existing
        return self._term(data, taxonomy)

    def set_record_terms(self, record_id: int, taxonomy: str, term_ids: Sequence[int]) -> List[int]:
        field = self._taxonomy_base(taxonomy)
        data = self._request(
            "POST",
            f"/{self._record_base(record_id)}/{record_id}",
            json={field: list(term_ids)},
        )
        assigned = data.get(field)
        return [int(t) for t in assigned] if isinstance(assigned, list) else list(term_ids)
