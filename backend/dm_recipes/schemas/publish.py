"""
Publish Schemas
===============

Handler configuration, taxonomy assignment reports and the publish result
returned to the calling agent.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..recipe.sanitizer import sanitize_key

HANDLER_KEY = "wordpress_recipe_publish"

PostStatus = Literal["draft", "publish", "pending", "private"]
DateSource = Literal["current_date", "source_date"]

_TAXONOMY_FIELD_RE = re.compile(r"^taxonomy_(?P<name>[a-z0-9_\-]+)_selection$")
_STATUS_ALIASES = {"published": "publish"}


class TaxonomyMode(str, Enum):
    SKIP = "skip"
    AUTO = "auto"
    FIXED = "fixed"


class TaxonomySelection(BaseModel):
    """How one taxonomy is handled on publish."""

    model_config = ConfigDict(frozen=True)

    mode: TaxonomyMode
    term_id: Optional[int] = None

    @model_validator(mode="after")
    def _fixed_needs_term(self) -> "TaxonomySelection":
        if self.mode is TaxonomyMode.FIXED and not (self.term_id and self.term_id > 0):
            raise ValueError("fixed taxonomy selection requires a positive term_id")
        return self

    @classmethod
    def parse(cls, value: Any) -> "TaxonomySelection":
        """
        Accept the settings-form representation.

        ``"skip"``, ``"auto"`` (legacy ``"ai_decides"``), a positive integer
        term id (int or numeric string), or an explicit mapping.
        """
        if isinstance(value, TaxonomySelection):
            return value
        if isinstance(value, dict):
            return cls.model_validate(value)
        if isinstance(value, bool):
            raise ValueError(f"invalid taxonomy selection: {value!r}")
        if isinstance(value, int):
            return cls(mode=TaxonomyMode.FIXED, term_id=value)
        if isinstance(value, str):
            text = value.strip().lower()
            if text == "skip":
                return cls(mode=TaxonomyMode.SKIP)
            if text in ("auto", "ai_decides"):
                return cls(mode=TaxonomyMode.AUTO)
            if text.isdigit():
                return cls(mode=TaxonomyMode.FIXED, term_id=int(text))
        raise ValueError(f"invalid taxonomy selection: {value!r}")


class HandlerConfig(BaseModel):
    """
    Orchestration settings for one publish call.

    Sourced from configuration, never from the recipe payload. Accepts both a
    nested ``taxonomies`` mapping and the flat ``taxonomy_<name>_selection``
    keys written by the settings form.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    post_type: str = Field(min_length=1)
    post_status: PostStatus
    post_author: int = Field(gt=0)
    post_date_source: DateSource = "source_date"
    taxonomies: Dict[str, TaxonomySelection] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_flat_taxonomies(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        nested = data.get(HANDLER_KEY)
        if isinstance(nested, dict):
            data = dict(nested)
        taxonomies = dict(data.get("taxonomies") or {})
        for key, value in data.items():
            match = _TAXONOMY_FIELD_RE.match(str(key))
            if match:
                taxonomies.setdefault(match.group("name"), value)
        data["taxonomies"] = {
            sanitize_key(name): TaxonomySelection.parse(value)
            for name, value in taxonomies.items()
            if sanitize_key(name)
        }
        return data

    @field_validator("post_type", mode="before")
    @classmethod
    def _clean_post_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return sanitize_key(v)
        return v

    @field_validator("post_status", mode="before")
    @classmethod
    def _status_alias(cls, v: Any) -> Any:
        if isinstance(v, str):
            text = sanitize_key(v)
            return _STATUS_ALIASES.get(text, text)
        return v


class TaxonomyAssignment(BaseModel):
    """Per-taxonomy outcome of one publish."""

    taxonomy: str
    mode: TaxonomyMode
    term_id: Optional[int] = None
    resolved_term_ids: List[int] = Field(default_factory=list)
    terms: List[str] = Field(default_factory=list)
    outcome: Literal["success", "error"] = "success"
    detail: str = ""

    @property
    def success(self) -> bool:
        return self.outcome == "success"

    def to_response(self) -> dict:
        payload: dict = {
            "success": self.success,
            "taxonomy": self.taxonomy,
            "mode": self.mode.value,
            "term_ids": list(self.resolved_term_ids),
            "term_count": len(self.resolved_term_ids),
            "terms": list(self.terms),
        }
        if self.success:
            if self.detail:
                payload["detail"] = self.detail
        else:
            payload["error"] = self.detail
        return payload


class PublishState(str, Enum):
    VALIDATING = "validating"
    COMPILING = "compiling"
    CREATING_RECORD = "creating_record"
    ASSIGNING_TAXONOMIES = "assigning_taxonomies"
    DONE = "done"
    ABORTED = "aborted"


class PublishResult(BaseModel):
    """Outcome of a single publish call. Created fresh per call."""

    success: bool
    state: PublishState
    message: str = ""
    error: Optional[str] = None
    error_kind: Optional[str] = None
    content_id: Optional[int] = None
    url: Optional[str] = None
    edit_url: Optional[str] = None
    taxonomy_assignments: List[TaxonomyAssignment] = Field(default_factory=list)

    def to_response(self) -> dict:
        """JSON-serializable payload returned to the calling agent."""
        if not self.success:
            return {"success": False, "error": self.error or "Unknown error"}
        return {
            "success": True,
            "message": self.message,
            "post_id": self.content_id,
            "post_url": self.url,
            "edit_url": self.edit_url,
            "taxonomy_results": {
                assignment.taxonomy: assignment.to_response()
                for assignment in self.taxonomy_assignments
            },
        }
