"""
Field Sanitizer
===============

Pure functions that clean loosely-typed inbound values per field type.

Every sanitizer returns the cleaned value or the type's zero value; none of
them raise. ``read_field`` makes the shape of the inbound payload explicit
(absent / present-but-empty / present) before any cleaning happens.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Tuple
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Comment

ALLOWED_URL_SCHEMES = {"http", "https"}
ALLOWED_LINK_SCHEMES = {"http", "https", "mailto"}

# Block and inline text formatting only
ALLOWED_TAGS = {
    "p", "br", "hr", "div", "span", "blockquote", "pre", "code",
    "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li",
    "strong", "b", "em", "i", "u", "s", "del", "ins", "mark", "small", "sub", "sup",
    "a",
}
ALLOWED_ATTRIBUTES = {"a": {"href", "title"}}

# Removed together with their content
DROPPED_TAGS = {
    "script", "style", "iframe", "object", "embed", "noscript", "template",
    "form", "input", "button", "select", "textarea", "svg", "math", "head", "title",
}

_DROPPED = sorted(DROPPED_TAGS)

_WHITESPACE_RE = re.compile(r"\s+")
# PnYnMnWnDTnHnMnS with at least one component
_ISO_DURATION_RE = re.compile(
    r"^P(?=\d|T\d)(?:\d+Y)?(?:\d+M)?(?:\d+W)?(?:\d+D)?(?:T(?=\d)(?:\d+H)?(?:\d+M)?(?:\d+(?:\.\d+)?S)?)?$"
)
_UNSAFE_URL_CHARS_RE = re.compile(r"[\s<>\"'`\\]")


class FieldState(str, Enum):
    ABSENT = "absent"
    EMPTY = "empty"
    PRESENT = "present"


@dataclass(frozen=True)
class RawField:
    """One inbound field with its presence made explicit."""

    key: str
    state: FieldState
    value: Any = None

    @property
    def present(self) -> bool:
        return self.state is FieldState.PRESENT


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def read_field(payload: Any, key: str, *aliases: str) -> RawField:
    """
    Look up ``key`` (then each alias) in ``payload``.

    The first key found wins, even when its value is empty, so an explicit
    empty value is never silently replaced by an alias.
    """
    if not isinstance(payload, Mapping):
        return RawField(key=key, state=FieldState.ABSENT)
    for candidate in (key, *aliases):
        if candidate in payload:
            value = payload[candidate]
            state = FieldState.EMPTY if _is_empty(value) else FieldState.PRESENT
            return RawField(key=candidate, state=state, value=value)
    return RawField(key=key, state=FieldState.ABSENT)


def _strip_control_chars(text: str) -> str:
    return "".join(
        " " if ch in "\t\n\r\x0b\x0c" else ch
        for ch in text
        if ch in "\t\n\r\x0b\x0c" or unicodedata.category(ch) != "Cc"
    )


def _as_scalar_text(value: Any) -> str:
    if isinstance(value, RawField):
        value = value.value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def strip_all_tags(value: Any) -> str:
    """Plain-text projection of an HTML fragment (entities decoded)."""
    text = _as_scalar_text(value)
    if not text:
        return ""
    if "<" in text or "&" in text:
        soup = BeautifulSoup(text, "html.parser")
        for tag in soup.find_all(_DROPPED):
            tag.decompose()
        text = soup.get_text()
    text = _strip_control_chars(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_text(value: Any) -> str:
    """Scalar string field: markup stripped, entities decoded, trimmed."""
    return strip_all_tags(value)


def sanitize_text_list(value: Any) -> Tuple[str, ...]:
    """Array of strings; non-arrays yield an empty tuple, empty entries are dropped."""
    if isinstance(value, RawField):
        value = value.value
    if not isinstance(value, (list, tuple)):
        return ()
    cleaned = (sanitize_text(item) for item in value if item)
    return tuple(item for item in cleaned if item)


def sanitize_url(value: Any) -> str:
    """Absolute http(s) URL or an empty string."""
    text = _strip_control_chars(_as_scalar_text(value)).strip()
    if not text or _UNSAFE_URL_CHARS_RE.search(text):
        return ""
    try:
        parts = urlsplit(text)
    except ValueError:
        return ""
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES or not parts.netloc:
        return ""
    return text


def sanitize_duration(value: Any) -> str:
    """ISO 8601 duration (``PT30M``, ``P1DT2H``) or an empty string."""
    text = _as_scalar_text(value).strip().upper()
    return text if _ISO_DURATION_RE.match(text) else ""


def sanitize_timestamp(value: Any) -> str:
    """
    ISO 8601 timestamp with a UTC offset, or an empty string.

    Naive values are read as local time and get the local offset.
    """
    text = _as_scalar_text(value).strip()
    if not text:
        return ""
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed.isoformat()


def _safe_href(value: str) -> str:
    href = _strip_control_chars(value).strip()
    if not href or _UNSAFE_URL_CHARS_RE.search(href):
        return ""
    try:
        parts = urlsplit(href)
    except ValueError:
        return ""
    if parts.scheme:
        return href if parts.scheme.lower() in ALLOWED_LINK_SCHEMES else ""
    # Relative links and fragments carry no scheme
    return href


def sanitize_rich_text(value: Any) -> str:
    """
    Allow-list HTML sanitizer for description and narrative content.

    Keeps block and inline formatting tags, drops scripts/styles/embeds with
    their content, unwraps any other tag, and removes every attribute except
    safe ``href``/``title`` on links.
    """
    text = _as_scalar_text(value)
    if not text.strip():
        return ""
    soup = BeautifulSoup(text, "html.parser")

    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    for tag in soup.find_all(_DROPPED):
        tag.decompose()

    for tag in soup.find_all(True):
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
            continue
        allowed = ALLOWED_ATTRIBUTES.get(tag.name, set())
        for attr in list(tag.attrs):
            if attr not in allowed:
                del tag.attrs[attr]
        if tag.name == "a" and "href" in tag.attrs:
            href = _safe_href(str(tag.attrs["href"]))
            if href:
                tag.attrs["href"] = href
            else:
                del tag.attrs["href"]

    cleaned = "".join(
        ch for ch in str(soup) if ch in "\t\n\r" or unicodedata.category(ch) != "Cc"
    )
    return cleaned.strip()


def sanitize_key(value: Any) -> str:
    """Lower-case slug: letters, digits, dashes and underscores only."""
    text = _as_scalar_text(value).lower()
    return re.sub(r"[^a-z0-9_\-]", "", text)


def sanitize_mapping(value: Any) -> dict[str, str]:
    """Mapping of plain-text values; non-mappings and empty values yield nothing."""
    if isinstance(value, RawField):
        value = value.value
    if not isinstance(value, Mapping):
        return {}
    cleaned: dict[str, str] = {}
    for key, item in value.items():
        name = sanitize_text(key)
        text = sanitize_text(item)
        if name and text:
            cleaned[name] = text
    return cleaned
