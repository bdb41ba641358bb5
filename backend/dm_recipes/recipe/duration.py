"""
ISO 8601 duration helpers for recipe timings (PT30M, PT1H30M, ...).
"""

from __future__ import annotations

import re
from typing import Any, Tuple

HOURS_RE = re.compile(r"(\d+)H")
MINUTES_RE = re.compile(r"(\d+)M")


def parse_duration(duration: str) -> Tuple[int, int]:
    """Hours and minutes of a ``PT`` duration; anything else is (0, 0)."""
    if not isinstance(duration, str) or not duration.startswith("PT"):
        return 0, 0
    body = duration[2:]
    hours = HOURS_RE.search(body)
    minutes = MINUTES_RE.search(body)
    return (
        int(hours.group(1)) if hours else 0,
        int(minutes.group(1)) if minutes else 0,
    )


def format_duration(duration: str) -> str:
    """
    Human-readable form of an ISO 8601 duration.

    Input that does not start with ``PT`` is returned unchanged.

    >>> format_duration("PT1H30M")
    '1 hour 30 minutes'
    """
    if not duration.startswith("PT"):
        return duration

    hours, minutes = parse_duration(duration)
    parts = []
    if hours > 0:
        parts.append(f"{hours} {'hour' if hours == 1 else 'hours'}")
    if minutes > 0:
        parts.append(f"{minutes} {'minute' if minutes == 1 else 'minutes'}")
    return " ".join(parts)


def _whole(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return number if number > 0 else 0


def build_duration(hours: Any = 0, minutes: Any = 0) -> str:
    """ISO 8601 duration from hours/minutes; empty when both are zero."""
    h, m = _whole(hours), _whole(minutes)
    value = "PT"
    if h:
        value += f"{h}H"
    if m:
        value += f"{m}M"
    return "" if value == "PT" else value
